"""
Legacy Ethereum transactions with EIP-155 replay protection.

Signing flow:
  1. RLP-encode (nonce, gasPrice, gasLimit, to, value, data, chainId, 0, 0)
  2. sighash = Keccak-256 of that encoding
  3. RFC 6979 deterministic ECDSA over secp256k1, s normalised to low-S
  4. v = recovery_id + chain_id * 2 + 35
  5. RLP-encode (nonce, gasPrice, gasLimit, to, value, data, v, r, s)

The hex of step 5 is what gets broadcast with ``eth_sendRawTransaction``.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from ecdsa import SECP256k1, SigningKey, VerifyingKey, ellipticcurve, numbertheory
from ecdsa.util import sigencode_strings_canonize

from etherseed_core import rlp
from etherseed_core.address import address_to_bytes, public_key_to_address, to_checksum_address
from etherseed_core.crypto_utils import CURVE_ORDER, keccak256
from etherseed_core.errors import DecodingError, EncodingError, SigningError
from etherseed_core.keys import is_valid_private_key

UINT64_MAX = 2**64 - 1
UINT256_MAX = 2**256 - 1

EIP155_OFFSET = 35


def _check_uint(name: str, value: int, maximum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise EncodingError(f"{name} must not be negative")
    if value > maximum:
        raise EncodingError(f"{name} exceeds {maximum.bit_length()} bits")


@dataclass(frozen=True)
class Transaction:
    """An unsigned legacy (type 0) transaction bound to a chain id."""

    nonce: int
    gas_price: int
    gas_limit: int
    to: bytes
    value: int
    data: bytes = b""
    chain_id: int = 1

    def __post_init__(self):
        _check_uint("nonce", self.nonce, UINT64_MAX)
        _check_uint("gas_price", self.gas_price, UINT256_MAX)
        _check_uint("gas_limit", self.gas_limit, UINT64_MAX)
        _check_uint("value", self.value, UINT256_MAX)
        _check_uint("chain_id", self.chain_id, UINT64_MAX)
        if not isinstance(self.to, (bytes, bytearray)) or len(self.to) != 20:
            raise EncodingError("to must be a 20-byte address")
        if not isinstance(self.data, (bytes, bytearray)):
            raise EncodingError("data must be bytes")

    @classmethod
    def create(cls, to: str | bytes, value: int, nonce: int, gas_price: int,
               gas_limit: int = 21_000, data: bytes = b"", chain_id: int = 1) -> Transaction:
        """Build a transaction, accepting the recipient as hex text."""
        if isinstance(to, str):
            try:
                to = address_to_bytes(to)
            except ValueError as exc:
                raise EncodingError(str(exc)) from exc
        return cls(nonce=nonce, gas_price=gas_price, gas_limit=gas_limit,
                   to=to, value=value, data=data, chain_id=chain_id)

    def _fields(self) -> list:
        return [self.nonce, self.gas_price, self.gas_limit, bytes(self.to),
                self.value, bytes(self.data)]

    def signing_payload(self) -> bytes:
        """RLP of the EIP-155 9-tuple ending in (chainId, 0, 0)."""
        return rlp.encode(self._fields() + [self.chain_id, 0, 0])

    def signing_hash(self) -> bytes:
        return keccak256(self.signing_payload())

    def to_dict(self) -> dict:
        return {
            "nonce": self.nonce,
            "gas_price": self.gas_price,
            "gas_limit": self.gas_limit,
            "to": to_checksum_address(bytes(self.to)),
            "value": self.value,
            "data": "0x" + bytes(self.data).hex(),
            "chain_id": self.chain_id,
        }


@dataclass(frozen=True)
class SignedTransaction:
    """A transaction with its EIP-155 signature.  Immutable once produced."""

    transaction: Transaction
    v: int
    r: bytes
    s: bytes

    @property
    def recovery_id(self) -> int:
        return self.v - (self.transaction.chain_id * 2 + EIP155_OFFSET)

    def raw_transaction(self) -> bytes:
        return rlp.encode(self.transaction._fields() + [
            self.v,
            int.from_bytes(self.r, "big"),
            int.from_bytes(self.s, "big"),
        ])

    def to_hex(self) -> str:
        """0x-prefixed payload for ``eth_sendRawTransaction``."""
        return "0x" + self.raw_transaction().hex()

    def tx_hash(self) -> bytes:
        return keccak256(self.raw_transaction())

    def sender_public_key(self) -> bytes:
        """Recover the signer's 64-byte X||Y public key."""
        return recover_public_key(self.transaction.signing_hash(), self.r, self.s, self.recovery_id)

    def sender(self) -> bytes:
        return public_key_to_address(self.sender_public_key())

    def to_dict(self) -> dict:
        d = self.transaction.to_dict()
        d.update({
            "v": self.v,
            "r": "0x" + self.r.hex(),
            "s": "0x" + self.s.hex(),
            "hash": "0x" + self.tx_hash().hex(),
            "raw": self.to_hex(),
        })
        return d


# ===================================================================
#  ECDSA helpers
# ===================================================================

def recover_public_key(digest: bytes, r: bytes, s: bytes, recovery_id: int) -> bytes:
    """
    Recover the 64-byte public key that produced (r, s) over *digest*.

    ``recovery_id`` selects the parity of R's y coordinate.
    """
    if recovery_id not in (0, 1):
        raise SigningError(f"Unsupported recovery id {recovery_id}")
    curve = SECP256k1.curve
    generator = SECP256k1.generator
    n = CURVE_ORDER
    p = curve.p()
    r_int = int.from_bytes(r, "big")
    s_int = int.from_bytes(s, "big")
    if not (0 < r_int < n and 0 < s_int < n):
        raise SigningError("Signature values out of range")

    alpha = (pow(r_int, 3, p) + curve.a() * r_int + curve.b()) % p
    try:
        beta = numbertheory.square_root_mod_prime(alpha, p)
    except numbertheory.Error as exc:
        raise SigningError("r is not the x coordinate of a curve point") from exc
    y = beta if beta % 2 == recovery_id else p - beta

    point_r = ellipticcurve.PointJacobi(curve, r_int, y, 1, n)
    e = int.from_bytes(digest, "big")
    q = numbertheory.inverse_mod(r_int, n) * (s_int * point_r + (-e % n) * generator)
    if q == ellipticcurve.INFINITY:
        raise SigningError("Recovered point is at infinity")
    return VerifyingKey.from_public_point(q, curve=SECP256k1).to_string("raw")


def sign_digest(digest: bytes, private_key: bytes) -> tuple[bytes, bytes, int]:
    """RFC 6979 low-S signature over a 32-byte digest -> (r, s, recovery_id)."""
    if not is_valid_private_key(private_key):
        raise SigningError("Invalid private key")
    sk = SigningKey.from_string(private_key, curve=SECP256k1)
    r, s = sk.sign_digest_deterministic(
        digest, hashfunc=hashlib.sha256, sigencode=sigencode_strings_canonize,
    )
    public_key = sk.get_verifying_key().to_string("raw")
    for recovery_id in (0, 1):
        if recover_public_key(digest, r, s, recovery_id) == public_key:
            return r, s, recovery_id
    raise SigningError("Could not determine the signature recovery id")


def sign_transaction(tx: Transaction, private_key: bytes) -> SignedTransaction:
    """Sign *tx* with EIP-155 replay protection."""
    r, s, recovery_id = sign_digest(tx.signing_hash(), private_key)
    v = recovery_id + tx.chain_id * 2 + EIP155_OFFSET
    return SignedTransaction(transaction=tx, v=v, r=r, s=s)


def decode_signed_transaction(raw: bytes | str) -> SignedTransaction:
    """Parse a raw EIP-155 transaction (bytes or 0x-hex)."""
    if isinstance(raw, str):
        text = raw[2:] if raw.startswith(("0x", "0X")) else raw
        try:
            raw = bytes.fromhex(text)
        except ValueError as exc:
            raise DecodingError(f"Invalid hex payload: {exc}") from exc

    fields = rlp.decode(raw)
    if not isinstance(fields, list) or len(fields) != 9:
        raise DecodingError("Signed transaction must be an RLP list of 9 items")
    if any(isinstance(f, list) for f in fields):
        raise DecodingError("Transaction fields must be byte strings")

    nonce, gas_price, gas_limit, value, v, r, s = (
        rlp.big_endian_to_int(fields[i]) for i in (0, 1, 2, 4, 6, 7, 8)
    )
    if v < EIP155_OFFSET:
        raise DecodingError(f"v={v} is not an EIP-155 value")
    chain_id = (v - EIP155_OFFSET) // 2
    if r > UINT256_MAX or s > UINT256_MAX:
        raise DecodingError("Signature values exceed 256 bits")

    try:
        tx = Transaction(nonce=nonce, gas_price=gas_price, gas_limit=gas_limit,
                         to=fields[3], value=value, data=fields[5], chain_id=chain_id)
    except EncodingError as exc:
        raise DecodingError(str(exc)) from exc
    return SignedTransaction(tx, v, r.to_bytes(32, "big"), s.to_bytes(32, "big"))
