"""
Hierarchical Deterministic key derivation (BIP-32) over secp256k1.

An :class:`ExtendedKey` is an immutable value.  Each derivation returns a
new key; nothing keeps a reference to its parent, so a key tree can only be
rebuilt top-down from the seed.  The parent fingerprint is a hash, not a
pointer.

Invalid keys (IL >= n, or a zero child key) are reported as
:class:`InvalidChildKey` naming the failing segment.  The derivation is not
retried at the next index.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, replace

from etherseed_core.crypto_utils import (
    CURVE_ORDER,
    base58check_decode,
    base58check_encode,
    hash160,
    hmac_sha512,
)
from etherseed_core.errors import (
    InvalidChildKey,
    InvalidMasterKey,
    InvalidSeedLength,
    KeyDerivationError,
)
from etherseed_core.keys import KeyPair, compress_public_key, private_to_public
from etherseed_core.path import HARDENED, PathSegment, parse_path

MASTER_HMAC_KEY = b"Bitcoin seed"

# mainnet serialisation version bytes
XPRV_VERSION = bytes.fromhex("0488ade4")
XPUB_VERSION = bytes.fromhex("0488b21e")


@dataclass(frozen=True)
class ExtendedKey:
    """A BIP-32 key with chain code, depth and parentage metadata."""

    key: bytes                 # 32-byte private key or 33-byte compressed public key
    chain_code: bytes
    depth: int = 0
    parent_fingerprint: bytes = b"\x00" * 4
    child_index: int = 0
    is_private: bool = True

    def __post_init__(self):
        if len(self.chain_code) != 32:
            raise KeyDerivationError("Chain code must be 32 bytes")
        if not 0 <= self.depth <= 255:
            raise KeyDerivationError(f"Depth {self.depth} does not fit in one byte")
        if len(self.parent_fingerprint) != 4:
            raise KeyDerivationError("Parent fingerprint must be 4 bytes")
        if not 0 <= self.child_index <= 0xFFFFFFFF:
            raise KeyDerivationError("Child index must fit in 32 bits")
        if self.is_private:
            if len(self.key) != 32 or not 0 < int.from_bytes(self.key, "big") < CURVE_ORDER:
                raise KeyDerivationError("Private key is outside the range [1, n-1]")
        elif len(self.key) != 33:
            raise KeyDerivationError("Public key must be 33 bytes compressed")

    # ---- construction ----

    @classmethod
    def from_seed(cls, seed: bytes) -> ExtendedKey:
        """Create the master (depth 0) key from a 16..64 byte seed."""
        if not 16 <= len(seed) <= 64:
            raise InvalidSeedLength(f"Seed must be between 16 and 64 bytes, got {len(seed)}")
        digest = hmac_sha512(MASTER_HMAC_KEY, seed)
        il, ir = digest[:32], digest[32:]
        if not 0 < int.from_bytes(il, "big") < CURVE_ORDER:
            raise InvalidMasterKey("Seed produced an invalid master key")
        return cls(key=il, chain_code=ir)

    # ---- key material ----

    @property
    def private_key(self) -> bytes:
        if not self.is_private:
            raise KeyDerivationError("Extended public key has no private key")
        return self.key

    @property
    def public_key(self) -> bytes:
        """33-byte compressed public key (serP)."""
        if self.is_private:
            return private_to_public(self.key, compressed=True)
        return self.key

    @property
    def identifier(self) -> bytes:
        return hash160(self.public_key)

    @property
    def fingerprint(self) -> bytes:
        """First 4 bytes of Hash160 of the compressed public key."""
        return self.identifier[:4]

    @property
    def hardened(self) -> bool:
        return bool(self.child_index & HARDENED)

    def neuter(self) -> ExtendedKey:
        """Return the public-only counterpart of this key."""
        if not self.is_private:
            return self
        return replace(self, key=self.public_key, is_private=False)

    def to_keypair(self) -> KeyPair:
        return KeyPair.from_private_key(self.private_key)

    # ---- derivation ----

    def derive_child(self, index: int, hardened: bool = False) -> ExtendedKey:
        """
        Derive the child at *index*.

        *index* may also be given with the hardened bit already set
        (``index >= 2**31``), in which case *hardened* is implied.
        """
        if not self.is_private:
            raise KeyDerivationError("Derivation from a public-only key is not supported")
        if not 0 <= index <= 0xFFFFFFFF:
            raise KeyDerivationError(f"Child index {index} does not fit in 32 bits")
        if index >= HARDENED:
            hardened = True
            index -= HARDENED
        segment = PathSegment(index, hardened)
        child_number = segment.child_number

        parent_pub = self.public_key
        if hardened:
            data = b"\x00" + self.key + struct.pack(">I", child_number)
        else:
            data = parent_pub + struct.pack(">I", child_number)

        digest = hmac_sha512(self.chain_code, data)
        il = int.from_bytes(digest[:32], "big")
        if il >= CURVE_ORDER:
            raise InvalidChildKey(str(segment))
        child_int = (il + int.from_bytes(self.key, "big")) % CURVE_ORDER
        if child_int == 0:
            raise InvalidChildKey(str(segment))

        return ExtendedKey(
            key=child_int.to_bytes(32, "big"),
            chain_code=digest[32:],
            depth=self.depth + 1,
            parent_fingerprint=hash160(parent_pub)[:4],
            child_index=child_number,
        )

    def derive_path(self, path: str) -> ExtendedKey:
        """Walk a path like ``m/44'/60'/0'/0/0`` from this key."""
        node = self
        for segment in parse_path(path):
            node = node.derive_child(segment.index, segment.hardened)
        return node

    # ---- serialisation ----

    def to_base58(self) -> str:
        """Serialise as ``xprv`` / ``xpub`` (Base58Check, 78-byte payload)."""
        if self.is_private:
            version, key_data = XPRV_VERSION, b"\x00" + self.key
        else:
            version, key_data = XPUB_VERSION, self.key
        payload = (
            version
            + bytes([self.depth])
            + self.parent_fingerprint
            + struct.pack(">I", self.child_index)
            + self.chain_code
            + key_data
        )
        return base58check_encode(payload)

    @classmethod
    def from_base58(cls, text: str) -> ExtendedKey:
        try:
            payload = base58check_decode(text)
        except ValueError as exc:
            raise KeyDerivationError(f"Invalid extended key encoding: {exc}") from exc
        if len(payload) != 78:
            raise KeyDerivationError(f"Extended key payload must be 78 bytes, got {len(payload)}")

        version = payload[:4]
        depth = payload[4]
        parent_fingerprint = payload[5:9]
        child_index = struct.unpack(">I", payload[9:13])[0]
        chain_code = payload[13:45]
        key_data = payload[45:]

        if version == XPRV_VERSION:
            if key_data[0] != 0:
                raise KeyDerivationError("Private key data must start with 0x00")
            key, is_private = key_data[1:], True
        elif version == XPUB_VERSION:
            try:
                key = compress_public_key(key_data)
            except ValueError as exc:
                raise KeyDerivationError(str(exc)) from exc
            is_private = False
        else:
            raise KeyDerivationError(f"Unknown extended key version {version.hex()}")

        if depth == 0 and (parent_fingerprint != b"\x00" * 4 or child_index != 0):
            raise KeyDerivationError("Root key must have zero fingerprint and index")
        return cls(key, chain_code, depth, parent_fingerprint, child_index, is_private)

    def __repr__(self) -> str:
        kind = "private" if self.is_private else "public"
        return (
            f"ExtendedKey({kind}, depth={self.depth}, "
            f"index={self.child_index:#010x}, fingerprint={self.fingerprint.hex()})"
        )


def master_key(seed: bytes) -> ExtendedKey:
    return ExtendedKey.from_seed(seed)


def derive_path(seed_or_key: bytes | ExtendedKey, path: str) -> ExtendedKey:
    """Resolve *path* from a seed or from an existing extended key."""
    root = seed_or_key if isinstance(seed_or_key, ExtendedKey) else ExtendedKey.from_seed(seed_or_key)
    return root.derive_path(path)
