"""
secp256k1 key pairs.

Thin layer over the ``ecdsa`` package: private-key validation, public-key
derivation in compressed (33-byte) and uncompressed (64-byte X||Y) form,
and point decompression.
"""

from __future__ import annotations

from dataclasses import dataclass

from ecdsa import SECP256k1, SigningKey, VerifyingKey
from ecdsa.errors import MalformedPointError

from etherseed_core.crypto_utils import CURVE_ORDER


def is_valid_private_key(private_key: bytes) -> bool:
    if len(private_key) != 32:
        return False
    return 0 < int.from_bytes(private_key, "big") < CURVE_ORDER


def _signing_key(private_key: bytes) -> SigningKey:
    if not is_valid_private_key(private_key):
        raise ValueError("Private key must be 32 bytes in the range [1, n-1]")
    return SigningKey.from_string(private_key, curve=SECP256k1)


def private_to_public(private_key: bytes, compressed: bool = True) -> bytes:
    """Return the 33-byte compressed or 64-byte X||Y public key."""
    vk = _signing_key(private_key).get_verifying_key()
    return vk.to_string("compressed") if compressed else vk.to_string("raw")


def load_public_key(public_key: bytes) -> VerifyingKey:
    """
    Parse a public key in compressed (33), prefixed uncompressed (65) or
    raw X||Y (64) form.  Raises ValueError if it is not on the curve.
    """
    if len(public_key) not in (33, 64, 65):
        raise ValueError(f"Unsupported public key length {len(public_key)}")
    try:
        return VerifyingKey.from_string(public_key, curve=SECP256k1)
    except MalformedPointError as exc:
        raise ValueError(f"Public key is not a valid secp256k1 point: {exc}") from exc


def decompress_public_key(public_key: bytes) -> bytes:
    """Return the 64-byte X||Y form of any supported public key encoding."""
    return load_public_key(public_key).to_string("raw")


def compress_public_key(public_key: bytes) -> bytes:
    return load_public_key(public_key).to_string("compressed")


@dataclass(frozen=True)
class KeyPair:
    """A private key with both encodings of its public key."""

    private_key: bytes
    public_key: bytes               # 33-byte compressed
    public_key_uncompressed: bytes  # 64-byte X||Y

    @classmethod
    def from_private_key(cls, private_key: bytes) -> KeyPair:
        vk = _signing_key(private_key).get_verifying_key()
        return cls(
            private_key=bytes(private_key),
            public_key=vk.to_string("compressed"),
            public_key_uncompressed=vk.to_string("raw"),
        )

    @property
    def address(self) -> bytes:
        from etherseed_core.address import public_key_to_address
        return public_key_to_address(self.public_key_uncompressed)

    @property
    def checksum_address(self) -> str:
        from etherseed_core.address import to_checksum_address
        return to_checksum_address(self.address)

    def __repr__(self) -> str:
        # never print the private key
        return f"KeyPair(public_key={self.public_key.hex()})"
