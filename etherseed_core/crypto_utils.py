"""
Cryptographic primitives shared by the EtherSeed core.

  - SHA-256 / HMAC-SHA512 / RIPEMD-160 / Hash160
  - Keccak-256 (the pre-standard Keccak padding Ethereum uses, NOT SHA3-256)
  - Base58Check encoding (Bitcoin alphabet) for extended keys
  - secp256k1 constants
"""

from __future__ import annotations

import hashlib
import hmac

from Crypto.Hash import RIPEMD160, keccak
from ecdsa import SECP256k1

# secp256k1 group order
CURVE_ORDER: int = SECP256k1.order

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


# ===================================================================
#  Hashes
# ===================================================================

def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def sha256d(data: bytes) -> bytes:
    """Double SHA-256."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def keccak256(data: bytes) -> bytes:
    """Keccak-256 as used by Ethereum for addresses and transaction hashes."""
    return keccak.new(digest_bits=256, data=data).digest()


def ripemd160(data: bytes) -> bytes:
    # pycryptodome, since OpenSSL 3 builds of hashlib may lack ripemd160
    return RIPEMD160.new(data).digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD-160(SHA-256(data)), used for BIP-32 fingerprints."""
    return ripemd160(sha256(data))


def hmac_sha512(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha512).digest()


# ===================================================================
#  Base58 / Base58Check
# ===================================================================

def base58_encode(data: bytes) -> str:
    """Encode bytes in Base58, one leading '1' per leading zero byte."""
    num = int.from_bytes(data, "big")
    chars = []
    while num > 0:
        num, rem = divmod(num, 58)
        chars.append(BASE58_ALPHABET[rem])
    pad = len(data) - len(data.lstrip(b"\x00"))
    return BASE58_ALPHABET[0] * pad + "".join(reversed(chars))


def base58_decode(text: str) -> bytes:
    num = 0
    for ch in text:
        idx = BASE58_ALPHABET.find(ch)
        if idx < 0:
            raise ValueError(f"Invalid Base58 character {ch!r}")
        num = num * 58 + idx
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    pad = len(text) - len(text.lstrip(BASE58_ALPHABET[0]))
    return b"\x00" * pad + body


def base58check_encode(payload: bytes) -> str:
    return base58_encode(payload + sha256d(payload)[:4])


def base58check_decode(text: str) -> bytes:
    """Decode Base58Check text; raise ValueError if the checksum is wrong."""
    raw = base58_decode(text)
    if len(raw) < 4:
        raise ValueError("Base58Check payload too short")
    payload, checksum = raw[:-4], raw[-4:]
    if not hmac.compare_digest(sha256d(payload)[:4], checksum):
        raise ValueError("Base58Check checksum mismatch")
    return payload
