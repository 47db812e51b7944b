"""
Ethereum address derivation and EIP-55 checksum encoding.

Address = last 20 bytes of Keccak-256(X||Y) of the uncompressed public key.
The mixed-case checksum form carries no extra information: it is a pure
function of the lower-case hex text.
"""

from __future__ import annotations

import re

from etherseed_core.crypto_utils import keccak256
from etherseed_core.errors import InvalidAddress
from etherseed_core.keys import decompress_public_key

ADDRESS_BYTES = 20

_HEX40_RE = re.compile(r"^[0-9a-fA-F]{40}$")


def public_key_to_address(public_key: bytes) -> bytes:
    """Derive the 20-byte address from a compressed, prefixed or raw public key."""
    if len(public_key) != 64:
        public_key = decompress_public_key(public_key)
    return keccak256(public_key)[-ADDRESS_BYTES:]


def _strip_prefix(text: str) -> str:
    return text[2:] if text[:2] in ("0x", "0X") else text


def to_checksum_address(address: bytes | str) -> str:
    """
    EIP-55: upper-case each hex letter whose nibble in
    Keccak-256(lower-case hex) is >= 8.
    """
    if isinstance(address, (bytes, bytearray)):
        if len(address) != ADDRESS_BYTES:
            raise InvalidAddress(f"Address must be {ADDRESS_BYTES} bytes, got {len(address)}")
        lower = bytes(address).hex()
    else:
        lower = _strip_prefix(address.strip())
        if not _HEX40_RE.match(lower):
            raise InvalidAddress(f"Address must be 40 hex characters: {address!r}")
        lower = lower.lower()

    digest = keccak256(lower.encode("ascii")).hex()
    return "0x" + "".join(
        ch.upper() if int(digest[i], 16) >= 8 else ch
        for i, ch in enumerate(lower)
    )


def is_checksum_address(text: str) -> bool:
    try:
        return to_checksum_address(text) == "0x" + _strip_prefix(text.strip())
    except InvalidAddress:
        return False


def address_to_bytes(text: str) -> bytes:
    """
    Parse address text.  All-lower or all-upper hex is accepted as is;
    mixed case must carry a valid EIP-55 checksum.
    """
    body = _strip_prefix(text.strip())
    if not _HEX40_RE.match(body):
        raise InvalidAddress(f"Address must be 40 hex characters: {text!r}")
    mixed = body != body.lower() and body != body.upper()
    if mixed and not is_checksum_address(body):
        raise InvalidAddress(f"Address has an invalid EIP-55 checksum: {text!r}")
    return bytes.fromhex(body)
