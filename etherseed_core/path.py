"""
BIP-32 / BIP-44 derivation path parsing.

Grammar: ``m(/[0-9]+['hH]?)*``.  A trailing ``'`` (or ``h``) marks a
hardened segment.  ``"m"`` alone is the root.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from etherseed_core.errors import IndexOutOfRange, InvalidPathSyntax

HARDENED = 0x80000000

# SLIP-44 coin type for Ether
ETH_COIN_TYPE = 60
ETH_DEFAULT_PATH = "m/44'/60'/0'/0/0"

_SEGMENT_RE = re.compile(r"([0-9]+)(['hH]?)")

# 2**31 - 1 has ten digits
_MAX_INDEX_DIGITS = 10


class PathSegment(NamedTuple):
    index: int
    hardened: bool = False

    @property
    def child_number(self) -> int:
        """Index as it appears on the wire, hardened bit included."""
        return self.index | HARDENED if self.hardened else self.index

    def __str__(self) -> str:
        return f"{self.index}'" if self.hardened else str(self.index)


DerivationPath = tuple[PathSegment, ...]


def parse_path(path: str) -> DerivationPath:
    """Parse a path string into segments.  ``"m"`` yields the empty path."""
    parts = path.strip().split("/")
    if parts[0] != "m":
        raise InvalidPathSyntax(f"Derivation path must start with 'm': {path!r}")

    segments = []
    for part in parts[1:]:
        match = _SEGMENT_RE.fullmatch(part)
        if match is None:
            raise InvalidPathSyntax(f"Invalid path segment {part!r} in {path!r}")
        digits = match.group(1).lstrip("0") or "0"
        if len(digits) > _MAX_INDEX_DIGITS:
            raise IndexOutOfRange(f"Index {part[:12]}... ({len(digits)} digits) is not below 2^31")
        index = int(digits)
        if index >= HARDENED:
            raise IndexOutOfRange(f"Index {index} in {path!r} is not below 2^31")
        segments.append(PathSegment(index, bool(match.group(2))))
    return tuple(segments)


def format_path(path: DerivationPath) -> str:
    return "/".join(["m", *(str(seg) for seg in path)])


def bip44_path(coin_type: int = ETH_COIN_TYPE, account: int = 0,
               change: int = 0, address_index: int = 0) -> str:
    """Build ``m/44'/coin'/account'/change/address_index``."""
    for name, value in (("coin_type", coin_type), ("account", account),
                        ("change", change), ("address_index", address_index)):
        if not 0 <= value < HARDENED:
            raise IndexOutOfRange(f"{name} must be between 0 and 2^31 - 1, got {value}")
    return f"m/44'/{coin_type}'/{account}'/{change}/{address_index}"
