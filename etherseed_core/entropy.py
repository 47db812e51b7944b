"""
Entropy source for mnemonic generation.

This is the only impure component of the derivation pipeline: it reads
the operating system CSPRNG and nothing else.  Everything downstream is a
deterministic function of the bytes returned here.
"""

from __future__ import annotations

import os

from etherseed_core.errors import InvalidEntropyLength

VALID_STRENGTHS = (128, 160, 192, 224, 256)


def check_strength(bits: int) -> None:
    if bits not in VALID_STRENGTHS:
        raise InvalidEntropyLength(
            f"Strength must be 128/160/192/224/256 bits, got {bits}"
        )


def generate_entropy(bits: int = 128) -> bytes:
    """Return ``bits // 8`` fresh bytes from the OS CSPRNG."""
    check_strength(bits)
    return os.urandom(bits // 8)
