"""
BIP-39 mnemonic support for EtherSeed.

  - Word list loading (canonical lists shipped with the ``mnemonic`` package)
  - Entropy <-> mnemonic encoding with SHA-256 checksum
  - Mnemonic validation
  - Mnemonic + passphrase -> 64-byte seed (PBKDF2-HMAC-SHA512)

Word lists are treated as opaque, index-addressable sequences: the position
of a word in the list is the encoding, so any ordered 2048-entry list works.
"""

from __future__ import annotations

import hashlib
import logging
import unicodedata
from typing import Sequence

from mnemonic import Mnemonic

from etherseed_core.entropy import check_strength, generate_entropy
from etherseed_core.errors import (
    InvalidChecksum,
    InvalidEntropyLength,
    InvalidWord,
    InvalidWordCount,
)

logger = logging.getLogger("etherseed_bip39")

WORDLIST_SIZE = 2048
VALID_ENTROPY_BYTES = (16, 20, 24, 28, 32)
VALID_WORD_COUNTS = (12, 15, 18, 21, 24)
PBKDF2_ROUNDS = 2048
SEED_BYTES = 64


# ===================================================================
#  Word lists
# ===================================================================

_WORDLISTS: dict[str, list[str]] = {}
_INDEXES: dict[str, dict[str, int]] = {}


def get_wordlist(language: str = "english") -> list[str]:
    """Return the canonical 2048-word list for *language* (cached)."""
    if language not in _WORDLISTS:
        words = [_nfkd(w) for w in Mnemonic(language).wordlist]
        _check_wordlist(words)
        _WORDLISTS[language] = words
        _INDEXES[language] = {w: i for i, w in enumerate(words)}
    return _WORDLISTS[language]


def _check_wordlist(words: Sequence[str]) -> None:
    if len(words) != WORDLIST_SIZE:
        raise ValueError(f"Word list must contain exactly {WORDLIST_SIZE} words, got {len(words)}")


def _resolve(wordlist: Sequence[str] | None) -> tuple[Sequence[str], dict[str, int]]:
    if wordlist is None:
        words = get_wordlist()
        return words, _INDEXES["english"]
    _check_wordlist(wordlist)
    return wordlist, {_nfkd(w): i for i, w in enumerate(wordlist)}


def _nfkd(text: str) -> str:
    return unicodedata.normalize("NFKD", text)


def normalize_mnemonic(mnemonic: str) -> str:
    """NFKD-normalise, lower-case and collapse whitespace to single spaces."""
    return " ".join(_nfkd(mnemonic).lower().split())


# ===================================================================
#  Encoding
# ===================================================================

def entropy_to_mnemonic(entropy: bytes, wordlist: Sequence[str] | None = None) -> str:
    """
    Encode entropy as a mnemonic sentence.

    The checksum is the first ``len(entropy) * 8 / 32`` bits of
    SHA-256(entropy), appended to the entropy bits; the stream is then cut
    into 11-bit word indexes.
    """
    if len(entropy) not in VALID_ENTROPY_BYTES:
        raise InvalidEntropyLength(
            f"Invalid entropy length: {len(entropy)} bytes. Must be 16, 20, 24, 28 or 32"
        )
    words, _ = _resolve(wordlist)

    ent_bits = len(entropy) * 8
    cs_bits = ent_bits // 32
    checksum = hashlib.sha256(entropy).digest()[0] >> (8 - cs_bits)
    stream = (int.from_bytes(entropy, "big") << cs_bits) | checksum
    total = ent_bits + cs_bits

    out = []
    for shift in range(total - 11, -1, -11):
        out.append(words[(stream >> shift) & 0x7FF])
    return " ".join(out)


def mnemonic_to_entropy(mnemonic: str, wordlist: Sequence[str] | None = None) -> bytes:
    """
    Decode a mnemonic back to its entropy, verifying the checksum.

    Raises InvalidWordCount, InvalidWord or InvalidChecksum.
    """
    _, index = _resolve(wordlist)
    words = normalize_mnemonic(mnemonic).split(" ") if mnemonic.strip() else []
    if len(words) not in VALID_WORD_COUNTS:
        raise InvalidWordCount(
            f"Invalid mnemonic: expected 12/15/18/21/24 words, got {len(words)}"
        )

    stream = 0
    for pos, word in enumerate(words):
        idx = index.get(word)
        if idx is None:
            raise InvalidWord(pos)
        stream = (stream << 11) | idx

    cs_bits = len(words) // 3
    ent_bits = len(words) * 11 - cs_bits
    entropy = (stream >> cs_bits).to_bytes(ent_bits // 8, "big")
    checksum = stream & ((1 << cs_bits) - 1)
    expected = hashlib.sha256(entropy).digest()[0] >> (8 - cs_bits)
    if checksum != expected:
        raise InvalidChecksum("Mnemonic checksum does not match")
    return entropy


def validate_mnemonic(mnemonic: str, wordlist: Sequence[str] | None = None) -> bool:
    """True if every word is known and the checksum verifies."""
    try:
        mnemonic_to_entropy(mnemonic, wordlist)
    except (InvalidWordCount, InvalidWord, InvalidChecksum):
        return False
    return True


def generate_mnemonic(strength: int = 128, wordlist: Sequence[str] | None = None) -> str:
    """Generate a new mnemonic from fresh CSPRNG entropy."""
    check_strength(strength)
    mnemonic = entropy_to_mnemonic(generate_entropy(strength), wordlist)
    logger.debug(f"Generated {strength // 32 * 3}-word mnemonic")
    return mnemonic


# ===================================================================
#  Seed
# ===================================================================

def mnemonic_to_seed(mnemonic: str, passphrase: str = "") -> bytes:
    """
    Stretch a mnemonic into a 64-byte seed (BIP-39).

    password = normalised NFKD mnemonic, salt = "mnemonic" + NFKD(passphrase),
    2048 rounds of PBKDF2-HMAC-SHA512.  Word content is not validated.
    """
    password = normalize_mnemonic(mnemonic).encode("utf-8")
    salt = ("mnemonic" + _nfkd(passphrase)).encode("utf-8")
    return hashlib.pbkdf2_hmac("sha512", password, salt, PBKDF2_ROUNDS, dklen=SEED_BYTES)
