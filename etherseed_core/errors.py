"""
Exception hierarchy for EtherSeed.

Every failure raised by the core derives from :class:`WalletError`.
Kinds that reject malformed caller input also derive from ``ValueError``
so that generic ``except ValueError`` handlers keep working.

Messages never contain seed or private-key bytes.
"""

from __future__ import annotations


class WalletError(Exception):
    """Base class for all EtherSeed errors."""


# ===================================================================
#  Mnemonic / entropy
# ===================================================================

class MnemonicError(WalletError, ValueError):
    """Malformed or tampered mnemonic input."""


class InvalidEntropyLength(MnemonicError):
    """Entropy is not 128/160/192/224/256 bits long."""


class InvalidWordCount(MnemonicError):
    """Mnemonic does not have 12/15/18/21/24 words."""


class InvalidWord(MnemonicError):
    """A mnemonic word is not in the word list."""

    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Word #{position + 1} is not in the word list")


class InvalidChecksum(MnemonicError):
    """Checksum bits of the mnemonic do not match its entropy."""


# ===================================================================
#  BIP-32 derivation
# ===================================================================

class KeyDerivationError(WalletError):
    """Extended key derivation failed."""


class InvalidSeedLength(KeyDerivationError, ValueError):
    """Seed is shorter than 16 or longer than 64 bytes."""


class InvalidMasterKey(KeyDerivationError):
    """Master private key is zero or not below the curve order."""


class InvalidChildKey(KeyDerivationError):
    """Child key at a specific index falls outside the curve range."""

    def __init__(self, segment: str):
        self.segment = segment
        super().__init__(f"Derivation produced an invalid key at segment {segment}")


# ===================================================================
#  Derivation paths
# ===================================================================

class PathError(WalletError, ValueError):
    """Malformed derivation path."""


class InvalidPathSyntax(PathError):
    """Path text does not follow m/index[']/..."""


class IndexOutOfRange(PathError):
    """Path index is 2^31 or larger."""


# ===================================================================
#  Addresses / transactions
# ===================================================================

class InvalidAddress(WalletError, ValueError):
    """Address text has the wrong length, bad hex, or a bad EIP-55 checksum."""


class TransactionError(WalletError):
    """Transaction construction or signing failed."""


class SigningError(TransactionError):
    """ECDSA signing or public-key recovery failed."""


class EncodingError(TransactionError, ValueError):
    """A field cannot be RLP-encoded (negative, oversized or wrong type)."""


class DecodingError(TransactionError, ValueError):
    """Bytes are not a canonical RLP structure of the expected shape."""


# ===================================================================
#  Transport
# ===================================================================

class TransportError(WalletError):
    """Network transport failure."""


class RpcError(TransportError):
    """Every configured JSON-RPC endpoint failed."""

    def __init__(self, method: str, last_error: str):
        self.method = method
        self.last_error = last_error
        super().__init__(f"All RPC endpoints failed for {method}. Last error: {last_error}")
