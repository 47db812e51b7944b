"""
EtherSeed - deterministic Ethereum key material from a single mnemonic.

Key features:
- BIP-39 mnemonic generation, validation and seed stretching
- BIP-32 / BIP-44 hierarchical key derivation over secp256k1
- Keccak-256 addresses with EIP-55 checksums
- RLP encoding and EIP-155 replay-protected transaction signing
- JSON-RPC transport with multi-endpoint failover
"""

__version__ = "0.3.0"
__all__ = [
    "address",
    "bip32",
    "bip39",
    "config",
    "crypto_utils",
    "entropy",
    "errors",
    "keys",
    "network",
    "path",
    "rlp",
    "transaction",
    "units",
    "wallet",
]
