"""
Wallet facade for EtherSeed.

A wallet is one derived account: the key pair found at a BIP-44 path below
a mnemonic's master key.  It provides:
  - HD wallet creation / recovery from a BIP-39 mnemonic
  - Address derivation (EIP-55 checksummed)
  - EIP-155 transaction building and signing

Wallets are never written to disk; persisting the mnemonic is up to the
caller.
"""

from __future__ import annotations

from typing import Sequence

from etherseed_core.bip32 import ExtendedKey
from etherseed_core.bip39 import generate_mnemonic, mnemonic_to_entropy, mnemonic_to_seed
from etherseed_core.keys import KeyPair
from etherseed_core.path import ETH_COIN_TYPE, bip44_path, format_path, parse_path
from etherseed_core.transaction import SignedTransaction, Transaction, sign_transaction


class Wallet:
    """A single Ethereum account derived from an HD key tree."""

    def __init__(self, keypair: KeyPair, path: str | None = None):
        self.keypair = keypair
        self.path = path
        self.address: str = keypair.checksum_address

    # ---- factory methods ----

    @classmethod
    def from_private_key(cls, private_key: bytes) -> Wallet:
        return cls(KeyPair.from_private_key(private_key))

    @classmethod
    def from_extended_key(cls, node: ExtendedKey, path: str | None = None) -> Wallet:
        return cls(node.to_keypair(), path)

    @classmethod
    def from_path(cls, mnemonic: str, path: str, passphrase: str = "",
                  wordlist: Sequence[str] | None = None) -> Wallet:
        """Recover the account at an arbitrary derivation *path*."""
        mnemonic_to_entropy(mnemonic, wordlist)  # reject typos before seeding
        canonical = format_path(parse_path(path))
        seed = mnemonic_to_seed(mnemonic, passphrase)
        node = ExtendedKey.from_seed(seed).derive_path(canonical)
        return cls.from_extended_key(node, canonical)

    @classmethod
    def from_mnemonic(cls, mnemonic: str, passphrase: str = "",
                      account: int = 0, index: int = 0,
                      wordlist: Sequence[str] | None = None) -> Wallet:
        """
        Create a wallet from a BIP-39 mnemonic phrase.

        Path: m/44'/60'/account'/0/index
        """
        path = bip44_path(ETH_COIN_TYPE, account, 0, index)
        return cls.from_path(mnemonic, path, passphrase, wordlist)

    @classmethod
    def create(cls, strength: int = 128, passphrase: str = "") -> tuple[str, Wallet]:
        """
        Generate a fresh mnemonic and its first account.
        Returns (mnemonic_phrase, wallet).
        """
        mnemonic = generate_mnemonic(strength)
        return mnemonic, cls.from_mnemonic(mnemonic, passphrase)

    # ---- keys ----

    @property
    def private_key(self) -> bytes:
        return self.keypair.private_key

    @property
    def public_key(self) -> bytes:
        """64-byte X||Y public key."""
        return self.keypair.public_key_uncompressed

    # ---- signing ----

    def build_transfer(self, to: str | bytes, value_wei: int, nonce: int,
                       gas_price: int, chain_id: int, gas_limit: int = 21_000,
                       data: bytes = b"") -> Transaction:
        return Transaction.create(to=to, value=value_wei, nonce=nonce, gas_price=gas_price,
                                  gas_limit=gas_limit, data=data, chain_id=chain_id)

    def sign_transaction(self, tx: Transaction) -> SignedTransaction:
        return sign_transaction(tx, self.keypair.private_key)

    # ---- serialisation ----

    def to_dict(self, include_private: bool = False) -> dict:
        d = {
            "address": self.address,
            "path": self.path,
            "public_key": "0x" + self.public_key.hex(),
            "public_key_compressed": "0x" + self.keypair.public_key.hex(),
        }
        if include_private:
            d["private_key"] = "0x" + self.private_key.hex()
        return d

    def __repr__(self) -> str:
        return f"Wallet({self.address})"
