"""
Shared pytest fixtures for the EtherSeed test suite.
"""

import pytest

from etherseed_core.bip32 import ExtendedKey
from etherseed_core.bip39 import mnemonic_to_seed
from etherseed_core.wallet import Wallet

ABANDON_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)

# BIP-32 test vector 1
VECTOR1_SEED = bytes.fromhex("000102030405060708090a0b0c0d0e0f")

# private key used by the EIP-155 example transaction
EIP155_KEY = bytes.fromhex("46" * 32)


@pytest.fixture
def abandon_mnemonic():
    return ABANDON_MNEMONIC


@pytest.fixture
def vector1_master():
    """Master key of BIP-32 test vector 1."""
    return ExtendedKey.from_seed(VECTOR1_SEED)


@pytest.fixture
def abandon_seed():
    return mnemonic_to_seed(ABANDON_MNEMONIC)


@pytest.fixture
def abandon_wallet():
    """First Ethereum account of the all-abandon mnemonic."""
    return Wallet.from_mnemonic(ABANDON_MNEMONIC)


@pytest.fixture
def eip155_wallet():
    return Wallet.from_private_key(EIP155_KEY)
