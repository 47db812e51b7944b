"""
Test suite for etherseed_core.bip32 — hierarchical deterministic keys.

Covers:
  - BIP-32 test vector 1 (xprv / xpub at several depths)
  - Master key from seed, seed length limits
  - Hardened vs normal derivation, hardened bit given in the index
  - Fingerprints and parentage metadata
  - Base58Check serialisation round trip and rejection of bad payloads
  - Public-only keys refuse derivation
"""

import unittest
from unittest.mock import patch

import pytest

from etherseed_core.bip32 import ExtendedKey, derive_path, master_key
from etherseed_core.crypto_utils import CURVE_ORDER, base58check_encode
from etherseed_core.errors import (
    InvalidChildKey,
    InvalidMasterKey,
    InvalidPathSyntax,
    InvalidSeedLength,
    KeyDerivationError,
    WalletError,
)
from etherseed_core.path import HARDENED

SEED = bytes.fromhex("000102030405060708090a0b0c0d0e0f")

VECTOR1 = {
    "m": (
        "xprv9s21ZrQH143K3QTDL4LXw2F7HEK3wJUD2nW2nRk4stbPy6cq3jPPqjiChkVvvNKmPGJxWUtg6LnF5kejMRNNU3TGtRBeJgk33yuGBxrMPHi",
        "xpub661MyMwAqRbcFtXgS5sYJABqqG9YLmC4Q1Rdap9gSE8NqtwybGhePY2gZ29ESFjqJoCu1Rupje8YtGqsefD265TMg7usUDFdp6W1EGMcet8",
    ),
    "m/0'": (
        "xprv9uHRZZhk6KAJC1avXpDAp4MDc3sQKNxDiPvvkX8Br5ngLNv1TxvUxt4cV1rGL5hj6KCesnDYUhd7oWgT11eZG7XnxHrnYeSvkzY7d2bhkJ7",
        "xpub68Gmy5EdvgibQVfPdqkBBCHxA5htiqg55crXYuXoQRKfDBFA1WEjWgP6LHhwBZeNK1VTsfTFUHCdrfp1bgwQ9xv5ski8PX9rL2dZXvgGDnw",
    ),
}

VECTOR1_XPRV_DEEP = {
    "m/0'/1": "xprv9wTYmMFdV23N2TdNG573QoEsfRrWKQgWeibmLntzniatZvR9BmLnvSxqu53Kw1UmYPxLgboyZQaXwTCg8MSY3H2EU4pWcQDnRnrVA1xe8fs",
    "m/0'/1/2'": "xprv9z4pot5VBttmtdRTWfWQmoH1taj2axGVzFqSb8C9xaxKymcFzXBDptWmT7FwuEzG3ryjH4ktypQSAewRiNMjANTtpgP4mLTj34bhnZX7UiM",
}


# ═══════════════════════════════════════════════════════════════════
#  Master key
# ═══════════════════════════════════════════════════════════════════

class TestMasterKey(unittest.TestCase):

    def test_invalid_master_key(self):
        for il in (0, CURVE_ORDER, CURVE_ORDER + 1):
            digest = il.to_bytes(32, "big") + bytes(32)
            with patch("etherseed_core.bip32.hmac_sha512", return_value=digest):
                with self.assertRaises(InvalidMasterKey):
                    ExtendedKey.from_seed(SEED)

    def test_vector1_master_key_material(self):
        m = ExtendedKey.from_seed(SEED)
        self.assertEqual(
            m.private_key.hex(),
            "e8f32e723decf4051aefac8e2c93c9c5b214313817cdb01a1494b917c8436b35",
        )
        self.assertEqual(
            m.chain_code.hex(),
            "873dff81c02f525623fd1fe5167eac3a55a049de3d314bb42ee227ffed37d508",
        )
        self.assertEqual(m.depth, 0)
        self.assertEqual(m.parent_fingerprint, b"\x00" * 4)
        self.assertEqual(m.child_index, 0)

    def test_master_key_helper(self):
        self.assertEqual(master_key(SEED), ExtendedKey.from_seed(SEED))

    def test_seed_length_limits(self):
        ExtendedKey.from_seed(b"\x01" * 16)
        ExtendedKey.from_seed(b"\x01" * 64)
        for size in (0, 15, 65, 128):
            with self.assertRaises(InvalidSeedLength):
                ExtendedKey.from_seed(b"\x01" * size)

    def test_seed_length_error_is_value_error(self):
        with self.assertRaises(ValueError):
            ExtendedKey.from_seed(b"")


# ═══════════════════════════════════════════════════════════════════
#  Test vector 1
# ═══════════════════════════════════════════════════════════════════

class TestVector1(unittest.TestCase):

    def test_xprv_and_xpub(self):
        m = ExtendedKey.from_seed(SEED)
        for path, (xprv, xpub) in VECTOR1.items():
            node = m.derive_path(path)
            self.assertEqual(node.to_base58(), xprv, path)
            self.assertEqual(node.neuter().to_base58(), xpub, path)

    def test_deeper_levels(self):
        m = ExtendedKey.from_seed(SEED)
        for path, xprv in VECTOR1_XPRV_DEEP.items():
            self.assertEqual(m.derive_path(path).to_base58(), xprv, path)

    def test_stepwise_equals_path(self):
        m = ExtendedKey.from_seed(SEED)
        stepwise = m.derive_child(0, hardened=True).derive_child(1).derive_child(2, hardened=True)
        self.assertEqual(stepwise, m.derive_path("m/0'/1/2'"))

    def test_module_level_derive_path(self):
        from_seed = derive_path(SEED, "m/0'/1")
        from_key = derive_path(ExtendedKey.from_seed(SEED), "m/0'/1")
        self.assertEqual(from_seed, from_key)
        self.assertEqual(from_seed.to_base58(), VECTOR1_XPRV_DEEP["m/0'/1"])


# ═══════════════════════════════════════════════════════════════════
#  Derivation behaviour
# ═══════════════════════════════════════════════════════════════════

class TestDerivation(unittest.TestCase):

    def setUp(self):
        self.master = ExtendedKey.from_seed(SEED)

    def test_hardened_bit_in_index(self):
        self.assertEqual(
            self.master.derive_child(HARDENED + 5),
            self.master.derive_child(5, hardened=True),
        )

    def test_hardened_differs_from_normal(self):
        self.assertNotEqual(
            self.master.derive_child(0).private_key,
            self.master.derive_child(0, hardened=True).private_key,
        )

    def test_metadata(self):
        child = self.master.derive_child(7, hardened=True)
        self.assertEqual(child.depth, 1)
        self.assertEqual(child.child_index, HARDENED + 7)
        self.assertTrue(child.hardened)
        self.assertEqual(child.parent_fingerprint, self.master.fingerprint)

    def test_master_fingerprint(self):
        self.assertEqual(self.master.fingerprint.hex(), "3442193e")

    def test_root_path_returns_self(self):
        self.assertIs(self.master.derive_path("m"), self.master)

    def test_deterministic(self):
        path = "m/44'/60'/0'/0/3"
        self.assertEqual(self.master.derive_path(path), ExtendedKey.from_seed(SEED).derive_path(path))

    def test_index_too_large(self):
        with self.assertRaises(KeyDerivationError):
            self.master.derive_child(2**32)
        with self.assertRaises(KeyDerivationError):
            self.master.derive_child(-1)

    def test_bad_path_propagates(self):
        with self.assertRaises(InvalidPathSyntax):
            self.master.derive_path("m/0/x")

    def test_public_only_key_cannot_derive(self):
        pub = self.master.neuter()
        self.assertFalse(pub.is_private)
        with self.assertRaises(KeyDerivationError):
            pub.derive_child(0)
        with self.assertRaises(KeyDerivationError):
            _ = pub.private_key

    def test_neuter_keeps_public_key(self):
        pub = self.master.neuter()
        self.assertEqual(pub.public_key, self.master.public_key)
        self.assertEqual(pub.fingerprint, self.master.fingerprint)
        self.assertIs(pub.neuter(), pub)

    def test_to_keypair(self):
        kp = self.master.derive_path("m/0'").to_keypair()
        self.assertEqual(kp.public_key, self.master.derive_path("m/0'").public_key)

    def test_repr_hides_private_key(self):
        text = repr(self.master)
        self.assertNotIn(self.master.private_key.hex(), text)
        self.assertIn("depth=0", text)

    def test_il_at_curve_order_rejected(self):
        digest = CURVE_ORDER.to_bytes(32, "big") + bytes(32)
        with patch("etherseed_core.bip32.hmac_sha512", return_value=digest):
            with self.assertRaises(InvalidChildKey) as ctx:
                self.master.derive_child(7, hardened=True)
        self.assertEqual(ctx.exception.segment, "7'")
        self.assertIn("7'", str(ctx.exception))
        self.assertIsInstance(ctx.exception, WalletError)

    def test_zero_child_key_rejected(self):
        parent = int.from_bytes(self.master.private_key, "big")
        digest = (CURVE_ORDER - parent).to_bytes(32, "big") + bytes(32)
        with patch("etherseed_core.bip32.hmac_sha512", return_value=digest):
            with self.assertRaises(InvalidChildKey) as ctx:
                self.master.derive_child(3)
        self.assertEqual(ctx.exception.segment, "3")

    def test_invalid_child_key_not_retried(self):
        digest = CURVE_ORDER.to_bytes(32, "big") + bytes(32)
        with patch("etherseed_core.bip32.hmac_sha512", return_value=digest) as hmac_mock:
            with self.assertRaises(InvalidChildKey):
                self.master.derive_path("m/0'")
        self.assertEqual(hmac_mock.call_count, 1)


# ═══════════════════════════════════════════════════════════════════
#  Serialisation
# ═══════════════════════════════════════════════════════════════════

class TestSerialisation(unittest.TestCase):

    def test_round_trip_private(self):
        node = ExtendedKey.from_seed(SEED).derive_path("m/0'/1")
        self.assertEqual(ExtendedKey.from_base58(node.to_base58()), node)

    def test_round_trip_public(self):
        xpub = VECTOR1["m/0'"][1]
        node = ExtendedKey.from_base58(xpub)
        self.assertFalse(node.is_private)
        self.assertEqual(node.to_base58(), xpub)

    def test_corrupted_checksum(self):
        xprv = VECTOR1["m"][0]
        bad = xprv[:-1] + ("j" if xprv[-1] != "j" else "k")
        with self.assertRaises(KeyDerivationError):
            ExtendedKey.from_base58(bad)

    def test_wrong_payload_length(self):
        with self.assertRaises(KeyDerivationError):
            ExtendedKey.from_base58(base58check_encode(b"\x04\x88\xad\xe4" + b"\x00" * 10))

    def test_unknown_version(self):
        with self.assertRaises(KeyDerivationError):
            ExtendedKey.from_base58(base58check_encode(b"\x01\x02\x03\x04" + b"\x00" * 74))


@pytest.mark.parametrize("chain_code_len", [0, 31, 33])
def test_chain_code_length_checked(chain_code_len):
    with pytest.raises(KeyDerivationError):
        ExtendedKey(key=b"\x01" * 32, chain_code=b"\x00" * chain_code_len)


def test_zero_private_key_rejected():
    with pytest.raises(KeyDerivationError):
        ExtendedKey(key=b"\x00" * 32, chain_code=b"\x00" * 32)


if __name__ == "__main__":
    unittest.main()
