"""
Tests for etherseed_core.config — TOML configuration and environment overrides.

Covers:
  - Default values for all dataclass sections
  - TOML parsing and section merging
  - Network presets filling chain id and endpoints
  - Environment variable overrides (precedence over TOML)
  - _merge helper edge cases
  - Missing / broken TOML files
"""

from __future__ import annotations

import os
import tempfile
import textwrap
import unittest
from unittest.mock import patch

from etherseed_core.config import (
    MAINNET_CHAIN_ID,
    SEPOLIA_CHAIN_ID,
    SEPOLIA_RPC_URLS,
    EtherSeedConfig,
    LoggingConfig,
    NetworkConfig,
    WalletConfig,
    _merge,
    apply_network_preset,
    load_config,
)

_ENV_KEYS = (
    "ETHERSEED_NETWORK",
    "ETHERSEED_CHAIN_ID",
    "ETHERSEED_RPC_URLS",
    "ETHERSEED_RPC_TIMEOUT",
    "ETHERSEED_LOG_LEVEL",
    "ETHERSEED_LOG_FMT",
)


def _clean_env() -> dict:
    return {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}


def _write_toml(content: str) -> str:
    fd, path = tempfile.mkstemp(suffix=".toml")
    with os.fdopen(fd, "w") as f:
        f.write(textwrap.dedent(content))
    return path


# ═══════════════════════════════════════════════════════════════════
#  Defaults
# ═══════════════════════════════════════════════════════════════════

class TestDefaults(unittest.TestCase):

    def test_network_defaults(self):
        n = NetworkConfig()
        self.assertEqual(n.name, "sepolia")
        self.assertEqual(n.chain_id, 0)
        self.assertEqual(n.rpc_urls, [])
        self.assertEqual(n.timeout_seconds, 30.0)

    def test_wallet_defaults(self):
        w = WalletConfig()
        self.assertEqual(w.strength, 128)
        self.assertEqual(w.language, "english")
        self.assertEqual(w.account, 0)
        self.assertEqual(w.address_index, 0)
        self.assertEqual(w.gas_limit, 21_000)

    def test_logging_defaults(self):
        log_cfg = LoggingConfig()
        self.assertEqual(log_cfg.level, "INFO")
        self.assertEqual(log_cfg.format, "human")
        self.assertIsNone(log_cfg.file)

    def test_top_level_defaults(self):
        cfg = EtherSeedConfig()
        self.assertIsInstance(cfg.network, NetworkConfig)
        self.assertIsInstance(cfg.wallet, WalletConfig)
        self.assertIsInstance(cfg.logging, LoggingConfig)


# ═══════════════════════════════════════════════════════════════════
#  _merge helper / presets
# ═══════════════════════════════════════════════════════════════════

class TestMerge(unittest.TestCase):

    def test_merge_updates_fields(self):
        w = WalletConfig()
        _merge(w, {"strength": 256, "account": 3})
        self.assertEqual(w.strength, 256)
        self.assertEqual(w.account, 3)

    def test_merge_ignores_unknown_keys(self):
        w = WalletConfig()
        _merge(w, {"unknown_field": 42})
        self.assertFalse(hasattr(w, "unknown_field"))

    def test_merge_hyphenated_keys(self):
        w = WalletConfig()
        _merge(w, {"address-index": 9})
        self.assertEqual(w.address_index, 9)


class TestPresets(unittest.TestCase):

    def test_sepolia_preset(self):
        n = NetworkConfig()
        apply_network_preset(n)
        self.assertEqual(n.chain_id, SEPOLIA_CHAIN_ID)
        self.assertEqual(n.rpc_urls, SEPOLIA_RPC_URLS)
        self.assertIsNot(n.rpc_urls, SEPOLIA_RPC_URLS)

    def test_preset_name_case_insensitive(self):
        n = NetworkConfig(name="Mainnet")
        apply_network_preset(n)
        self.assertEqual(n.chain_id, MAINNET_CHAIN_ID)

    def test_explicit_values_win(self):
        n = NetworkConfig(name="sepolia", rpc_urls=["http://localhost:8545"])
        apply_network_preset(n)
        self.assertEqual(n.rpc_urls, ["http://localhost:8545"])
        self.assertEqual(n.chain_id, SEPOLIA_CHAIN_ID)

    def test_unknown_network_needs_explicit_settings(self):
        with self.assertRaises(ValueError):
            apply_network_preset(NetworkConfig(name="devnet"))
        n = NetworkConfig(name="devnet", chain_id=1337, rpc_urls=["http://127.0.0.1:8545"])
        apply_network_preset(n)
        self.assertEqual(n.chain_id, 1337)


# ═══════════════════════════════════════════════════════════════════
#  TOML loading
# ═══════════════════════════════════════════════════════════════════

class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self._env = patch.dict(os.environ, _clean_env(), clear=True)
        self._env.start()

    def tearDown(self):
        self._env.stop()

    def test_load_no_file(self):
        cfg = load_config(None)
        self.assertEqual(cfg.network.name, "sepolia")
        self.assertEqual(cfg.network.chain_id, SEPOLIA_CHAIN_ID)
        self.assertEqual(cfg.network.rpc_urls, SEPOLIA_RPC_URLS)

    def test_load_missing_file(self):
        cfg = load_config("/tmp/__nonexistent_etherseed__.toml")
        self.assertEqual(cfg.wallet.strength, 128)

    def test_load_toml_sections(self):
        path = _write_toml("""
            [network]
            name = "mainnet"
            timeout_seconds = 5

            [wallet]
            strength = 256
            account = 2

            [logging]
            level = "DEBUG"
            format = "json"
        """)
        try:
            cfg = load_config(path)
        finally:
            os.unlink(path)
        self.assertEqual(cfg.network.chain_id, MAINNET_CHAIN_ID)
        self.assertEqual(cfg.network.timeout_seconds, 5)
        self.assertEqual(cfg.wallet.strength, 256)
        self.assertEqual(cfg.wallet.account, 2)
        self.assertEqual(cfg.logging.level, "DEBUG")
        self.assertEqual(cfg.logging.format, "json")

    def test_broken_toml_raises(self):
        path = _write_toml("[network\nname = ")
        try:
            with self.assertRaises(Exception):
                load_config(path)
        finally:
            os.unlink(path)


class TestEnvOverrides(unittest.TestCase):

    def _load(self, env: dict, toml: str | None = None):
        environ = _clean_env()
        environ.update(env)
        path = _write_toml(toml) if toml else None
        try:
            with patch.dict(os.environ, environ, clear=True):
                return load_config(path)
        finally:
            if path:
                os.unlink(path)

    def test_network_switch_resets_preset(self):
        toml = """
            [network]
            name = "sepolia"
            rpc_urls = ["https://sepolia.example"]
        """
        cfg = self._load({"ETHERSEED_NETWORK": "mainnet"}, toml)
        self.assertEqual(cfg.network.chain_id, MAINNET_CHAIN_ID)
        self.assertNotIn("https://sepolia.example", cfg.network.rpc_urls)

    def test_rpc_urls_comma_separated(self):
        cfg = self._load({"ETHERSEED_RPC_URLS": "http://a:8545, http://b:8545,"})
        self.assertEqual(cfg.network.rpc_urls, ["http://a:8545", "http://b:8545"])

    def test_env_beats_toml(self):
        toml = """
            [logging]
            level = "WARNING"
        """
        cfg = self._load({"ETHERSEED_LOG_LEVEL": "debug", "ETHERSEED_RPC_TIMEOUT": "2.5"}, toml)
        self.assertEqual(cfg.logging.level, "DEBUG")
        self.assertEqual(cfg.network.timeout_seconds, 2.5)

    def test_custom_chain_from_env(self):
        cfg = self._load({
            "ETHERSEED_NETWORK": "devnet",
            "ETHERSEED_CHAIN_ID": "1337",
            "ETHERSEED_RPC_URLS": "http://127.0.0.1:8545",
        })
        self.assertEqual(cfg.network.name, "devnet")
        self.assertEqual(cfg.network.chain_id, 1337)

    def test_log_format_env(self):
        cfg = self._load({"ETHERSEED_LOG_FMT": "json"})
        self.assertEqual(cfg.logging.format, "json")


if __name__ == "__main__":
    unittest.main()
