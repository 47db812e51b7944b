"""
TOML-based configuration for EtherSeed.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

Usage:
    from etherseed_core.config import load_config
    cfg = load_config("etherseed.toml")

Example file:

    [network]
    name = "sepolia"
    rpc_urls = ["https://ethereum-sepolia-rpc.publicnode.com"]
    timeout_seconds = 30

    [wallet]
    strength = 256
    account = 0

    [logging]
    level = "DEBUG"
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


# Public RPC endpoints tried in order; the first healthy one wins.
SEPOLIA_CHAIN_ID = 11155111
SEPOLIA_RPC_URLS = [
    "https://ethereum-sepolia-rpc.publicnode.com",
    "https://rpc.sepolia.org",
    "https://sepolia.gateway.tenderly.co",
    "https://ethereum-sepolia.blockpi.network/v1/rpc/public",
]
MAINNET_CHAIN_ID = 1
MAINNET_RPC_URLS = ["https://eth.llamarpc.com"]

NETWORK_PRESETS: dict[str, tuple[int, list[str]]] = {
    "sepolia": (SEPOLIA_CHAIN_ID, SEPOLIA_RPC_URLS),
    "mainnet": (MAINNET_CHAIN_ID, MAINNET_RPC_URLS),
}


@dataclass
class NetworkConfig:
    """Chain and JSON-RPC endpoint settings.

    ``chain_id`` and ``rpc_urls`` left at their zero values are filled in
    from the preset named by ``name``.
    """
    name: str = "sepolia"
    chain_id: int = 0
    rpc_urls: list[str] = field(default_factory=list)
    timeout_seconds: float = 30.0


@dataclass
class WalletConfig:
    """Key derivation defaults."""
    strength: int = 128          # entropy bits for new mnemonics
    language: str = "english"
    account: int = 0
    address_index: int = 0
    gas_limit: int = 21_000      # plain ETH transfer


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class EtherSeedConfig:
    """Top-level configuration container."""
    network: NetworkConfig = field(default_factory=NetworkConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def apply_network_preset(net: NetworkConfig) -> None:
    preset = NETWORK_PRESETS.get(net.name.lower())
    if preset is None:
        if not net.chain_id or not net.rpc_urls:
            raise ValueError(
                f"Unknown network {net.name!r}: set chain_id and rpc_urls explicitly"
            )
        return
    chain_id, urls = preset
    if not net.chain_id:
        net.chain_id = chain_id
    if not net.rpc_urls:
        net.rpc_urls = list(urls)


def load_config(path: str | None = None) -> EtherSeedConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        ETHERSEED_NETWORK     -> network.name
        ETHERSEED_CHAIN_ID    -> network.chain_id
        ETHERSEED_RPC_URLS    -> network.rpc_urls   (comma-separated)
        ETHERSEED_RPC_TIMEOUT -> network.timeout_seconds
        ETHERSEED_LOG_LEVEL   -> logging.level
        ETHERSEED_LOG_FMT     -> logging.format
    """
    cfg = EtherSeedConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("network", cfg.network),
                ("wallet", cfg.wallet),
                ("logging", cfg.logging),
            ]:
                if section_name in data:
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("ETHERSEED_NETWORK"):
        if v != cfg.network.name:
            cfg.network.chain_id = 0
            cfg.network.rpc_urls = []
        cfg.network.name = v
    if v := os.environ.get("ETHERSEED_CHAIN_ID"):
        cfg.network.chain_id = int(v)
    if v := os.environ.get("ETHERSEED_RPC_URLS"):
        cfg.network.rpc_urls = [u.strip() for u in v.split(",") if u.strip()]
    if v := os.environ.get("ETHERSEED_RPC_TIMEOUT"):
        cfg.network.timeout_seconds = float(v)
    if v := os.environ.get("ETHERSEED_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("ETHERSEED_LOG_FMT"):
        cfg.logging.format = v

    apply_network_preset(cfg.network)
    return cfg
