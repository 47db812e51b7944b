#!/usr/bin/env python3
"""
EtherSeed Wallet Runner - derive Ethereum accounts from a mnemonic and
move ETH over JSON-RPC.

Sub-commands:
  new       Generate a fresh mnemonic and show its first address
  derive    Show address and public key for a mnemonic / path
  balance   Query an account balance
  send      Sign and broadcast an ETH transfer
  menu      Interactive loop (balance, send, account info)

Usage:
    python run_wallet.py new --strength 256
    python run_wallet.py derive --account 0 --index 3
    python run_wallet.py --network sepolia send 0xRecipient 0.01

Environment variables (alternative to flags):
    ETHERSEED_MNEMONIC, ETHERSEED_PASSPHRASE, plus the ETHERSEED_* settings
    understood by etherseed_core.config.load_config
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import getpass
import json
import logging
import os
import sys

# ---------------------------------------------------------------------------
# Ensure the project root is in sys.path so imports work before pip install
# ---------------------------------------------------------------------------
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from etherseed_core.bip39 import generate_mnemonic, get_wordlist  # noqa: E402
from etherseed_core.config import EtherSeedConfig, apply_network_preset, load_config  # noqa: E402
from etherseed_core.errors import WalletError  # noqa: E402
from etherseed_core.logging_config import setup_logging  # noqa: E402
from etherseed_core.network import EthereumNetwork, RpcClient  # noqa: E402
from etherseed_core.units import eth_to_wei, format_eth  # noqa: E402
from etherseed_core.wallet import Wallet  # noqa: E402

logger = logging.getLogger("etherseed_cli")


# ===================================================================
#  Helpers
# ===================================================================

def read_mnemonic(args: argparse.Namespace) -> str:
    """Mnemonic from --mnemonic, then ETHERSEED_MNEMONIC, then a hidden prompt."""
    if args.mnemonic:
        return args.mnemonic
    if v := os.environ.get("ETHERSEED_MNEMONIC"):
        return v
    return getpass.getpass("Mnemonic: ")


def open_wallet(args: argparse.Namespace, cfg: EtherSeedConfig) -> Wallet:
    mnemonic = read_mnemonic(args)
    passphrase = args.passphrase or os.environ.get("ETHERSEED_PASSPHRASE", "")
    wordlist = get_wordlist(cfg.wallet.language)
    if args.path:
        return Wallet.from_path(mnemonic, args.path, passphrase, wordlist)
    account = cfg.wallet.account if args.account is None else args.account
    index = cfg.wallet.address_index if args.index is None else args.index
    return Wallet.from_mnemonic(mnemonic, passphrase, account, index, wordlist)


def confirm(prompt: str) -> bool:
    return input(f"{prompt} [y/N] ").strip().lower() in ("y", "yes")


async def send_eth(client: RpcClient, wallet: Wallet, to: str, value_wei: int,
                   gas_limit: int = 21_000) -> str:
    """
    Resolve nonce and gas price over RPC, sign an EIP-155 transfer for the
    client's chain and broadcast it.  Returns the transaction hash.
    """
    nonce = await client.get_transaction_count(wallet.address)
    gas_price = await client.get_gas_price()
    tx = wallet.build_transfer(
        to, value_wei, nonce=nonce, gas_price=gas_price,
        chain_id=client.network.chain_id, gas_limit=gas_limit,
    )
    signed = wallet.sign_transaction(tx)
    logger.info(
        f"Sending {format_eth(value_wei)} from {wallet.address} to {to} "
        f"(nonce={nonce}, gas_price={gas_price})"
    )
    return await client.send_raw_transaction(signed.to_hex())


# ===================================================================
#  Sub-commands
# ===================================================================

def cmd_new(args, cfg: EtherSeedConfig) -> int:
    strength = args.strength or cfg.wallet.strength
    mnemonic = generate_mnemonic(strength, get_wordlist(cfg.wallet.language))
    wallet = Wallet.from_mnemonic(mnemonic, args.passphrase or "",
                                  wordlist=get_wordlist(cfg.wallet.language))
    print("Write these words down and keep them offline:\n")
    print(f"  {mnemonic}\n")
    print(f"  Path:    {wallet.path}")
    print(f"  Address: {wallet.address}")
    return 0


def cmd_derive(args, cfg: EtherSeedConfig) -> int:
    wallet = open_wallet(args, cfg)
    print(json.dumps(wallet.to_dict(include_private=args.show_private), indent=2))
    return 0


async def cmd_balance(args, cfg: EtherSeedConfig) -> int:
    network = EthereumNetwork.from_config(cfg.network)
    address = args.address or open_wallet(args, cfg).address
    async with RpcClient(network, timeout=cfg.network.timeout_seconds) as client:
        wei = await client.get_balance(address)
    print(f"  {address}: {format_eth(wei)} ({network.name})")
    return 0


async def cmd_send(args, cfg: EtherSeedConfig) -> int:
    network = EthereumNetwork.from_config(cfg.network)
    wallet = open_wallet(args, cfg)
    value_wei = eth_to_wei(args.amount)
    if not args.yes and not confirm(
        f"Send {format_eth(value_wei)} from {wallet.address} to {args.to} on {network.name}?"
    ):
        print("  Cancelled.")
        return 1
    async with RpcClient(network, timeout=cfg.network.timeout_seconds) as client:
        tx_hash = await send_eth(client, wallet, args.to, value_wei, cfg.wallet.gas_limit)
    print(f"  TX submitted: {tx_hash}")
    return 0


async def interactive_menu(wallet: Wallet, client: RpcClient, gas_limit: int = 21_000) -> None:
    """Simple async menu for a single account."""
    loop = asyncio.get_running_loop()

    def ask(prompt: str):
        return loop.run_in_executor(None, lambda: input(prompt))

    while True:
        print(f"""
=== EtherSeed ({client.network.name}) ===
  1. Check balance
  2. Send ETH
  3. Account info
  4. Exit""")
        choice = (await ask("Choice: ")).strip()
        try:
            if choice == "1":
                wei = await client.get_balance(wallet.address)
                print(f"  {wallet.address}: {format_eth(wei)}")

            elif choice == "2":
                to = (await ask("  Recipient address: ")).strip()
                amount = (await ask("  Amount (ETH): ")).strip()
                value_wei = eth_to_wei(amount)
                answer = (await ask(f"  Send {format_eth(value_wei)} to {to}? [y/N] ")).strip()
                if answer.lower() not in ("y", "yes"):
                    print("  Cancelled.")
                    continue
                tx_hash = await send_eth(client, wallet, to, value_wei, gas_limit)
                print(f"  TX submitted: {tx_hash}")

            elif choice == "3":
                print(json.dumps(wallet.to_dict(), indent=2))
                print(f"  Network: {client.network.name} (chain id {client.network.chain_id})")

            elif choice in ("4", "q", "quit", "exit"):
                break

            else:
                print("  Unknown choice")
        except (WalletError, ValueError) as exc:
            print(f"  Error: {exc}")


async def cmd_menu(args, cfg: EtherSeedConfig) -> int:
    network = EthereumNetwork.from_config(cfg.network)
    wallet = open_wallet(args, cfg)
    async with RpcClient(network, timeout=cfg.network.timeout_seconds) as client:
        await interactive_menu(wallet, client, cfg.wallet.gas_limit)
    return 0


# ===================================================================
#  Main entry point
# ===================================================================

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="EtherSeed HD wallet")
    p.add_argument("--config", default=None, help="Path to etherseed.toml config file")
    p.add_argument("--network", default=None, help="Network preset (sepolia, mainnet)")
    p.add_argument("--rpc-url", action="append", default=None,
                   help="RPC endpoint; repeat for failover order")
    p.add_argument("--chain-id", type=int, default=None, help="Chain id for a custom network")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")

    keys = argparse.ArgumentParser(add_help=False)
    keys.add_argument("--mnemonic", default=None, help="BIP-39 mnemonic (else prompt)")
    keys.add_argument("--passphrase", default=None, help="Optional BIP-39 passphrase")
    keys.add_argument("--path", default=None, help="Full derivation path, e.g. m/44'/60'/0'/0/0")
    keys.add_argument("--account", type=int, default=None, help="BIP-44 account index")
    keys.add_argument("--index", type=int, default=None, help="BIP-44 address index")

    sub = p.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Generate a new mnemonic")
    new.add_argument("--strength", type=int, default=None, choices=(128, 160, 192, 224, 256))
    new.add_argument("--passphrase", default=None)

    derive = sub.add_parser("derive", parents=[keys], help="Show a derived account")
    derive.add_argument("--show-private", action="store_true", help="Include the private key")

    balance = sub.add_parser("balance", parents=[keys], help="Query a balance")
    balance.add_argument("address", nargs="?", default=None,
                         help="Address to query (defaults to the derived account)")

    send = sub.add_parser("send", parents=[keys], help="Send ETH")
    send.add_argument("to", help="Recipient address")
    send.add_argument("amount", help="Amount in ETH, e.g. 0.01")
    send.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")

    sub.add_parser("menu", parents=[keys], help="Interactive menu")
    return p


def apply_overrides(cfg: EtherSeedConfig, args: argparse.Namespace) -> EtherSeedConfig:
    """CLI flags override config."""
    if args.network and args.network != cfg.network.name:
        cfg.network.name = args.network
        cfg.network.chain_id = 0
        cfg.network.rpc_urls = []
    if args.chain_id is not None:
        cfg.network.chain_id = args.chain_id
    if args.rpc_url:
        cfg.network.rpc_urls = list(args.rpc_url)
    if args.log_level:
        cfg.logging.level = args.log_level.upper()
    if not cfg.network.chain_id or not cfg.network.rpc_urls:
        # refill from the preset after a network switch
        apply_network_preset(cfg.network)
    return cfg


_COMMANDS = {
    "new": cmd_new,
    "derive": cmd_derive,
    "balance": cmd_balance,
    "send": cmd_send,
    "menu": cmd_menu,
}


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Load config (TOML + env overrides), then CLI flags
    try:
        cfg = apply_overrides(load_config(args.config), args)
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    setup_logging(cfg.logging.level, cfg.logging.format, cfg.logging.file)

    handler = _COMMANDS[args.command]
    try:
        result = handler(args, cfg)
        if asyncio.iscoroutine(result):
            result = await result
        return result
    except (WalletError, ValueError) as exc:
        logger.debug("command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def main_sync() -> int:
    """Synchronous entry point for console_scripts."""
    with contextlib.suppress(KeyboardInterrupt):
        return asyncio.run(main())
    return 130


if __name__ == "__main__":
    raise SystemExit(main_sync())
