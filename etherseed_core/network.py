"""
JSON-RPC transport for EtherSeed.

Talks to Ethereum nodes over HTTP with ``aiohttp``.  Each call tries the
configured endpoints in order and moves on to the next one on:

  - connection errors and timeouts
  - HTTP 429 (rate limited) or any other non-2xx status
  - a body that is not JSON, carries an ``error`` member, or has no ``result``

Only when every endpoint has failed is :class:`RpcError` raised, carrying
the last failure.  The transport never sees key material: it receives the
finished hex payload of a signed transaction.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from etherseed_core.address import to_checksum_address
from etherseed_core.config import (
    MAINNET_CHAIN_ID,
    MAINNET_RPC_URLS,
    SEPOLIA_CHAIN_ID,
    SEPOLIA_RPC_URLS,
    NetworkConfig,
)
from etherseed_core.errors import RpcError
from etherseed_core.units import parse_hex_quantity

logger = logging.getLogger("etherseed_network")


@dataclass(frozen=True)
class EthereumNetwork:
    """A chain id with the ordered list of RPC endpoints serving it."""

    name: str
    chain_id: int
    rpc_urls: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.rpc_urls:
            raise ValueError(f"Network {self.name!r} has no RPC endpoints")

    @classmethod
    def sepolia(cls) -> EthereumNetwork:
        return cls("Sepolia", SEPOLIA_CHAIN_ID, tuple(SEPOLIA_RPC_URLS))

    @classmethod
    def mainnet(cls) -> EthereumNetwork:
        return cls("Mainnet", MAINNET_CHAIN_ID, tuple(MAINNET_RPC_URLS))

    @classmethod
    def custom(cls, rpc_url: str | list[str], chain_id: int, name: str = "Custom") -> EthereumNetwork:
        urls = (rpc_url,) if isinstance(rpc_url, str) else tuple(rpc_url)
        return cls(name, chain_id, urls)

    @classmethod
    def from_config(cls, cfg: NetworkConfig) -> EthereumNetwork:
        return cls(cfg.name, cfg.chain_id, tuple(cfg.rpc_urls))

    @property
    def rpc_url(self) -> str:
        """Primary endpoint."""
        return self.rpc_urls[0]


class RpcClient:
    """
    Async JSON-RPC client with ordered endpoint failover.

    Use as an async context manager so the underlying ``ClientSession`` is
    closed, or call :meth:`close` yourself.
    """

    def __init__(self, network: EthereumNetwork, timeout: float = 30.0,
                 session: aiohttp.ClientSession | None = None):
        self.network = network
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> RpcClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    # ---- core call ----

    async def call(self, method: str, params: list | None = None) -> Any:
        """Invoke *method* on the first endpoint that answers successfully."""
        session = self._get_session()
        last_error = "no endpoints configured"

        for i, url in enumerate(self.network.rpc_urls, start=1):
            request = {
                "jsonrpc": "2.0",
                "method": method,
                "params": params or [],
                "id": next(self._ids),
            }
            try:
                async with session.post(url, json=request, timeout=self.timeout) as resp:
                    body = await resp.text()
                    if resp.status == 429:
                        last_error = f"RPC {i} rate limited"
                        logger.warning(f"{method}: endpoint {i} ({url}) rate limited")
                        continue
                    if not 200 <= resp.status < 300:
                        last_error = f"HTTP error {resp.status}: {body[:200]}"
                        logger.warning(f"{method}: endpoint {i} ({url}) returned HTTP {resp.status}")
                        continue
            except asyncio.TimeoutError:
                last_error = f"Request to RPC {i} timed out"
                logger.warning(f"{method}: endpoint {i} ({url}) timed out")
                continue
            except aiohttp.ClientError as exc:
                last_error = f"Request to RPC {i} failed: {exc}"
                logger.warning(f"{method}: endpoint {i} ({url}) failed: {exc}")
                continue

            try:
                payload = json.loads(body)
            except json.JSONDecodeError as exc:
                last_error = f"Failed to parse JSON: {exc}"
                logger.warning(f"{method}: endpoint {i} ({url}) sent invalid JSON")
                continue
            if not isinstance(payload, dict):
                last_error = "Response is not a JSON object"
                continue
            if payload.get("error"):
                error = payload["error"]
                message = error.get("message", error) if isinstance(error, dict) else error
                last_error = f"RPC error: {message}"
                logger.warning(f"{method}: endpoint {i} ({url}) returned error: {message}")
                continue
            if payload.get("result") is None:
                last_error = "No result in response"
                continue

            logger.debug(f"{method}: answered by endpoint {i} ({url})")
            return payload["result"]

        logger.error(f"{method}: all {len(self.network.rpc_urls)} endpoints failed")
        raise RpcError(method, last_error)

    async def _call_quantity(self, method: str, params: list | None = None) -> int:
        result = await self.call(method, params)
        if not isinstance(result, str):
            raise RpcError(method, f"Invalid quantity format: {result!r}")
        try:
            return parse_hex_quantity(result)
        except ValueError as exc:
            raise RpcError(method, f"Invalid quantity format: {result!r}") from exc

    # ---- Ethereum methods ----

    async def get_balance(self, address: str | bytes, block: str = "latest") -> int:
        """Balance in wei."""
        return await self._call_quantity("eth_getBalance", [to_checksum_address(address), block])

    async def get_transaction_count(self, address: str | bytes, block: str = "pending") -> int:
        """Next nonce for *address*."""
        return await self._call_quantity(
            "eth_getTransactionCount", [to_checksum_address(address), block],
        )

    async def get_gas_price(self) -> int:
        return await self._call_quantity("eth_gasPrice")

    async def get_chain_id(self) -> int:
        return await self._call_quantity("eth_chainId")

    async def send_raw_transaction(self, payload: str) -> str:
        """Broadcast a 0x-prefixed signed transaction; returns the tx hash."""
        result = await self.call("eth_sendRawTransaction", [payload])
        if not isinstance(result, str):
            raise RpcError("eth_sendRawTransaction", f"Invalid transaction hash format: {result!r}")
        logger.info(f"Broadcast transaction {result}")
        return result
