"""EVM JSON-RPC client with fallback support."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import RpcConfig
from ...errors import ConfirmationTimeout, RpcError

logger = logging.getLogger(__name__)


class EvmRpcClient:
    """Read-only EVM RPC client with automatic endpoint fallback."""

    def __init__(self, config: RpcConfig) -> None:
        self.endpoints = list(config.endpoints)
        self.timeout = config.timeout
        self.current_rpc_index = 0
        self._request_id = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
                        if "error" in result:
                            raise RpcError(f"RPC Error: {result['error']}")

                        if rpc_index != self.current_rpc_index:
                            logger.info("Switched to RPC endpoint: %s", rpc_url)
                            self.current_rpc_index = rpc_index

                        return result.get("result")
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise RpcError(f"All RPC endpoints failed. Last error: {last_error}")

    async def chain_id(self) -> int:
        """Chain id reported by the endpoint."""
        return int(await self.rpc_call("eth_chainId", []), 16)

    async def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        """Execute a read-only contract call and return the raw hex result."""
        result = await self.rpc_call("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str):
            raise RpcError(f"Unexpected eth_call result: {result!r}")
        return result

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        """Receipt for ``tx_hash``, or None while the transaction is pending."""
        return await self.rpc_call("eth_getTransactionReceipt", [tx_hash])

    async def wait_for_receipt(
        self, tx_hash: str, timeout: float, poll_interval: float
    ) -> dict[str, Any]:
        """Poll for a transaction receipt until it appears or ``timeout`` elapses.

        RPC failures while polling are logged and polling continues; only the
        deadline ends the wait.

        Raises:
            ConfirmationTimeout: no receipt within ``timeout`` seconds.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            try:
                receipt = await self.get_transaction_receipt(tx_hash)
                if receipt:
                    return receipt
            except RpcError as e:
                logger.warning("Receipt lookup for %s failed: %s", tx_hash, e)

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ConfirmationTimeout(
                    f"Transaction {tx_hash} not confirmed within {timeout}s"
                )
            await asyncio.sleep(min(poll_interval, remaining))
