"""Wallet backed by a development node with unlocked accounts (Anvil, Hardhat)."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..errors import UNRECOGNIZED_CHAIN_CODE, WalletRequestError
from ..interfaces.wallet import AccountsHandler
from ..services.network_guard import same_chain

logger = logging.getLogger(__name__)

# EIP-1193 / JSON-RPC codes
UNSUPPORTED_METHOD_CODE = 4200
INTERNAL_ERROR_CODE = -32603


class NodeWallet:
    """Wallet capability that forwards requests to a node's JSON-RPC API.

    The node signs with its own unlocked accounts, so it can only ever be
    on its own chain: switching elsewhere reports an unrecognized chain and
    registration is unsupported.
    """

    def __init__(self, node_url: str, timeout: int = 30) -> None:
        self.node_url = node_url
        self.timeout = timeout
        self._handlers: dict[str, list[AccountsHandler]] = {}
        self._request_id = 0

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.node_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    result = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Wallet node %s unreachable: %s", self.node_url, e)
            raise WalletRequestError(INTERNAL_ERROR_CODE, str(e)) from e

        if "error" in result:
            error = result["error"]
            raise WalletRequestError(
                int(error.get("code", INTERNAL_ERROR_CODE)), error.get("message", "")
            )
        return result.get("result")

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        params = list(params or [])

        if method == "eth_requestAccounts":
            return await self._rpc("eth_accounts", [])

        if method == "wallet_switchEthereumChain":
            target = params[0]["chainId"] if params else None
            current = await self._rpc("eth_chainId", [])
            if target is not None and same_chain(current, target):
                return None
            raise WalletRequestError(
                UNRECOGNIZED_CHAIN_CODE, f"Node is on chain {current}, not {target}"
            )

        if method == "wallet_addEthereumChain":
            raise WalletRequestError(
                UNSUPPORTED_METHOD_CODE, "Node wallets cannot register networks"
            )

        return await self._rpc(method, params)

    def on(self, event: str, handler: AccountsHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: AccountsHandler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
