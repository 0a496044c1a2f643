"""Chain client protocol — read-only RPC abstraction."""
from typing import Any, Protocol


class ChainClient(Protocol):
    """Abstract interface for read-only blockchain RPC interactions."""

    async def chain_id(self) -> int: ...

    async def eth_call(self, to: str, data: str, block: str = "latest") -> str: ...

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None: ...

    async def wait_for_receipt(
        self, tx_hash: str, timeout: float, poll_interval: float
    ) -> dict[str, Any]: ...
