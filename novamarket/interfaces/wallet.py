"""Wallet capability protocol — EIP-1193 style provider abstraction."""
from typing import Any, Callable, Protocol

AccountsHandler = Callable[[list[str]], None]


class WalletProvider(Protocol):
    """Abstract interface for a signing wallet.

    ``request`` raises :class:`novamarket.errors.WalletRequestError` on
    failure (code 4001 when the user declines, 4902 for an unknown chain).
    """

    async def request(self, method: str, params: list[Any] | None = None) -> Any: ...

    def on(self, event: str, handler: AccountsHandler) -> None: ...

    def remove_listener(self, event: str, handler: AccountsHandler) -> None: ...
