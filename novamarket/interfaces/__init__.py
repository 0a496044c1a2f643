"""Protocol interfaces for the marketplace client."""
from .chain import ChainClient
from .wallet import AccountsHandler, WalletProvider

__all__ = ["AccountsHandler", "ChainClient", "WalletProvider"]
