"""Service modules"""
from .listing_store import ListingStore
from .marketplace import Marketplace
from .network_guard import NetworkGuard, NetworkState
from .session import SessionManager
from .transactions import TransactionCoordinator

__all__ = [
    "ListingStore",
    "Marketplace",
    "NetworkGuard",
    "NetworkState",
    "SessionManager",
    "TransactionCoordinator",
]
