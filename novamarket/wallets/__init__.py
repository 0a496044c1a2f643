"""Wallet capability implementations."""
from .node import NodeWallet

__all__ = ["NodeWallet"]
