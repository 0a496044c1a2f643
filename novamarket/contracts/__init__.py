"""Marketplace contract bindings."""
from .binder import ContractHandles, bind
from .marketplace import ReadOnlyMarketplace, SignerMarketplace

__all__ = ["ContractHandles", "ReadOnlyMarketplace", "SignerMarketplace", "bind"]
