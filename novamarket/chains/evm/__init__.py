from .client import EvmRpcClient

__all__ = ["EvmRpcClient"]
