"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from eth_utils import is_address

logger = logging.getLogger(__name__)

VARIANT_SINGLE = "single"
VARIANT_QUANTITY = "quantity"
_VARIANTS = (VARIANT_SINGLE, VARIANT_QUANTITY)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MarketplaceConfig:
    address: str = ""
    variant: str = VARIANT_QUANTITY


@dataclass(frozen=True)
class RpcConfig:
    endpoints: tuple[str, ...] = ()
    timeout: int = 30


@dataclass(frozen=True)
class NativeCurrencyConfig:
    name: str = "MON"
    symbol: str = "MON"
    decimals: int = 18


@dataclass(frozen=True)
class NetworkConfig:
    chain_id: str = "0x4ebf"
    chain_name: str = "Monad Testnet"
    rpc_urls: tuple[str, ...] = ()
    native_currency: NativeCurrencyConfig = field(default_factory=NativeCurrencyConfig)


@dataclass(frozen=True)
class TransactionsConfig:
    confirmation_timeout: float = 120.0
    poll_interval: float = 2.0
    lock_purchases: bool = True


@dataclass(frozen=True)
class WalletConfig:
    node_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    marketplace: MarketplaceConfig = field(default_factory=MarketplaceConfig)
    rpc: RpcConfig = field(default_factory=RpcConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    transactions: TransactionsConfig = field(default_factory=TransactionsConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_marketplace(raw: dict[str, Any]) -> MarketplaceConfig:
    return MarketplaceConfig(
        address=str(raw.get("address", "")),
        variant=str(raw.get("variant", VARIANT_QUANTITY)).lower(),
    )


def _build_rpc(raw: dict[str, Any]) -> RpcConfig:
    # Empty entries come from unset ${VAR} references
    endpoints = tuple(e for e in raw.get("endpoints", []) if e)
    return RpcConfig(endpoints=endpoints, timeout=int(raw.get("timeout", 30)))


def _build_network(raw: dict[str, Any]) -> NetworkConfig:
    currency = raw.get("native_currency", {})
    chain_id = raw.get("chain_id", NetworkConfig.chain_id)
    # Unquoted 0x4ebf is read by YAML as an int
    if isinstance(chain_id, int):
        chain_id = hex(chain_id)
    return NetworkConfig(
        chain_id=str(chain_id),
        chain_name=raw.get("chain_name", NetworkConfig.chain_name),
        rpc_urls=tuple(u for u in raw.get("rpc_urls", []) if u),
        native_currency=NativeCurrencyConfig(
            name=currency.get("name", NativeCurrencyConfig.name),
            symbol=currency.get("symbol", NativeCurrencyConfig.symbol),
            decimals=int(currency.get("decimals", NativeCurrencyConfig.decimals)),
        ),
    )


def _build_transactions(raw: dict[str, Any]) -> TransactionsConfig:
    return TransactionsConfig(
        confirmation_timeout=float(raw.get("confirmation_timeout", 120.0)),
        poll_interval=float(raw.get("poll_interval", 2.0)),
        lock_purchases=bool(raw.get("lock_purchases", True)),
    )


def _build_wallet(raw: dict[str, Any]) -> WalletConfig:
    return WalletConfig(node_url=raw.get("node_url", "") or "")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        marketplace=_build_marketplace(raw.get("marketplace", {})),
        rpc=_build_rpc(raw.get("rpc", {})),
        network=_build_network(raw.get("network", {})),
        transactions=_build_transactions(raw.get("transactions", {})),
        wallet=_build_wallet(raw.get("wallet", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.marketplace.address:
        raise ValueError("Marketplace address must be configured")
    if not is_address(cfg.marketplace.address):
        raise ValueError(
            f"Marketplace address '{cfg.marketplace.address}' is not a valid address"
        )
    if cfg.marketplace.variant not in _VARIANTS:
        raise ValueError(
            f"Unknown marketplace variant '{cfg.marketplace.variant}' "
            f"(expected one of {', '.join(_VARIANTS)})"
        )
    if not cfg.rpc.endpoints:
        raise ValueError("At least one RPC endpoint must be configured")
    if not cfg.network.chain_id:
        raise ValueError("Network chain_id must be configured")
    try:
        int(cfg.network.chain_id, 16)
    except ValueError:
        raise ValueError(
            f"Network chain_id '{cfg.network.chain_id}' is not a hex identifier"
        ) from None
    if cfg.transactions.confirmation_timeout <= 0:
        raise ValueError("transactions.confirmation_timeout must be positive")
    if cfg.transactions.poll_interval <= 0:
        raise ValueError("transactions.poll_interval must be positive")
