"""Contract binding — derives marketplace handles from the current session."""
from __future__ import annotations

from dataclasses import dataclass

from ..config import AppConfig
from ..interfaces.chain import ChainClient
from ..interfaces.wallet import WalletProvider
from ..models import Session
from .marketplace import ReadOnlyMarketplace, SignerMarketplace


@dataclass(frozen=True)
class ContractHandles:
    """Handles valid for exactly one session."""

    read_only: ReadOnlyMarketplace
    authenticated: SignerMarketplace | None = None


def bind(
    session: Session | None,
    config: AppConfig,
    client: ChainClient,
    wallet: WalletProvider | None,
) -> ContractHandles:
    """Build fresh handles for ``session``.

    The read-only handle depends only on configuration. The authenticated
    handle exists only while the session has an account and a wallet is
    present.
    """
    read_only = ReadOnlyMarketplace(
        client, config.marketplace.address, config.marketplace.variant
    )

    authenticated = None
    if session is not None and session.account and wallet is not None:
        authenticated = SignerMarketplace(
            wallet,
            session.account,
            client,
            config.marketplace.address,
            config.marketplace.variant,
            config.transactions,
        )

    return ContractHandles(read_only=read_only, authenticated=authenticated)
