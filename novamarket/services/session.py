"""Session manager — wallet connection and account-change subscription."""
from __future__ import annotations

import logging
from typing import Any, Callable

from eth_utils import is_address, to_checksum_address

from ..config import NetworkConfig
from ..errors import UserRejected, WalletRequestError, WalletUnavailable
from ..interfaces.wallet import WalletProvider
from ..models import Session
from .network_guard import NetworkGuard

logger = logging.getLogger(__name__)

ACCOUNTS_CHANGED = "accountsChanged"

SessionListener = Callable[[Session], None]


def _first_account(accounts: list[str] | None) -> str | None:
    for account in accounts or []:
        if account and is_address(account):
            return to_checksum_address(account)
    return None


class SessionManager:
    """Owns the wallet session.

    The ``accountsChanged`` subscription is taken on :meth:`open` and
    released exactly once by :meth:`close` (or :meth:`disconnect`, or
    leaving the ``async with`` block), however teardown happens.
    """

    def __init__(
        self, wallet: WalletProvider | None, network: NetworkConfig
    ) -> None:
        self.wallet = wallet
        self._network = network
        self._session = Session()
        self._listeners: list[SessionListener] = []
        self._subscribed = False
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SessionManager:
        self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    def open(self) -> None:
        """Subscribe to account changes (first mount only)."""
        if self._subscribed or self._closed or self.wallet is None:
            return
        self.wallet.on(ACCOUNTS_CHANGED, self._handle_accounts_changed)
        self._subscribed = True
        logger.debug("Subscribed to wallet account changes")

    def close(self) -> None:
        """Release the account-change subscription. Safe to call repeatedly."""
        self._closed = True
        if not self._subscribed:
            return
        self._subscribed = False
        self.wallet.remove_listener(ACCOUNTS_CHANGED, self._handle_accounts_changed)
        logger.debug("Unsubscribed from wallet account changes")

    @property
    def subscribed(self) -> bool:
        return self._subscribed

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _replace_session(self, session: Session) -> None:
        previous = self._session
        self._session = session
        if previous != session:
            logger.info(
                "Session changed: account=%s network=%s",
                session.account,
                session.network_id,
            )
        for listener in list(self._listeners):
            listener(session)

    def _handle_accounts_changed(self, accounts: list[str]) -> None:
        """Rebuild the session from the wallet's new account list."""
        account = _first_account(accounts)
        network_id = self._session.network_id if account else None
        self._replace_session(Session(account=account, network_id=network_id))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def connect(self) -> Session:
        """Request account access, align the network, establish a session.

        Raises:
            WalletUnavailable: no wallet capability.
            UserRejected: the account request was declined.
            NetworkSwitchFailed: the wallet could not be moved to the
                marketplace network.
        """
        if self.wallet is None:
            raise WalletUnavailable("No wallet available; install a wallet to connect")

        try:
            accounts = await self.wallet.request("eth_requestAccounts")
        except WalletRequestError as e:
            if e.user_rejected:
                raise UserRejected("Account access request declined") from e
            raise WalletUnavailable(f"Wallet account request failed: {e}") from e

        account = _first_account(accounts)
        if account is None:
            raise UserRejected("Wallet returned no accounts")

        network_id = await NetworkGuard(self.wallet, self._network).ensure()

        session = Session(account=account, network_id=network_id)
        self._replace_session(session)
        return session

    async def restore(self) -> Session:
        """Adopt an account the wallet has already authorised, without prompting.

        Failures are logged and leave the session unchanged; the user can
        still :meth:`connect` explicitly.
        """
        if self.wallet is None:
            return self._session

        try:
            accounts = await self.wallet.request("eth_accounts")
        except WalletRequestError as e:
            logger.warning("Could not read authorised accounts: %s", e)
            return self._session

        if _first_account(accounts) is not None:
            self._handle_accounts_changed(accounts)
        return self._session

    def disconnect(self) -> None:
        """Drop the session and release the wallet subscription."""
        self._replace_session(Session())
        self.close()
