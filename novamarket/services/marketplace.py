"""Marketplace orchestration — session, handles, listings and write actions."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any

from ..chains.evm import EvmRpcClient
from ..config import AppConfig
from ..contracts.binder import ContractHandles, bind
from ..errors import SyncError, ValidationError
from ..interfaces.chain import ChainClient
from ..interfaces.wallet import WalletProvider
from ..models import Listing, ListingForm, ListingSnapshot, PendingTransaction, Session
from ..pricing import parse_quantity
from .listing_store import ListingStore
from .session import SessionManager
from .transactions import TransactionCoordinator

logger = logging.getLogger(__name__)


class Marketplace:
    """Client-side state for one user of the marketplace.

    Listings are re-read at exactly three points: on mount (:meth:`open`),
    when the session account changes, and after a confirmed transaction.
    """

    def __init__(
        self,
        config: AppConfig,
        wallet: WalletProvider | None = None,
        client: ChainClient | None = None,
    ) -> None:
        self._config = config
        self._wallet = wallet
        self._client: ChainClient = client or EvmRpcClient(config.rpc)

        self.sessions = SessionManager(wallet, config.network)
        self.store = ListingStore()
        self.transactions = TransactionCoordinator(
            self.refresh, config.transactions, config.marketplace.variant
        )

        self.form = ListingForm()
        self.quantity_inputs: dict[int, str] = {}

        self._account: str | None = None
        self._background: set[asyncio.Task] = set()
        self._restoring = False
        self.sessions.add_listener(self._on_session_changed)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> Marketplace:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def open(self) -> ListingSnapshot:
        """Mount: subscribe to account changes, restore an already-authorised
        account and load the first snapshot."""
        self.sessions.open()
        try:
            # The mount refresh below covers the restored account
            self._restoring = True
            try:
                await self.sessions.restore()
            finally:
                self._restoring = False
            self._account = self.session.account
            return await self.refresh()
        except BaseException:
            await self.close()
            raise

    async def close(self) -> None:
        """Tear down: stop background refreshes and release the subscription."""
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.sessions.close()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self.sessions.session

    @property
    def handles(self) -> ContractHandles:
        """Handles derived from the session as it is right now."""
        return bind(self.session, self._config, self._client, self._wallet)

    async def connect(self) -> Session:
        session = await self.sessions.connect()
        await self.settle()
        return session

    async def disconnect(self) -> None:
        self.sessions.disconnect()
        await self.settle()

    def _on_session_changed(self, session: Session) -> None:
        if self._restoring or session.account == self._account:
            return
        self._account = session.account
        self._schedule_refresh()

    def _schedule_refresh(self) -> None:
        task = asyncio.get_running_loop().create_task(self._background_refresh())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _background_refresh(self) -> None:
        try:
            await self.refresh()
        except SyncError as e:
            logger.warning("Refresh after account change failed: %s", e)

    async def settle(self) -> None:
        """Wait for scheduled background refreshes to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def refresh(self) -> ListingSnapshot:
        handles = self.handles
        return await self.store.refresh(handles.read_only, self.session.account)

    @property
    def listings(self) -> tuple[Listing, ...]:
        return self.store.listings

    def get_listing(self, listing_id: int) -> Listing:
        listing = self.store.snapshot.get(listing_id)
        if listing is None:
            raise ValidationError(f"Listing {listing_id} is not an active listing")
        return listing

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def update_form(self, **fields: str) -> ListingForm:
        self.form = replace(self.form, **fields)
        return self.form

    def set_quantity(self, listing_id: int, text: str) -> None:
        self.quantity_inputs[listing_id] = text

    async def create_listing(self) -> PendingTransaction:
        pending = await self.transactions.create_listing(self.handles, self.form)
        self.form = ListingForm()
        return pending

    async def buy(self, listing_id: int) -> PendingTransaction:
        """Buy from a listing using the quantity typed for it (1 if empty)."""
        listing = self.get_listing(listing_id)
        quantity = None
        if listing.is_quantity_based:
            quantity = parse_quantity(self.quantity_inputs.get(listing_id))

        pending = await self.transactions.buy(self.handles, listing, quantity)
        self.quantity_inputs.pop(listing_id, None)
        return pending

    async def withdraw(self) -> PendingTransaction:
        return await self.transactions.withdraw(self.handles)
