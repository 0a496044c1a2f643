"""Transaction coordinator — submit, confirm, then resynchronise."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from eth_utils import is_address

from ..config import VARIANT_QUANTITY, TransactionsConfig
from ..contracts.binder import ContractHandles
from ..contracts.marketplace import SignerMarketplace
from ..errors import (
    MarketplaceError,
    NotConnected,
    PurchaseInProgress,
    SyncError,
    ValidationError,
)
from ..formatting import parse_ether
from ..models import Listing, ListingForm, ListingSnapshot, PendingTransaction, TxKind, TxStatus
from ..pricing import MAX_UINT256

logger = logging.getLogger(__name__)

Submit = Callable[[SignerMarketplace], Awaitable[str]]
Refresh = Callable[[], Awaitable[ListingSnapshot]]


def _parse_int(value: str, name: str, minimum: int) -> int:
    try:
        number = int(value.strip())
    except ValueError:
        raise ValidationError(f"{name} must be a whole number, got {value!r}") from None
    if number < minimum:
        raise ValidationError(f"{name} must be >= {minimum}, got {number}")
    if number > MAX_UINT256:
        raise ValidationError(f"{name} does not fit in a uint256")
    return number


def validate_listing_form(form: ListingForm, variant: str) -> tuple[str, int, int | None, int]:
    """Check a create-listing form before anything touches the chain.

    Returns:
        ``(asset_contract, asset_id, quantity, price_wei)``; ``quantity`` is
        None on single-unit marketplaces.

    Raises:
        ValidationError: a required field is empty, non-numeric or
            non-positive.
    """
    required = {"asset_contract": form.asset_contract, "asset_id": form.asset_id, "price": form.price}
    if variant == VARIANT_QUANTITY:
        required["amount"] = form.amount
    missing = [name for name, value in required.items() if not (value or "").strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    asset_contract = form.asset_contract.strip()
    if not is_address(asset_contract):
        raise ValidationError(f"asset_contract is not a valid address: {asset_contract!r}")

    asset_id = _parse_int(form.asset_id, "asset_id", 0)
    quantity = _parse_int(form.amount, "amount", 1) if variant == VARIANT_QUANTITY else None

    try:
        price = parse_ether(form.price)
    except ValueError as e:
        raise ValidationError(f"price is invalid: {e}") from None
    if price <= 0:
        raise ValidationError(f"price must be > 0, got {form.price!r}")
    if price > MAX_UINT256:
        raise ValidationError("price does not fit in a uint256")

    return asset_contract, asset_id, quantity, price


class TransactionCoordinator:
    """Runs write actions through ``Submitting → AwaitingConfirmation → settled``.

    A confirmed action triggers exactly one call to ``refresh``, after the
    receipt has been observed. A failed action triggers none. ``refresh``
    must read through the handles current at the time it runs.
    """

    def __init__(
        self, refresh: Refresh, config: TransactionsConfig, variant: str
    ) -> None:
        self._refresh = refresh
        self._config = config
        self._variant = variant
        self._pending: list[PendingTransaction] = []
        self._buying: set[int] = set()

    @property
    def pending(self) -> tuple[PendingTransaction, ...]:
        return tuple(self._pending)

    async def create_listing(
        self, handles: ContractHandles, form: ListingForm
    ) -> PendingTransaction:
        signer = self._require_signer(handles)
        asset_contract, asset_id, quantity, price = validate_listing_form(
            form, self._variant
        )

        if quantity is not None:
            submit: Submit = lambda s: s.list_1155(asset_contract, asset_id, quantity, price)
        else:
            submit = lambda s: s.list_token(asset_contract, asset_id, price)

        return await self._execute(TxKind.CREATE_LISTING, signer, submit)

    async def buy(
        self, handles: ContractHandles, listing: Listing, quantity: int | None = None
    ) -> PendingTransaction:
        """Buy from ``listing``.

        The payment attached is ``compute_cost(unit_price, quantity)`` for
        quantity-based listings and the fixed price otherwise.
        """
        signer = self._require_signer(handles)
        value = listing.payment_for(quantity)
        if not listing.is_quantity_based:
            quantity = None

        if self._config.lock_purchases:
            if listing.id in self._buying:
                raise PurchaseInProgress(
                    f"A purchase for listing {listing.id} is already in progress"
                )
            self._buying.add(listing.id)

        try:
            return await self._execute(
                TxKind.BUY,
                signer,
                lambda s: s.buy(listing.id, quantity, value),
                listing_id=listing.id,
                value=value,
            )
        finally:
            self._buying.discard(listing.id)

    async def withdraw(self, handles: ContractHandles) -> PendingTransaction:
        signer = self._require_signer(handles)
        return await self._execute(
            TxKind.WITHDRAW, signer, lambda s: s.withdraw_proceeds()
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _require_signer(handles: ContractHandles) -> SignerMarketplace:
        if handles.authenticated is None:
            raise NotConnected("Connect a wallet first")
        return handles.authenticated

    async def _execute(
        self,
        kind: TxKind,
        signer: SignerMarketplace,
        submit: Submit,
        listing_id: int | None = None,
        value: int = 0,
    ) -> PendingTransaction:
        pending = PendingTransaction(kind=kind, listing_id=listing_id, value=value)
        self._pending.append(pending)
        try:
            try:
                logger.debug("%s: submitting", kind.value)
                pending.tx_hash = await submit(signer)

                logger.debug("%s: awaiting confirmation of %s", kind.value, pending.tx_hash)
                pending.receipt = await signer.wait_for_confirmation(pending.tx_hash)
            except MarketplaceError as e:
                pending.status = TxStatus.FAILED
                logger.error("%s failed: %s", kind.value, e)
                raise

            pending.status = TxStatus.CONFIRMED
            logger.info("%s confirmed: %s", kind.value, pending.tx_hash)

            try:
                await self._refresh()
            except SyncError as e:
                logger.warning("%s confirmed but listing refresh failed: %s", kind.value, e)
            return pending
        finally:
            self._pending.remove(pending)
