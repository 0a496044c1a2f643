"""Listing store — cached snapshot of marketplace listings and proceeds."""
from __future__ import annotations

import logging

from ..contracts.marketplace import ReadOnlyMarketplace
from ..errors import SyncError
from ..models import Listing, ListingSnapshot, ProceedsBalance

logger = logging.getLogger(__name__)


def _accept(listing: Listing) -> bool:
    """Whether a listing belongs in the displayed set."""
    if not listing.active:
        return False
    if listing.is_quantity_based:
        valid = listing.unit_price > 0 and (listing.remaining_units or 0) >= 0
    else:
        valid = listing.price is not None and listing.price > 0
    if not valid:
        logger.warning("Ignoring listing %d with invalid price data", listing.id)
    return valid


class ListingStore:
    """Holds the latest listing snapshot read from the contract.

    Every refresh is numbered when it starts; a result that finishes after a
    newer refresh has been applied is discarded.
    """

    def __init__(self) -> None:
        self._snapshot = ListingSnapshot()
        self._issued = 0

    @property
    def snapshot(self) -> ListingSnapshot:
        return self._snapshot

    @property
    def listings(self) -> tuple[Listing, ...]:
        return self._snapshot.listings

    @property
    def proceeds(self) -> ProceedsBalance | None:
        return self._snapshot.proceeds

    async def refresh(
        self, read_only: ReadOnlyMarketplace, account: str | None = None
    ) -> ListingSnapshot:
        """Re-read listings (and proceeds of ``account``) and swap the snapshot.

        Raises:
            SyncError: a query failed; the previous snapshot is kept.
        """
        self._issued += 1
        version = self._issued

        try:
            raw = await read_only.get_listings()
            proceeds = None
            if account:
                proceeds = ProceedsBalance(
                    owner=account, amount=await read_only.proceeds(account)
                )
        except Exception as e:
            logger.error("Listing refresh #%d failed: %s", version, e)
            raise SyncError(f"Failed to fetch listings: {e}") from e

        if version < self._snapshot.version:
            logger.debug(
                "Discarding refresh #%d; snapshot #%d is newer",
                version,
                self._snapshot.version,
            )
            return self._snapshot

        listings = tuple(listing for listing in raw if _accept(listing))
        self._snapshot = ListingSnapshot(
            listings=listings, proceeds=proceeds, version=version
        )
        logger.info(
            "Refresh #%d: %d active listings (of %d)", version, len(listings), len(raw)
        )
        return self._snapshot
