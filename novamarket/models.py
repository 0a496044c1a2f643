"""Data models — value records are frozen (immutable)."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field

from .pricing import compute_cost


@dataclass(frozen=True)
class Session:
    """Binding to a connected wallet account and its active network."""

    account: str | None = None
    network_id: str | None = None

    @property
    def connected(self) -> bool:
        return self.account is not None


@dataclass(frozen=True)
class Listing:
    """A marketplace listing as last reported by the contract.

    Single-unit listings carry ``price``; quantity-based listings carry
    ``unit_price`` and ``remaining_units``.
    """

    id: int
    seller: str
    asset_contract: str
    asset_id: int
    active: bool
    price: int | None = None
    unit_price: int | None = None
    remaining_units: int | None = None

    @property
    def is_quantity_based(self) -> bool:
        return self.unit_price is not None

    def payment_for(self, quantity: int | None = None) -> int:
        """Payment amount in wei for buying ``quantity`` units."""
        if self.is_quantity_based:
            return compute_cost(self.unit_price, quantity)
        return self.price


@dataclass(frozen=True)
class ProceedsBalance:
    """Withdrawable sale revenue held by the contract, in wei."""

    owner: str
    amount: int


@dataclass(frozen=True)
class ListingSnapshot:
    """Listings and proceeds from one refresh; replaced wholesale."""

    listings: tuple[Listing, ...] = ()
    proceeds: ProceedsBalance | None = None
    version: int = 0

    def get(self, listing_id: int) -> Listing | None:
        for listing in self.listings:
            if listing.id == listing_id:
                return listing
        return None


@dataclass(frozen=True)
class ListingForm:
    """Raw create-listing input. Price is in whole currency units."""

    asset_contract: str = ""
    asset_id: str = ""
    amount: str = ""
    price: str = ""


class TxKind(str, enum.Enum):
    CREATE_LISTING = "CreateListing"
    BUY = "Buy"
    WITHDRAW = "Withdraw"


class TxStatus(str, enum.Enum):
    SUBMITTED = "Submitted"
    CONFIRMED = "Confirmed"
    FAILED = "Failed"


@dataclass
class PendingTransaction:
    """A dispatched write call, tracked until its settlement is handled."""

    kind: TxKind
    status: TxStatus = TxStatus.SUBMITTED
    tx_hash: str | None = None
    listing_id: int | None = None
    value: int = 0
    receipt: dict = field(default_factory=dict, repr=False)
