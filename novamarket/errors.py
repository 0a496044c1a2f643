"""Error taxonomy for the marketplace client."""
from __future__ import annotations

# EIP-1193 provider error codes
USER_REJECTED_CODE = 4001
UNRECOGNIZED_CHAIN_CODE = 4902


class MarketplaceError(Exception):
    """Base exception for marketplace client errors."""


class WalletUnavailable(MarketplaceError):
    """No wallet capability is present."""


class UserRejected(MarketplaceError):
    """The user declined a wallet prompt."""


class NetworkSwitchFailed(MarketplaceError):
    """The wallet could not be moved onto the marketplace network."""


class ValidationError(MarketplaceError):
    """Local input is missing or invalid; nothing was sent."""


class InvalidQuantity(ValidationError):
    """Requested purchase quantity is not a positive integer."""


class NotConnected(MarketplaceError):
    """A write action was attempted without an authenticated handle."""


class PurchaseInProgress(MarketplaceError):
    """A purchase for the same listing is still awaiting settlement."""


class SyncError(MarketplaceError):
    """Reading listings or proceeds from the network failed."""


class ContractCallError(MarketplaceError):
    """A submitted call failed or reverted."""


class ConfirmationTimeout(MarketplaceError):
    """A submitted call was not settled within the configured wait."""


class RpcError(MarketplaceError):
    """Transport-level JSON-RPC failure."""


class WalletRequestError(Exception):
    """Error raised by a wallet capability for a failed request.

    Mirrors the EIP-1193 ``ProviderRpcError`` shape: a numeric ``code``
    and a human readable message.
    """

    def __init__(self, code: int, message: str = "") -> None:
        super().__init__(f"[{code}] {message}" if message else f"[{code}]")
        self.code = code
        self.message = message

    @property
    def user_rejected(self) -> bool:
        return self.code == USER_REJECTED_CODE

    @property
    def unrecognized_chain(self) -> bool:
        return self.code == UNRECOGNIZED_CHAIN_CODE
