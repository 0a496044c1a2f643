"""Marketplace contract handles — read-only and signer-bound."""
from __future__ import annotations

import logging
from typing import Any

from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import to_checksum_address

from ..config import VARIANT_QUANTITY, VARIANT_SINGLE, TransactionsConfig
from ..errors import ContractCallError, RpcError, UserRejected, WalletRequestError
from ..interfaces.chain import ChainClient
from ..interfaces.wallet import WalletProvider
from ..models import Listing
from . import abi

logger = logging.getLogger(__name__)


class ReadOnlyMarketplace:
    """Query-only binding to the marketplace over the fixed RPC endpoint."""

    def __init__(self, client: ChainClient, address: str, variant: str) -> None:
        self._client = client
        self.address = to_checksum_address(address)
        self.variant = variant

    async def _call(self, signature: str, args: tuple[Any, ...] = ()) -> str:
        return await self._client.eth_call(self.address, abi.encode_call(signature, args))

    async def get_listings(self) -> list[Listing]:
        """All listings known to the contract, inactive ones included."""
        result = await self._call(abi.GET_LISTINGS)
        try:
            return abi.decode_listings(result, self.variant)
        except DecodingError as e:
            raise RpcError(f"Could not decode getListings() result: {e}") from e

    async def proceeds(self, owner: str) -> int:
        """Withdrawable proceeds of ``owner`` in wei."""
        result = await self._call(abi.PROCEEDS, (to_checksum_address(owner),))
        try:
            return abi.decode_uint(result)
        except DecodingError as e:
            raise RpcError(f"Could not decode proceeds() result: {e}") from e


class SignerMarketplace:
    """State-changing binding to the marketplace through the wallet signer.

    Calls are signed and broadcast by the wallet; receipts are read through
    the read-only client.
    """

    def __init__(
        self,
        wallet: WalletProvider,
        account: str,
        client: ChainClient,
        address: str,
        variant: str,
        tx_config: TransactionsConfig,
    ) -> None:
        self._wallet = wallet
        self._client = client
        self._tx_config = tx_config
        self.account = to_checksum_address(account)
        self.address = to_checksum_address(address)
        self.variant = variant

    async def _send(
        self, signature: str, args: tuple[Any, ...] = (), value: int = 0
    ) -> str:
        """Ask the wallet to sign and broadcast a call; returns the tx hash."""
        try:
            data = abi.encode_call(signature, args)
        except EncodingError as e:
            raise ContractCallError(f"Could not encode {signature}: {e}") from e

        tx = {
            "from": self.account,
            "to": self.address,
            "data": data,
            "value": hex(value),
        }
        try:
            tx_hash = await self._wallet.request("eth_sendTransaction", [tx])
        except WalletRequestError as e:
            if e.user_rejected:
                raise UserRejected(f"Signature request for {signature} declined") from e
            raise ContractCallError(f"{signature} submission failed: {e}") from e

        logger.info("Submitted %s (value=%d): %s", signature, value, tx_hash)
        return tx_hash

    async def list_token(self, asset_contract: str, asset_id: int, price: int) -> str:
        if self.variant != VARIANT_SINGLE:
            raise ContractCallError("listToken is only available on single-unit marketplaces")
        return await self._send(
            abi.LIST_TOKEN, (to_checksum_address(asset_contract), asset_id, price)
        )

    async def list_1155(
        self, asset_contract: str, asset_id: int, quantity: int, unit_price: int
    ) -> str:
        if self.variant != VARIANT_QUANTITY:
            raise ContractCallError("list1155 is only available on quantity marketplaces")
        return await self._send(
            abi.LIST_1155,
            (to_checksum_address(asset_contract), asset_id, quantity, unit_price),
        )

    async def buy(self, listing_id: int, quantity: int | None, value: int) -> str:
        """Purchase from a listing, attaching ``value`` wei as payment."""
        if self.variant == VARIANT_QUANTITY:
            if quantity is None:
                raise ContractCallError("Quantity marketplaces require a purchase quantity")
            return await self._send(abi.BUY_QUANTITY, (listing_id, quantity), value=value)
        return await self._send(abi.BUY_SINGLE, (listing_id,), value=value)

    async def withdraw_proceeds(self) -> str:
        return await self._send(abi.WITHDRAW_PROCEEDS)

    async def wait_for_confirmation(self, tx_hash: str) -> dict[str, Any]:
        """Block until ``tx_hash`` is mined.

        Raises:
            ConfirmationTimeout: not mined within the configured wait.
            ContractCallError: mined but reverted.
        """
        receipt = await self._client.wait_for_receipt(
            tx_hash,
            timeout=self._tx_config.confirmation_timeout,
            poll_interval=self._tx_config.poll_interval,
        )
        if int(receipt.get("status", "0x0"), 16) != 1:
            raise ContractCallError(f"Transaction {tx_hash} reverted")
        return receipt
