"""Shared test fixtures, sample data and in-memory chain doubles."""
from __future__ import annotations

import textwrap
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest
from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import decode_hex, to_checksum_address

from novamarket.config import (
    AppConfig,
    MarketplaceConfig,
    NativeCurrencyConfig,
    NetworkConfig,
    RpcConfig,
    TransactionsConfig,
    VARIANT_QUANTITY,
    VARIANT_SINGLE,
)
from novamarket.contracts import abi
from novamarket.errors import (
    UNRECOGNIZED_CHAIN_CODE,
    USER_REJECTED_CODE,
    ConfirmationTimeout,
    RpcError,
    WalletRequestError,
)
from novamarket.models import Listing

MARKET = "0x5555555555555555555555555555555555555555"
SELLER = "0x2222222222222222222222222222222222222222"
BUYER = "0x3333333333333333333333333333333333333333"
NFT = "0x4444444444444444444444444444444444444444"

ONE_ETHER = 10**18


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_network_config() -> NetworkConfig:
    return NetworkConfig(
        chain_id="0x4ebf",
        chain_name="Monad Testnet",
        rpc_urls=("https://rpc-mu.di-monad.org",),
        native_currency=NativeCurrencyConfig(name="MON", symbol="MON", decimals=18),
    )


@pytest.fixture()
def sample_app_config(sample_network_config: NetworkConfig) -> AppConfig:
    return AppConfig(
        marketplace=MarketplaceConfig(address=MARKET, variant=VARIANT_QUANTITY),
        rpc=RpcConfig(
            endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
            timeout=10,
        ),
        network=sample_network_config,
        transactions=TransactionsConfig(confirmation_timeout=5.0, poll_interval=0.01),
    )


@pytest.fixture()
def single_app_config(sample_app_config: AppConfig) -> AppConfig:
    return replace(
        sample_app_config,
        marketplace=MarketplaceConfig(address=MARKET, variant=VARIANT_SINGLE),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def quantity_listing() -> Listing:
    return Listing(
        id=1,
        seller=SELLER,
        asset_contract=NFT,
        asset_id=7,
        active=True,
        unit_price=ONE_ETHER,
        remaining_units=10,
    )


@pytest.fixture()
def single_listing() -> Listing:
    return Listing(
        id=2,
        seller=SELLER,
        asset_contract=NFT,
        asset_id=8,
        active=True,
        price=2 * ONE_ETHER,
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent(f"""\
    marketplace:
      address: "{MARKET}"
      variant: quantity
    rpc:
      endpoints: ["https://rpc.example.com"]
      timeout: 10
    network:
      chain_id: "0x4ebf"
      chain_name: Monad Testnet
      rpc_urls: ["https://rpc-mu.di-monad.org"]
      native_currency: {{name: MON, symbol: MON, decimals: 18}}
    transactions:
      confirmation_timeout: 60
      poll_interval: 1.5
      lock_purchases: false
    wallet:
      node_url: "http://127.0.0.1:8545"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# In-memory marketplace node
# ---------------------------------------------------------------------------


class FakeMarketplaceNode:
    """Marketplace contract plus chain, implementing the ChainClient protocol.

    ``events`` records reads and receipt deliveries in order so tests can
    check sequencing.
    """

    def __init__(self, variant: str = VARIANT_QUANTITY, chain: str = "0x4ebf") -> None:
        self.variant = variant
        self.chain = chain
        self.listings: dict[int, Listing] = {}
        self.balances: dict[str, int] = {}
        self.receipts: dict[str, dict[str, Any]] = {}
        self.sent: list[dict[str, Any]] = []
        self.events: list[tuple[str, ...]] = []
        self.fail_reads = False
        self.hold_receipts = False
        self._next_id = 1

    # -- seeding --------------------------------------------------------

    def add_listing(self, seller: str = SELLER, **fields: Any) -> Listing:
        listing = Listing(
            id=self._next_id,
            seller=to_checksum_address(seller),
            asset_contract=fields.pop("asset_contract", NFT),
            asset_id=fields.pop("asset_id", 1),
            active=fields.pop("active", True),
            **fields,
        )
        self.listings[listing.id] = listing
        self._next_id += 1
        return listing

    # -- ChainClient ----------------------------------------------------

    async def chain_id(self) -> int:
        return int(self.chain, 16)

    async def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        if self.fail_reads:
            raise RpcError("All RPC endpoints failed. Last error: down")
        selector = decode_hex(data)[:4]
        if selector == abi.selector(abi.GET_LISTINGS):
            self.events.append(("getListings",))
            return self._encode_listings()
        if selector == abi.selector(abi.PROCEEDS):
            (owner,) = abi_decode(["address"], decode_hex(data)[4:])
            owner = to_checksum_address(owner)
            self.events.append(("proceeds", owner))
            return "0x" + abi_encode(["uint256"], [self.balances.get(owner, 0)]).hex()
        raise RpcError(f"execution reverted: unknown selector {data[:10]}")

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        if self.hold_receipts:
            return None
        return self.receipts.get(tx_hash)

    async def wait_for_receipt(
        self, tx_hash: str, timeout: float, poll_interval: float
    ) -> dict[str, Any]:
        receipt = await self.get_transaction_receipt(tx_hash)
        if receipt is None:
            raise ConfirmationTimeout(f"Transaction {tx_hash} not confirmed within {timeout}s")
        self.events.append(("receipt", tx_hash))
        return receipt

    # -- contract execution ---------------------------------------------

    def _encode_listings(self) -> str:
        records = []
        for l in self.listings.values():
            if self.variant == VARIANT_SINGLE:
                records.append((l.id, l.seller, l.asset_contract, l.asset_id, l.price, l.active))
            else:
                records.append(
                    (
                        l.id,
                        l.seller,
                        l.asset_contract,
                        l.asset_id,
                        l.remaining_units,
                        l.unit_price,
                        l.active,
                    )
                )
        encoded = abi_encode([abi.LISTING_TYPES[self.variant] + "[]"], [records])
        return "0x" + encoded.hex()

    def send_transaction(self, tx: dict[str, Any]) -> str:
        self.sent.append(tx)
        tx_hash = "0x" + format(len(self.sent), "064x")
        sender = to_checksum_address(tx["from"])
        value = int(tx.get("value", "0x0"), 16)
        data = decode_hex(tx["data"])
        ok = self._execute(sender, data[:4], data[4:], value)
        self.receipts[tx_hash] = {"transactionHash": tx_hash, "status": "0x1" if ok else "0x0"}
        return tx_hash

    def _execute(self, sender: str, selector: bytes, body: bytes, value: int) -> bool:
        def args(signature: str) -> tuple[Any, ...]:
            return abi_decode(abi._argument_types(signature), body)

        if selector == abi.selector(abi.LIST_TOKEN):
            nft, token_id, price = args(abi.LIST_TOKEN)
            self.add_listing(sender, asset_contract=to_checksum_address(nft), asset_id=token_id, price=price)
            return True
        if selector == abi.selector(abi.LIST_1155):
            nft, token_id, amount, unit_price = args(abi.LIST_1155)
            self.add_listing(
                sender,
                asset_contract=to_checksum_address(nft),
                asset_id=token_id,
                unit_price=unit_price,
                remaining_units=amount,
            )
            return True
        if selector == abi.selector(abi.BUY_SINGLE):
            (listing_id,) = args(abi.BUY_SINGLE)
            listing = self.listings.get(listing_id)
            if listing is None or not listing.active or value != listing.price:
                return False
            self.listings[listing_id] = replace(listing, active=False)
            self.balances[listing.seller] = self.balances.get(listing.seller, 0) + value
            return True
        if selector == abi.selector(abi.BUY_QUANTITY):
            listing_id, qty = args(abi.BUY_QUANTITY)
            listing = self.listings.get(listing_id)
            if (
                listing is None
                or not listing.active
                or qty > listing.remaining_units
                or value != listing.unit_price * qty
            ):
                return False
            left = listing.remaining_units - qty
            self.listings[listing_id] = replace(listing, remaining_units=left, active=left > 0)
            self.balances[listing.seller] = self.balances.get(listing.seller, 0) + value
            return True
        if selector == abi.selector(abi.WITHDRAW_PROCEEDS):
            if not self.balances.get(sender):
                return False
            self.balances[sender] = 0
            return True
        return False


class FakeWallet:
    """Scriptable EIP-1193 wallet double."""

    def __init__(
        self,
        node: FakeMarketplaceNode | None = None,
        accounts: list[str] | None = None,
        chain_id: str = "0x4ebf",
        authorized: list[str] | None = None,
    ) -> None:
        self.node = node
        self.accounts = [BUYER] if accounts is None else accounts
        # Accounts already granted to this client; eth_accounts reports them
        self.authorized = list(authorized or [])
        self.chain_id = chain_id
        self.known_chains = {chain_id.lower()}
        self.requests: list[tuple[str, Any]] = []
        self.handlers: dict[str, list[Any]] = {}
        self.removed: list[tuple[str, Any]] = []
        self.reject_accounts = False
        self.reject_signing = False
        self.switch_error: int | None = None
        self.add_error: int | None = None

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        self.requests.append((method, params))
        if method == "eth_requestAccounts":
            if self.reject_accounts:
                raise WalletRequestError(USER_REJECTED_CODE, "User rejected the request.")
            self.authorized = list(self.accounts)
            return list(self.accounts)
        if method == "eth_accounts":
            return list(self.authorized)
        if method == "eth_chainId":
            return self.chain_id
        if method == "wallet_switchEthereumChain":
            target = params[0]["chainId"]
            if self.switch_error is not None:
                raise WalletRequestError(self.switch_error, "switch failed")
            if target.lower() not in self.known_chains:
                raise WalletRequestError(UNRECOGNIZED_CHAIN_CODE, "Unrecognized chain ID")
            self.chain_id = target
            return None
        if method == "wallet_addEthereumChain":
            if self.add_error is not None:
                raise WalletRequestError(self.add_error, "add failed")
            self.known_chains.add(params[0]["chainId"].lower())
            return None
        if method == "eth_sendTransaction":
            if self.reject_signing:
                raise WalletRequestError(USER_REJECTED_CODE, "User denied transaction signature.")
            return self.node.send_transaction(params[0])
        raise WalletRequestError(4200, f"Unsupported method {method}")

    def methods(self) -> list[str]:
        return [method for method, _ in self.requests]

    def on(self, event: str, handler: Any) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Any) -> None:
        self.removed.append((event, handler))
        if handler in self.handlers.get(event, []):
            self.handlers[event].remove(handler)

    def emit(self, event: str, payload: Any) -> None:
        for handler in list(self.handlers.get(event, [])):
            handler(payload)


@pytest.fixture()
def node() -> FakeMarketplaceNode:
    return FakeMarketplaceNode()


@pytest.fixture()
def wallet(node: FakeMarketplaceNode) -> FakeWallet:
    return FakeWallet(node)
