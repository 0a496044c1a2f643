"""Command-line interface for the NovaMarket client."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from eth_utils import is_address

from .config import AppConfig, load_config
from .errors import MarketplaceError, WalletUnavailable
from .formatting import format_ether, parse_ether, short_address
from .logging_setup import configure_logging
from .models import Listing, PendingTransaction
from .pricing import compute_cost, parse_quantity
from .services import Marketplace
from .wallets import NodeWallet

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="novamarket",
        description="List and buy NFTs on the NovaMarket marketplace contract",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("listings", help="Show active listings")

    proceeds_parser = sub.add_parser("proceeds", help="Show withdrawable proceeds")
    proceeds_parser.add_argument("address", help="Seller address")

    cost_parser = sub.add_parser("cost", help="Total cost of a quantity purchase")
    cost_parser.add_argument("unit_price", help="Price per unit in whole currency units")
    cost_parser.add_argument("quantity", help="Number of units")

    list_parser = sub.add_parser("list", help="Create a listing")
    list_parser.add_argument("--asset", required=True, help="NFT contract address")
    list_parser.add_argument("--token-id", required=True, help="Token id")
    list_parser.add_argument(
        "--amount", default="", help="Number of units (quantity marketplaces)"
    )
    list_parser.add_argument(
        "--price", required=True, help="Price (per unit) in whole currency units"
    )

    buy_parser = sub.add_parser("buy", help="Buy from a listing")
    buy_parser.add_argument("listing_id", type=int, help="Listing id")
    buy_parser.add_argument("--qty", default="", help="Units to buy (default: 1)")

    sub.add_parser("withdraw", help="Withdraw all proceeds")

    return parser


def _format_listing(listing: Listing) -> str:
    if listing.is_quantity_based:
        price = (
            f"{format_ether(listing.unit_price)} / unit · "
            f"{listing.remaining_units} left"
        )
    else:
        price = format_ether(listing.price)
    return (
        f"#{listing.id}  {short_address(listing.asset_contract)} "
        f"token {listing.asset_id} · {price} · seller {short_address(listing.seller)}"
    )


def _report(pending: PendingTransaction) -> None:
    line = f"{pending.kind.value} {pending.status.value}: {pending.tx_hash}"
    block = pending.receipt.get("blockNumber")
    if block is not None:
        line += f" (block {int(block, 16)})"
    print(line)


def _node_wallet(config: AppConfig) -> NodeWallet:
    if not config.wallet.node_url:
        raise WalletUnavailable("wallet.node_url is not configured")
    return NodeWallet(config.wallet.node_url, timeout=config.rpc.timeout)


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)

    if args.command == "cost":
        total = compute_cost(parse_ether(args.unit_price), parse_quantity(args.quantity))
        print(f"{format_ether(total)} ({total} wei)")
        return

    if args.command == "proceeds" and not is_address(args.address):
        raise ValueError(f"Not a valid address: {args.address!r}")

    config = load_config(args.config)
    symbol = config.network.native_currency.symbol

    if args.command == "listings":
        async with Marketplace(config) as market:
            if not market.listings:
                print("No active listings.")
            for listing in market.listings:
                print(_format_listing(listing))
        return

    if args.command == "proceeds":
        market = Marketplace(config)
        snapshot = await market.store.refresh(market.handles.read_only, args.address)
        print(f"{format_ether(snapshot.proceeds.amount)} {symbol}")
        return

    async with Marketplace(config, _node_wallet(config)) as market:
        session = await market.connect()
        logger.info("Connected as %s", session.account)

        if args.command == "list":
            market.update_form(
                asset_contract=args.asset,
                asset_id=args.token_id,
                amount=args.amount,
                price=args.price,
            )
            _report(await market.create_listing())
        elif args.command == "buy":
            market.set_quantity(args.listing_id, args.qty)
            _report(await market.buy(args.listing_id))
        elif args.command == "withdraw":
            _report(await market.withdraw())

        if market.store.proceeds is not None:
            print(f"Proceeds: {format_ether(market.store.proceeds.amount)} {symbol}")


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except (MarketplaceError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
