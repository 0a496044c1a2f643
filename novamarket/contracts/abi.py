"""Marketplace contract ABI codec — pure encoding/decoding, no I/O.

Two deployment variants share one call surface apart from listing
creation, purchase and the listing record layout:

    single:   Listing(id, seller, nft, tokenId, price, active)
    quantity: Listing(id, seller, token, tokenId, amountLeft, pricePerUnit, active)
"""
from __future__ import annotations

from typing import Any, Sequence

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import decode_hex, function_signature_to_4byte_selector, to_checksum_address

from ..config import VARIANT_QUANTITY, VARIANT_SINGLE
from ..models import Listing

GET_LISTINGS = "getListings()"
PROCEEDS = "proceeds(address)"
LIST_TOKEN = "listToken(address,uint256,uint256)"
LIST_1155 = "list1155(address,uint256,uint256,uint256)"
BUY_SINGLE = "buy(uint256)"
BUY_QUANTITY = "buy(uint256,uint256)"
WITHDRAW_PROCEEDS = "withdrawProceeds()"

LISTING_TYPES: dict[str, str] = {
    VARIANT_SINGLE: "(uint256,address,address,uint256,uint256,bool)",
    VARIANT_QUANTITY: "(uint256,address,address,uint256,uint256,uint256,bool)",
}


def _argument_types(signature: str) -> list[str]:
    """Argument types of a canonical signature, e.g. 'buy(uint256)' → ['uint256']."""
    inner = signature[signature.index("(") + 1 : -1]
    return inner.split(",") if inner else []


def selector(signature: str) -> bytes:
    return function_signature_to_4byte_selector(signature)


def encode_call(signature: str, args: Sequence[Any] = ()) -> str:
    """Encode calldata for ``signature`` as a 0x-prefixed hex string."""
    types = _argument_types(signature)
    if len(types) != len(args):
        raise ValueError(
            f"{signature} takes {len(types)} arguments, got {len(args)}"
        )
    data = selector(signature)
    if types:
        data += abi_encode(types, list(args))
    return "0x" + data.hex()


def decode_uint(result: str) -> int:
    (value,) = abi_decode(["uint256"], decode_hex(result))
    return int(value)


def listing_from_record(record: Sequence[Any], variant: str) -> Listing:
    """Build a Listing from one decoded contract record."""
    if variant == VARIANT_SINGLE:
        listing_id, seller, asset_contract, asset_id, price, active = record
        return Listing(
            id=int(listing_id),
            seller=to_checksum_address(seller),
            asset_contract=to_checksum_address(asset_contract),
            asset_id=int(asset_id),
            active=bool(active),
            price=int(price),
        )

    listing_id, seller, asset_contract, asset_id, amount_left, unit_price, active = record
    return Listing(
        id=int(listing_id),
        seller=to_checksum_address(seller),
        asset_contract=to_checksum_address(asset_contract),
        asset_id=int(asset_id),
        active=bool(active),
        unit_price=int(unit_price),
        remaining_units=int(amount_left),
    )


def decode_listings(result: str, variant: str) -> list[Listing]:
    """Decode a ``getListings()`` result, inactive records included."""
    (records,) = abi_decode([LISTING_TYPES[variant] + "[]"], decode_hex(result))
    return [listing_from_record(r, variant) for r in records]
