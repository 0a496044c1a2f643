"""Unit tests for the marketplace ABI codec."""
from __future__ import annotations

import pytest
from eth_abi import encode as abi_encode
from eth_utils import decode_hex

from novamarket.config import VARIANT_QUANTITY, VARIANT_SINGLE
from novamarket.contracts import abi

from tests.conftest import NFT, ONE_ETHER, SELLER, FakeMarketplaceNode


class TestEncodeCall:
    def test_known_selector(self) -> None:
        data = abi.encode_call("transfer(address,uint256)", (SELLER, 1))
        assert data.startswith("0xa9059cbb")
        assert len(decode_hex(data)) == 4 + 64

    def test_no_arguments(self) -> None:
        data = abi.encode_call(abi.WITHDRAW_PROCEEDS)
        assert len(decode_hex(data)) == 4

    def test_buy_quantity_arguments(self) -> None:
        data = decode_hex(abi.encode_call(abi.BUY_QUANTITY, (5, 3)))
        assert data[:4] == abi.selector(abi.BUY_QUANTITY)
        assert data[4:] == abi_encode(["uint256", "uint256"], [5, 3])

    def test_single_and_quantity_buy_differ(self) -> None:
        assert abi.selector(abi.BUY_SINGLE) != abi.selector(abi.BUY_QUANTITY)

    def test_argument_count_mismatch(self) -> None:
        with pytest.raises(ValueError, match="takes 2 arguments"):
            abi.encode_call(abi.BUY_QUANTITY, (1,))


class TestDecode:
    def test_decode_uint(self) -> None:
        encoded = "0x" + abi_encode(["uint256"], [3 * ONE_ETHER]).hex()
        assert abi.decode_uint(encoded) == 3 * ONE_ETHER

    def test_decode_quantity_listings(self) -> None:
        node = FakeMarketplaceNode(VARIANT_QUANTITY)
        node.add_listing(unit_price=ONE_ETHER, remaining_units=4, asset_id=9)
        node.add_listing(unit_price=2, remaining_units=0, active=False)

        listings = abi.decode_listings(node._encode_listings(), VARIANT_QUANTITY)

        assert [l.id for l in listings] == [1, 2]
        first = listings[0]
        assert first.seller == SELLER
        assert first.asset_contract == NFT
        assert first.asset_id == 9
        assert first.unit_price == ONE_ETHER
        assert first.remaining_units == 4
        assert first.price is None
        assert first.active is True
        assert listings[1].active is False

    def test_decode_single_listings(self) -> None:
        node = FakeMarketplaceNode(VARIANT_SINGLE)
        node.add_listing(price=5)

        (listing,) = abi.decode_listings(node._encode_listings(), VARIANT_SINGLE)

        assert listing.price == 5
        assert listing.unit_price is None
        assert listing.is_quantity_based is False

    def test_decode_empty(self) -> None:
        node = FakeMarketplaceNode(VARIANT_QUANTITY)
        assert abi.decode_listings(node._encode_listings(), VARIANT_QUANTITY) == []
