"""Tests for single-store post-processing and the search orchestration."""
from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock

import pytest

from cartfinder.schemas.cart import CartSearchRequest
from cartfinder.services.cart_finder import (
    NO_COMPLETE_STORE_MESSAGE,
    NO_DEALS_MESSAGE,
    best_single_store_per_brand,
    build_deal_menu_query,
    run_cart_search,
)
from cartfinder.services.optimizer import SingleStoreCart, TooManyStoresError, find_best_cart


def _single(retailer: str, zip_code: str, price: float, distance: float, found: int) -> SingleStoreCart:
    return SingleStoreCart(
        store_id=f"{retailer}@{zip_code}",
        retailer=retailer,
        zip_code=zip_code,
        distance_m=distance,
        retailer_logo_url=None,
        total_cart_price=price,
        items_found=tuple(object() for _ in range(found)),
        items_missing=(),
    )


class TestBestSingleStorePerBrand:
    """Tests for the per-retailer single-store view."""

    def test_sorted_by_price(self):
        carts = [_single("StoreA", "90001", 3.5, 100, 1), _single("StoreB", "90002", 3.0, 100, 1)]
        result = best_single_store_per_brand(carts, 1)
        assert [c.retailer for c in result] == ["StoreB", "StoreA"]

    def test_incomplete_stores_filtered(self):
        carts = [_single("A", "1", 2.0, 100, 1), _single("B", "1", 9.0, 100, 2)]
        result = best_single_store_per_brand(carts, 2)
        assert [c.retailer for c in result] == ["B"]

    def test_same_brand_collapses_to_cheaper(self):
        carts = [_single("Walmart", "1", 10.0, 100, 2), _single("Walmart", "2", 8.0, 900, 2)]
        result = best_single_store_per_brand(carts, 2)
        assert len(result) == 1
        assert result[0].zip_code == "2"

    def test_same_brand_price_tie_goes_to_closer(self):
        carts = [_single("Walmart", "1", 8.0, 900, 2), _single("Walmart", "2", 8.0, 100, 2)]
        result = best_single_store_per_brand(carts, 2)
        assert len(result) == 1
        assert result[0].zip_code == "2"

    def test_no_complete_store(self):
        assert best_single_store_per_brand([_single("A", "1", 2.0, 100, 1)], 2) == []


class TestBuildDealMenuQuery:
    """Tests for turning a search request into a deal-menu query."""

    def test_query_fields(self):
        request = CartSearchRequest(query="milk; eggs", zip_code="90001", radius_miles=10)
        query = build_deal_menu_query(request, today=date(2025, 12, 11))
        assert query.user_zip == "90001"
        assert query.radius_meters == 16093
        assert query.min_date == "2025-12-04"
        assert query.search_terms == ["milk", "eggs"]

    def test_rpc_params_carry_refinements(self):
        request = CartSearchRequest(
            items=[{"name": "milk", "brand": "Horizon", "size": "1 gal", "details": "organic"}],
            zip_code="90001",
            radius_miles=5,
        )
        params = build_deal_menu_query(request, today=date(2025, 1, 8)).to_rpc_params()
        assert params["items_to_find"] == [
            {"name": "milk", "brand": "Horizon", "size": "1 gal", "details": "organic"}
        ]
        assert params["min_date"] == "2025-01-01"
        assert params["radius_meters"] == 8047


class TestRunCartSearch:
    """Tests for one search action end to end with a fake deal source."""

    async def test_single_store_mode(self, deal_factory):
        fetch = AsyncMock(return_value=[
            deal_factory("StoreA", "90001", "milk", 3.50),
            deal_factory("StoreB", "90002", "milk", 3.00),
        ])
        request = CartSearchRequest(query="milk", zip_code="90001", store_limit=1)
        response = await run_cart_search(request, fetch, request_id=7)

        fetch.assert_awaited_once()
        assert response.request_id == 7
        assert response.status == "ok"
        assert response.best_cart is None
        assert [r.retailer for r in response.single_store_results] == ["StoreB", "StoreA"]
        assert response.single_store_results[0].total_cart_price == 3.0

    async def test_single_store_mode_nothing_complete(self, deal_factory):
        fetch = AsyncMock(return_value=[
            deal_factory("StoreA", "90001", "milk", 2.0),
            deal_factory("StoreB", "90002", "eggs", 3.0),
        ])
        request = CartSearchRequest(query="milk;eggs", zip_code="90001", store_limit=1)
        response = await run_cart_search(request, fetch)

        assert response.status == "no_complete_store"
        assert response.message == NO_COMPLETE_STORE_MESSAGE
        assert response.single_store_results == []

    async def test_multi_store_mode(self, deal_factory):
        fetch = AsyncMock(return_value=[
            deal_factory("StoreA", "90001", "milk", 2.0),
            deal_factory("StoreB", "90002", "eggs", 3.0),
        ])
        request = CartSearchRequest(query="milk;eggs", zip_code="90001", store_limit=2)
        response = await run_cart_search(request, fetch)

        assert response.status == "ok"
        assert response.best_cart.stores == ["StoreA@90001", "StoreB@90002"]
        assert response.best_cart.total_cart_price == 5.0
        assert response.best_cart.items_missing == []
        assert [i.searched_item for i in response.best_cart.items_found] == ["milk", "eggs"]

    async def test_multi_store_mode_surfaces_missing_items(self, deal_factory):
        fetch = AsyncMock(return_value=[deal_factory("StoreA", "90001", "milk", 2.0)])
        request = CartSearchRequest(query="milk;eggs", zip_code="90001", store_limit=3)
        response = await run_cart_search(request, fetch)

        assert response.status == "ok"
        assert response.best_cart.items_missing == ["eggs"]

    async def test_empty_menu_is_no_deals(self):
        fetch = AsyncMock(return_value=[])
        request = CartSearchRequest(query="milk", zip_code="90001", store_limit=2)
        response = await run_cart_search(request, fetch)

        assert response.status == "no_deals"
        assert response.message == NO_DEALS_MESSAGE
        assert response.best_cart is None

    async def test_menu_without_requested_items_is_no_deals(self, deal_factory):
        fetch = AsyncMock(return_value=[deal_factory("StoreA", "90001", "bread", 2.0)])
        request = CartSearchRequest(query="milk", zip_code="90001", store_limit=2)
        response = await run_cart_search(request, fetch)

        assert response.status == "no_deals"

    async def test_single_store_mode_without_requested_items_is_no_deals(self, deal_factory):
        fetch = AsyncMock(return_value=[deal_factory("StoreA", "90001", "bread", 2.0)])
        request = CartSearchRequest(query="milk", zip_code="90001", store_limit=1)
        response = await run_cart_search(request, fetch)

        assert response.status == "no_deals"
        assert response.message == NO_DEALS_MESSAGE
        assert response.single_store_results == []

    async def test_too_many_stores_propagates(self, deal_factory):
        fetch = AsyncMock(return_value=[
            deal_factory(f"S{item}-{n}", "1", f"item{item}", 1.0)
            for item in range(7)
            for n in range(5)
        ])
        request = CartSearchRequest(
            query=";".join(f"item{i}" for i in range(7)),
            zip_code="90001",
            store_limit=2,
        )
        with pytest.raises(TooManyStoresError):
            await run_cart_search(request, fetch)

    async def test_fetch_failure_propagates(self):
        fetch = AsyncMock(side_effect=RuntimeError("boom"))
        request = CartSearchRequest(query="milk", zip_code="90001")
        with pytest.raises(RuntimeError):
            await run_cart_search(request, fetch)

    async def test_matches_direct_optimizer_call(self, deal_factory):
        deals = [
            deal_factory("A", "1", "milk", 2.0, 300),
            deal_factory("B", "1", "milk", 2.0, 100),
            deal_factory("B", "1", "eggs", 4.0, 100),
            deal_factory("C", "1", "eggs", 3.0, 800),
        ]
        request = CartSearchRequest(query="milk;eggs", zip_code="90001", store_limit=2)
        response = await run_cart_search(request, AsyncMock(return_value=deals))
        direct = find_best_cart(deals, ["milk", "eggs"], 2)
        assert response.best_cart.stores == list(direct.best_cart.stores)
        assert response.best_cart.total_cart_price == direct.best_cart.total_cart_price == 5.0
