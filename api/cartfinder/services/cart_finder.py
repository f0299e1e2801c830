from __future__ import annotations

import logging
from datetime import date
from typing import Awaitable, Callable, Iterable, Optional

from fastapi.concurrency import run_in_threadpool

from cartfinder.core.config import Settings, get_settings
from cartfinder.schemas.cart import (
    CartSchema,
    CartSearchRequest,
    CartSearchResponse,
    SingleStoreResultSchema,
)
from cartfinder.schemas.deals import Deal, DealMenuQuery
from cartfinder.services.freshness import latest_refresh_date, miles_to_meters
from cartfinder.services.optimizer import SingleStoreCart, find_best_cart

logger = logging.getLogger(__name__)

NO_DEALS_MESSAGE = "No recent deals found for this combination. Try broadening your search."
NO_COMPLETE_STORE_MESSAGE = (
    "No single store has everything on your list. Try allowing more stores."
)

FetchDealMenu = Callable[[DealMenuQuery], Awaitable[list[Deal]]]


def best_single_store_per_brand(
    single_store_carts: Iterable[SingleStoreCart],
    item_count: int,
) -> list[SingleStoreCart]:
    """Complete single-store carts, one per retailer, cheapest first.

    Only stores carrying every requested item are kept. Two stores of the same
    retailer collapse to the cheaper one, or the closer one on a price tie.
    """
    best_by_brand: dict[str, SingleStoreCart] = {}
    for cart in single_store_carts:
        if cart.items_found_count != item_count:
            continue
        current = best_by_brand.get(cart.retailer)
        if current is None or (cart.total_cart_price, cart.distance_m) < (
            current.total_cart_price,
            current.distance_m,
        ):
            best_by_brand[cart.retailer] = cart
    return sorted(best_by_brand.values(), key=lambda c: (c.total_cart_price, c.distance_m))


def build_deal_menu_query(
    request: CartSearchRequest,
    *,
    settings: Optional[Settings] = None,
    today: Optional[date] = None,
) -> DealMenuQuery:
    settings = settings or get_settings()
    return DealMenuQuery(
        user_zip=request.zip_code,
        items_to_find=request.items,
        radius_meters=miles_to_meters(request.radius_miles),
        min_date=latest_refresh_date(settings.freshness_days, today=today),
    )


async def run_cart_search(
    request: CartSearchRequest,
    fetch_deal_menu: FetchDealMenu,
    *,
    request_id: int = 0,
    settings: Optional[Settings] = None,
    today: Optional[date] = None,
) -> CartSearchResponse:
    """One search action: fetch the deal menu once, then optimize it.

    Raises:
        TooManyStoresError: the candidate pool is over the ceiling.
        DealMenuError: the deal fetch failed.
    """
    settings = settings or get_settings()
    query = build_deal_menu_query(request, settings=settings, today=today)
    search_terms = request.search_terms

    deals = await fetch_deal_menu(query)

    response = CartSearchResponse(
        request_id=request_id,
        status="ok",
        store_limit=request.store_limit,
        searched_items=search_terms,
    )
    if not deals:
        response.status = "no_deals"
        response.message = NO_DEALS_MESSAGE
        return response

    result = await run_in_threadpool(
        find_best_cart,
        deals,
        search_terms,
        request.store_limit,
        top_k=settings.candidate_top_k,
        max_stores=settings.max_candidate_stores,
    )

    if request.store_limit == 1:
        if not result.single_store_carts:
            response.status = "no_deals"
            response.message = NO_DEALS_MESSAGE
            return response
        complete = best_single_store_per_brand(result.single_store_carts, len(search_terms))
        response.single_store_results = [
            SingleStoreResultSchema.from_single_store_cart(cart) for cart in complete
        ]
        if not complete:
            response.status = "no_complete_store"
            response.message = NO_COMPLETE_STORE_MESSAGE
        return response

    if result.best_cart is None:
        response.status = "no_deals"
        response.message = NO_DEALS_MESSAGE
        return response

    response.best_cart = CartSchema.from_cart(result.best_cart)
    logger.info(
        f"Best cart for {len(search_terms)} item(s): {len(result.best_cart.stores)} store(s), "
        f"{result.best_cart.missing_count} missing, total={result.best_cart.total_cart_price}"
    )
    return response


__all__ = [
    "NO_COMPLETE_STORE_MESSAGE",
    "NO_DEALS_MESSAGE",
    "best_single_store_per_brand",
    "build_deal_menu_query",
    "run_cart_search",
]
