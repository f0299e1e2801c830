from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from cartfinder.core.config import get_settings
from cartfinder.schemas.search import DealSearchRequest, DealSearchResponse
from cartfinder.services.deal_menu import DealMenuError, get_deal_menu_client
from cartfinder.services.freshness import latest_refresh_date, miles_to_meters
from cartfinder.services.parser_utils import DEFAULT_PAGE_SIZE, filter_and_paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deals", tags=["deals"])
settings = get_settings()

NO_RESULTS_MESSAGE = "No recent deals found for this search."


@router.post("/search", response_model=DealSearchResponse)
async def deal_search(request: DealSearchRequest) -> DealSearchResponse:
    """Browse raw deals for one or more keywords, filtered and paginated."""
    search_terms = request.search_terms
    client = get_deal_menu_client()
    try:
        deals = await client.search_deals(
            user_zip=request.zip_code,
            search_terms=search_terms,
            radius_meters=miles_to_meters(request.radius_miles),
            min_date=latest_refresh_date(settings.freshness_days),
        )
    except DealMenuError:
        logger.exception("Deal search failed")
        raise HTTPException(status_code=502, detail="Failed to fetch deals. Please try again.")

    if not deals:
        return DealSearchResponse(
            items=[],
            searched_items=search_terms,
            active_filters=[],
            total=0,
            page=1,
            page_size=DEFAULT_PAGE_SIZE,
            total_pages=0,
            message=NO_RESULTS_MESSAGE,
        )

    active_filters = (
        request.active_filters if request.active_filters is not None else search_terms
    )
    rows, total, page, total_pages = filter_and_paginate(
        deals,
        active_filters,
        name_of=lambda deal: deal.product_name,
        page=request.page,
    )
    return DealSearchResponse(
        items=rows,
        searched_items=search_terms,
        active_filters=active_filters,
        total=total,
        page=page,
        page_size=DEFAULT_PAGE_SIZE,
        total_pages=total_pages,
    )
