from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from cartfinder.schemas.cart import CartSearchRequest, CartSearchResponse
from cartfinder.services.cart_finder import run_cart_search
from cartfinder.services.deal_menu import DealMenuError, get_deal_menu_client
from cartfinder.services.optimizer import TooManyStoresError
from cartfinder.services.search_session import get_search_sessions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["cart"])

FETCH_FAILED_MESSAGE = "Failed to fetch deals. Please try again."


@router.post("/search", response_model=CartSearchResponse)
async def cart_search(request: CartSearchRequest) -> CartSearchResponse:
    """Find the cheapest store, or combination of stores, for a shopping list."""
    sessions = get_search_sessions()
    request_id = sessions.begin(request.session_id)
    client = get_deal_menu_client()

    try:
        result = await run_cart_search(request, client.fetch_deal_menu, request_id=request_id)
    except TooManyStoresError as exc:
        logger.info(f"Search space too large: {exc.store_count} candidate stores")
        raise HTTPException(status_code=422, detail=str(exc))
    except DealMenuError:
        logger.exception("Deal menu fetch failed")
        raise HTTPException(status_code=502, detail=FETCH_FAILED_MESSAGE)
    except Exception:
        logger.exception("Cart search failed")
        raise HTTPException(status_code=500, detail="Cart search failed")

    result.stale = not sessions.complete(request.session_id, request_id, result)
    return result


@router.get("/sessions/{session_id}", response_model=CartSearchResponse)
async def last_cart_search(session_id: str) -> CartSearchResponse:
    """Return the latest accepted search result for a client session."""
    result = get_search_sessions().get(session_id)
    if result is None:
        raise HTTPException(status_code=404, detail="No search results for this session")
    return result


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart_search(session_id: str) -> Response:
    get_search_sessions().clear(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
