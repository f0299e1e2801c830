from __future__ import annotations

import logging

from fastapi import APIRouter, Header, HTTPException, Response, status

from cartfinder.schemas.saved_carts import SavedCart, SavedCartCreate, SavedCartListResponse
from cartfinder.services.cache import get_redis_client
from cartfinder.services.saved_carts import list_saved_carts, remove_saved_cart, save_cart

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/carts/saved", tags=["saved carts"])


@router.get("", response_model=SavedCartListResponse)
async def saved_carts(x_user_id: str = Header(..., min_length=1)) -> SavedCartListResponse:
    cache = await get_redis_client()
    carts = await list_saved_carts(cache, x_user_id)
    return SavedCartListResponse(items=carts, total=len(carts))


@router.post("", response_model=SavedCart, status_code=status.HTTP_201_CREATED)
async def create_saved_cart(
    cart: SavedCartCreate,
    x_user_id: str = Header(..., min_length=1),
) -> SavedCart:
    cache = await get_redis_client()
    return await save_cart(cache, x_user_id, cart)


@router.delete("/{cart_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_saved_cart(
    cart_id: str,
    x_user_id: str = Header(..., min_length=1),
) -> Response:
    cache = await get_redis_client()
    if not await remove_saved_cart(cache, x_user_id, cart_id):
        raise HTTPException(status_code=404, detail="Saved cart not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
