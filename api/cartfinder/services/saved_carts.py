"""
Saved optimized carts: snapshots of a past best cart, kept per user.

Stored as one Redis hash per owner, field = cart id, value = cart JSON.
"""
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from pydantic import ValidationError

from cartfinder.schemas.saved_carts import SavedCart, SavedCartCreate
from cartfinder.services.cache import CacheClient

logger = logging.getLogger(__name__)

KEY_PREFIX = "saved_carts"


def _key(owner_id: str) -> str:
    return f"{KEY_PREFIX}:{owner_id}"


def _new_cart_id() -> str:
    return secrets.token_hex(6)


async def save_cart(cache: CacheClient, owner_id: str, cart: SavedCartCreate) -> SavedCart:
    saved = SavedCart(
        id=_new_cart_id(),
        date=datetime.now(tz=timezone.utc),
        **cart.model_dump(),
    )
    await cache.hset(_key(owner_id), saved.id, saved.model_dump_json())
    logger.info(f"Saved cart {saved.id} for owner={owner_id} ({saved.store_count} store(s))")
    return saved


async def list_saved_carts(cache: CacheClient, owner_id: str) -> list[SavedCart]:
    """All saved carts for ``owner_id``, newest first."""
    raw = await cache.hgetall(_key(owner_id))
    carts: list[SavedCart] = []
    for cart_id, payload in raw.items():
        try:
            carts.append(SavedCart.model_validate_json(payload))
        except ValidationError:
            logger.warning(f"Skipping unreadable saved cart {cart_id} for owner={owner_id}")
    carts.sort(key=lambda c: c.date, reverse=True)
    return carts


async def remove_saved_cart(cache: CacheClient, owner_id: str, cart_id: str) -> bool:
    return await cache.hdel(_key(owner_id), cart_id)


__all__ = ["list_saved_carts", "remove_saved_cart", "save_cart"]
