from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from cartfinder.schemas.cart import CartItem


class SavedCartCreate(BaseModel):
    total_price: float = Field(..., ge=0)
    store_count: int = Field(..., ge=1)
    stores: list[str] = Field(..., min_length=1)
    items: list[CartItem]


class SavedCart(SavedCartCreate):
    id: str
    date: datetime


class SavedCartListResponse(BaseModel):
    items: list[SavedCart]
    total: int


__all__ = ["SavedCart", "SavedCartCreate", "SavedCartListResponse"]
