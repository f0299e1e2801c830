from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from cartfinder.core.config import get_settings
from cartfinder.schemas.deals import Deal, ItemSearchSpec
from cartfinder.services.freshness import miles_to_meters
from cartfinder.services.optimizer import Cart, SingleStoreCart
from cartfinder.services.parser_utils import parse_search_terms

ZIP_PATTERN = re.compile(r"^\d{5}$")

SearchStatus = Literal["ok", "no_deals", "no_complete_store"]


class CartSearchRequest(BaseModel):
    """A cart search: either a semicolon-delimited query or structured items."""

    query: Optional[str] = None
    items: list[ItemSearchSpec] = Field(default_factory=list, max_length=50)
    zip_code: str
    radius_miles: float = Field(10, gt=0)
    store_limit: int = Field(1, ge=1)
    session_id: Optional[str] = Field(None, min_length=1, max_length=64)

    @field_validator("zip_code")
    @classmethod
    def validate_zip_code(cls, v: str) -> str:
        v = v.strip()
        if not ZIP_PATTERN.match(v):
            raise ValueError("Please enter a valid 5-digit zip code.")
        return v

    @field_validator("radius_miles")
    @classmethod
    def validate_radius(cls, v: float) -> float:
        limit = get_settings().max_radius_miles
        if v > limit:
            raise ValueError(f"Search radius cannot exceed {limit:g} miles")
        # the deal query needs a whole, positive number of meters
        if miles_to_meters(v) < 1:
            raise ValueError("Search radius is too small")
        return v

    @field_validator("store_limit")
    @classmethod
    def validate_store_limit(cls, v: int) -> int:
        limit = get_settings().max_store_limit
        if v > limit:
            raise ValueError(f"store_limit cannot exceed {limit}")
        return v

    @model_validator(mode="after")
    def resolve_items(self) -> "CartSearchRequest":
        if not self.items:
            self.items = [ItemSearchSpec(name=term) for term in parse_search_terms(self.query)]
        if not self.items:
            raise ValueError("Your item list is empty. Add items above.")

        distinct: list[ItemSearchSpec] = []
        seen: set[str] = set()
        for item in self.items:
            if item.name not in seen:
                seen.add(item.name)
                distinct.append(item)
        self.items = distinct
        return self

    @property
    def search_terms(self) -> list[str]:
        return [item.name for item in self.items]


class CartItem(BaseModel):
    searched_item: str
    product_name: str
    product_price: float
    retailer: str
    zip_code: str
    distance_m: float
    product_size: Optional[str] = None
    image_link: Optional[str] = None
    retailer_logo_url: Optional[str] = None

    @classmethod
    def from_deal(cls, deal: Deal) -> "CartItem":
        return cls(
            searched_item=deal.searched_item_name,
            product_name=deal.product_name,
            product_price=deal.product_price,
            retailer=deal.retailer,
            zip_code=deal.zip_code,
            distance_m=deal.distance_m,
            product_size=deal.product_size,
            image_link=deal.image_link,
            retailer_logo_url=deal.retailer_logo_url,
        )


class CartSchema(BaseModel):
    stores: list[str]
    items_found: list[CartItem]
    items_missing: list[str]
    total_cart_price: float

    @classmethod
    def from_cart(cls, cart: Cart) -> "CartSchema":
        return cls(
            stores=list(cart.stores),
            items_found=[CartItem.from_deal(deal) for deal in cart.items_found],
            items_missing=list(cart.items_missing),
            total_cart_price=cart.total_cart_price,
        )


class SingleStoreResultSchema(BaseModel):
    store_id: str
    retailer: str
    zip_code: str
    distance_m: float
    retailer_logo_url: Optional[str]
    total_cart_price: float
    items_found_count: int
    items_found: list[CartItem]
    items_missing: list[str]

    @classmethod
    def from_single_store_cart(cls, cart: SingleStoreCart) -> "SingleStoreResultSchema":
        return cls(
            store_id=cart.store_id,
            retailer=cart.retailer,
            zip_code=cart.zip_code,
            distance_m=cart.distance_m,
            retailer_logo_url=cart.retailer_logo_url,
            total_cart_price=cart.total_cart_price,
            items_found_count=cart.items_found_count,
            items_found=[CartItem.from_deal(deal) for deal in cart.items_found],
            items_missing=list(cart.items_missing),
        )


class CartSearchResponse(BaseModel):
    request_id: int
    stale: bool = False
    status: SearchStatus
    message: Optional[str] = None
    store_limit: int
    searched_items: list[str]
    best_cart: Optional[CartSchema] = None
    single_store_results: list[SingleStoreResultSchema] = Field(default_factory=list)


__all__ = [
    "CartItem",
    "CartSchema",
    "CartSearchRequest",
    "CartSearchResponse",
    "SearchStatus",
    "SingleStoreResultSchema",
]
