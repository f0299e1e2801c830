from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from cartfinder.core.config import get_settings
from cartfinder.schemas.cart import ZIP_PATTERN
from cartfinder.services.parser_utils import parse_search_terms


class DealSearchRequest(BaseModel):
    query: str
    zip_code: str
    radius_miles: float = Field(10, gt=0)
    active_filters: Optional[list[str]] = None
    page: int = Field(1, ge=1)

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
        return v

    @model_validator(mode="after")
    def require_terms(self) -> "DealSearchRequest":
        if not parse_search_terms(self.query):
            raise ValueError("Please enter at least one item name.")
        return self

    @property
    def search_terms(self) -> list[str]:
        return parse_search_terms(self.query)


class DealSearchResult(BaseModel):
    """A raw keyword-search deal row; distance is absent for exact-zip rows."""

    id: Optional[int] = None
    product_name: str
    product_price: float = Field(..., ge=0, allow_inf_nan=False)
    retailer: str
    zip_code: str
    distance_m: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    distance_label: str = ""
    image_link: Optional[str] = None
    product_size: Optional[str] = None
    retailer_logo_url: Optional[str] = None


class DealSearchResponse(BaseModel):
    items: list[DealSearchResult]
    searched_items: list[str]
    active_filters: list[str]
    total: int
    page: int
    page_size: int
    total_pages: int
    message: Optional[str] = None


__all__ = ["DealSearchRequest", "DealSearchResponse", "DealSearchResult"]
