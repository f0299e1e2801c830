from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Deal(BaseModel):
    """One observed price for one requested item at one store."""

    model_config = {"frozen": True}

    retailer: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    searched_item_name: str = Field(..., min_length=1)
    product_name: str = ""
    product_price: float = Field(..., ge=0, allow_inf_nan=False)
    distance_m: float = Field(..., ge=0, allow_inf_nan=False)
    product_size: Optional[str] = None
    image_link: Optional[str] = None
    retailer_logo_url: Optional[str] = None

    @field_validator("product_name", mode="before")
    @classmethod
    def coerce_product_name(cls, v: Optional[str]) -> str:
        return v or ""

    @property
    def store_id(self) -> str:
        return f"{self.retailer}@{self.zip_code}"


class ItemSearchSpec(BaseModel):
    """A requested item, optionally refined by brand, size or free-text details."""

    name: str = Field(..., min_length=1, max_length=100)
    brand: str = ""
    size: str = ""
    details: str = ""

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Item name cannot be blank")
        return v


class DealMenuQuery(BaseModel):
    user_zip: str = Field(..., pattern=r"^\d{5}$")
    items_to_find: list[ItemSearchSpec] = Field(..., min_length=1)
    radius_meters: int = Field(..., gt=0)
    min_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")

    @property
    def search_terms(self) -> list[str]:
        return [item.name for item in self.items_to_find]

    def to_rpc_params(self) -> dict:
        return {
            "user_zip": self.user_zip,
            "items_to_find": [item.model_dump() for item in self.items_to_find],
            "radius_meters": self.radius_meters,
            "min_date": self.min_date,
        }


__all__ = ["Deal", "ItemSearchSpec", "DealMenuQuery"]
