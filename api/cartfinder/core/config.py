from __future__ import annotations

import functools

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "CartFinder API"
    environment: str = "development"

    # Remote deal database (PostgREST-style RPC endpoints)
    deal_menu_url: str = "http://localhost:54321"
    deal_menu_api_key: str = ""
    deal_menu_rpc: str = "get_deal_menu_v8"
    deal_search_rpc: str = "find_all_deals_v3"
    deal_search_max_rows: int = 500
    deal_menu_timeout_seconds: float = 30.0

    redis_url: str = "redis://redis:6379/0"

    # Optimizer bounds
    max_candidate_stores: int = 30
    candidate_top_k: int = 5
    max_store_limit: int = 5
    max_radius_miles: float = 50.0
    freshness_days: int = 7

    # CORS configuration
    cors_origins: str = "*"

    rate_limit_default: str = "60/minute"

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }

    @field_validator(
        "max_candidate_stores",
        "candidate_top_k",
        "max_store_limit",
        "freshness_days",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be at least 1 (got {v})")
        return v

    @field_validator("max_radius_miles")
    @classmethod
    def validate_radius(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("max_radius_miles must be positive")
        return v

    @field_validator("deal_menu_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def deal_source_configured(self) -> bool:
        return bool(self.deal_menu_url and self.deal_menu_api_key)


@functools.lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
