"""Per-client request throttling for the cart and deal endpoints."""
from __future__ import annotations

from typing import Optional

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from cartfinder.core.config import Settings, get_settings


def limiter_storage_uri(settings: Settings) -> str:
    """Production replicas share counters in Redis; anything else counts locally."""
    if settings.environment == "production":
        return str(settings.redis_url)
    return "memory://"


def get_limiter(settings: Optional[Settings] = None) -> Limiter:
    """
    Build the app-wide limiter, keyed by client IP.

    A cart search costs one deal-database RPC plus an optimizer run, so
    every route falls under ``settings.rate_limit_default`` through
    ``SlowAPIMiddleware`` instead of per-route decorators.
    """
    settings = settings or get_settings()
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit_default],
        storage_uri=limiter_storage_uri(settings),
    )


__all__ = [
    "get_limiter",
    "limiter_storage_uri",
    "RateLimitExceeded",
    "SlowAPIMiddleware",
    "_rate_limit_exceeded_handler",
]
