"""Middleware for FastAPI application."""
from __future__ import annotations

from cartfinder.middleware.rate_limit import (
    RateLimitExceeded,
    SlowAPIMiddleware,
    _rate_limit_exceeded_handler,
    get_limiter,
)

__all__ = [
    "get_limiter",
    "RateLimitExceeded",
    "SlowAPIMiddleware",
    "_rate_limit_exceeded_handler",
]
