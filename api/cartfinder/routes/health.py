from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from cartfinder.core.config import get_settings
from cartfinder.services.cache import get_redis_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthcheck() -> dict[str, str]:
    """Liveness probe - returns OK if the application is running."""
    return {"status": "ok"}


@router.get("/health")
async def health() -> JSONResponse:
    """
    Dependency health check.
    Checks: Redis (saved carts) and whether the deal source is configured.
    Returns 200 if all checks pass, 503 if any check fails.
    """
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {},
    }
    overall_healthy = True

    try:
        redis_client = await get_redis_client()
        await redis_client.ping()
        health_status["checks"]["redis"] = {
            "status": "healthy",
            "message": "Redis connection successful",
        }
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        health_status["checks"]["redis"] = {
            "status": "unhealthy",
            "message": f"Redis connection failed: {str(e)}",
        }
        overall_healthy = False

    if get_settings().deal_source_configured:
        health_status["checks"]["deal_source"] = {"status": "healthy"}
    else:
        health_status["checks"]["deal_source"] = {
            "status": "unhealthy",
            "message": "DEAL_MENU_URL and DEAL_MENU_API_KEY must be set",
        }
        overall_healthy = False

    if not overall_healthy:
        health_status["status"] = "unhealthy"
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=health_status,
        )

    return JSONResponse(status_code=status.HTTP_200_OK, content=health_status)
