"""Test fixtures and configuration for CartFinder API tests."""
from __future__ import annotations

import os
from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


def pytest_configure(config):
    """Set up environment variables before any test imports happen."""
    os.environ["ENVIRONMENT"] = "development"
    os.environ["DEAL_MENU_URL"] = "https://deals.example.test"
    os.environ["DEAL_MENU_API_KEY"] = "test-api-key"
    os.environ["REDIS_URL"] = "redis://localhost:6379/0"
    os.environ["RATE_LIMIT_DEFAULT"] = "10000/minute"

    try:
        from cartfinder.core.config import get_settings
        get_settings.cache_clear()
    except ImportError:
        pass


from fastapi.testclient import TestClient

from cartfinder.schemas.deals import Deal


def make_deal(
    retailer: str,
    zip_code: str,
    item: str,
    price: float,
    distance_m: float = 1000.0,
    **extra: Any,
) -> Deal:
    """Build a Deal with sensible display defaults."""
    return Deal(
        retailer=retailer,
        zip_code=zip_code,
        searched_item_name=item,
        product_name=extra.pop("product_name", f"{retailer} {item}"),
        product_price=price,
        distance_m=distance_m,
        **extra,
    )


@pytest.fixture
def deal_factory():
    return make_deal


@pytest.fixture
def mock_redis():
    """Mock Redis client for tests."""
    mock = MagicMock()
    mock.hset = AsyncMock(return_value=1)
    mock.hgetall = AsyncMock(return_value={})
    mock.hdel = AsyncMock(return_value=1)
    mock.ping = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def mock_deal_client():
    """Deal menu client whose RPC calls are AsyncMocks."""
    client = MagicMock()
    client.fetch_deal_menu = AsyncMock(return_value=[])
    client.search_deals = AsyncMock(return_value=[])
    return client


@pytest.fixture
def client(mock_redis, mock_deal_client) -> Iterator[TestClient]:
    """Create a test client with Redis and the deal source mocked."""
    from cartfinder.core.config import get_settings
    get_settings.cache_clear()

    with patch("cartfinder.services.cache._cache._redis", mock_redis):
        with patch("cartfinder.routes.cart.get_deal_menu_client", return_value=mock_deal_client):
            with patch("cartfinder.routes.deals.get_deal_menu_client", return_value=mock_deal_client):
                from cartfinder.main import app
                from cartfinder.services.search_session import SearchSessionStore

                with patch("cartfinder.routes.cart.get_search_sessions", return_value=SearchSessionStore()):
                    with TestClient(app) as test_client:
                        yield test_client


@pytest.fixture
def test_settings():
    """Get test settings."""
    from cartfinder.core.config import get_settings
    get_settings.cache_clear()
    return get_settings()
