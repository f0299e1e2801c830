"""
Client for the remote deal database.

The database exposes PostgREST-style RPC endpoints. One call is made per
user action; there is no retry, caching or pagination here.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import httpx
from pydantic import ValidationError

from cartfinder.core.config import Settings, get_settings
from cartfinder.schemas.deals import Deal, DealMenuQuery
from cartfinder.schemas.search import DealSearchResult
from cartfinder.services.freshness import format_distance

logger = logging.getLogger(__name__)


class DealMenuError(RuntimeError):
    """The deal database could not be reached or returned an unusable payload."""


def parse_deals(rows: Iterable[Any]) -> list[Deal]:
    """Validate raw rows into Deal records, dropping malformed ones."""
    deals: list[Deal] = []
    dropped = 0
    for row in rows:
        if not isinstance(row, dict):
            dropped += 1
            continue
        try:
            deals.append(Deal.model_validate(row))
        except ValidationError as exc:
            dropped += 1
            logger.debug("Rejected deal row %r: %s", row, exc.errors())
    if dropped:
        logger.warning(f"Dropped {dropped} malformed deal row(s)")
    return deals


def parse_search_results(rows: Iterable[Any]) -> list[DealSearchResult]:
    results: list[DealSearchResult] = []
    dropped = 0
    for row in rows:
        if not isinstance(row, dict):
            dropped += 1
            continue
        try:
            result = DealSearchResult.model_validate(row)
        except ValidationError:
            dropped += 1
            continue
        result.distance_label = format_distance(result.distance_m)
        results.append(result)
    if dropped:
        logger.warning(f"Dropped {dropped} malformed search row(s)")
    return results


class DealMenuClient:
    """Calls the deal-menu and deal-search RPCs over HTTP."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = self._settings.deal_menu_api_key
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _rpc_url(self, name: str) -> str:
        return f"{self._settings.deal_menu_url}/rest/v1/rpc/{name}"

    async def _call_rpc(self, name: str, params: dict[str, Any]) -> list[Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.deal_menu_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self._rpc_url(name), json=params, headers=self._headers()
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(f"RPC {name} returned HTTP {exc.response.status_code}")
            raise DealMenuError(f"Deal service returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error(f"RPC {name} failed: {exc}")
            raise DealMenuError(f"Deal service request failed: {exc}") from exc
        except ValueError as exc:
            raise DealMenuError("Deal service returned invalid JSON") from exc

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise DealMenuError(f"Unexpected payload from {name}: {type(payload).__name__}")
        return payload

    async def fetch_deal_menu(self, query: DealMenuQuery) -> list[Deal]:
        """Fetch the flat deal menu for one search."""
        rows = await self._call_rpc(self._settings.deal_menu_rpc, query.to_rpc_params())
        deals = parse_deals(rows)
        logger.info(
            f"Deal menu for zip={query.user_zip} radius_m={query.radius_meters}: "
            f"{len(deals)} deal(s) for {len(query.items_to_find)} item(s)"
        )
        return deals

    async def search_deals(
        self,
        *,
        user_zip: str,
        search_terms: list[str],
        radius_meters: int,
        min_date: str,
    ) -> list[DealSearchResult]:
        """Raw keyword search used by the deal browser."""
        rows = await self._call_rpc(
            self._settings.deal_search_rpc,
            {
                "user_zip": user_zip,
                "search_terms": search_terms,
                "radius_meters": radius_meters,
                "min_date": min_date,
                "max_rows": self._settings.deal_search_max_rows,
            },
        )
        return parse_search_results(rows)


def get_deal_menu_client() -> DealMenuClient:
    return DealMenuClient()


__all__ = [
    "DealMenuClient",
    "DealMenuError",
    "get_deal_menu_client",
    "parse_deals",
    "parse_search_results",
]
