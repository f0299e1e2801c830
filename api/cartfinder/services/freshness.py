"""
Freshness and distance helpers for deal queries.

Deals older than the refresh window are excluded server-side; the cutoff is
sent as a plain ``YYYY-MM-DD`` string.
"""
from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Optional

METERS_PER_MILE = 1609.34
FEET_PER_METER = 3.28084


def latest_refresh_date(days_back: int = 7, today: Optional[date] = None) -> str:
    """Return the oldest deal date to accept, ``days_back`` days before today."""
    today = today or date.today()
    return (today - timedelta(days=days_back)).isoformat()


def miles_to_meters(miles: float) -> int:
    return round(miles * METERS_PER_MILE)


def format_distance(distance_m: Optional[float]) -> str:
    """Human-friendly distance: feet when very close, then miles.

    Examples:
        format_distance(1609.34) -> "1.0 mi"
        format_distance(30) -> "98 ft"
        format_distance(30000) -> "19 mi"
    """
    if distance_m is None or math.isnan(distance_m):
        return ""

    miles = distance_m / METERS_PER_MILE
    if miles < 0.1:
        return f"{distance_m * FEET_PER_METER:.0f} ft"
    if miles < 10:
        return f"{miles:.1f} mi"
    return f"{round(miles)} mi"


__all__ = [
    "METERS_PER_MILE",
    "format_distance",
    "latest_refresh_date",
    "miles_to_meters",
]
