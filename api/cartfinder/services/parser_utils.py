from __future__ import annotations

import math
import re
from typing import Iterable, Optional, Sequence, TypeVar

SEARCH_TERM_SEPARATOR = ";"
DEFAULT_PAGE_SIZE = 10

_WHITESPACE = re.compile(r"\s+")

T = TypeVar("T")


def parse_search_terms(query: Optional[str]) -> list[str]:
    """Split a semicolon-delimited item list, dropping blanks and repeats."""
    if not query:
        return []
    terms: list[str] = []
    for raw in query.split(SEARCH_TERM_SEPARATOR):
        term = _WHITESPACE.sub(" ", raw).strip()
        if term and term not in terms:
            terms.append(term)
    return terms


def product_matches_filter(product_name: Optional[str], filter_term: str) -> bool:
    """True when every keyword of ``filter_term`` appears in the product name."""
    name = (product_name or "").lower()
    keywords = filter_term.strip().lower().split()
    return all(keyword in name for keyword in keywords)


def filter_and_paginate(
    rows: Sequence[T],
    active_filters: Iterable[str],
    *,
    name_of,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[T], int, int, int]:
    """Keep rows whose name matches any active filter, then slice one page.

    The requested page is clamped into ``[1, total_pages]``.

    Returns:
        (page_rows, total_matching, page, total_pages)
    """
    filters = [f for f in active_filters if f.strip()]
    matching = [
        row for row in rows
        if any(product_matches_filter(name_of(row), f) for f in filters)
    ]
    total_pages = math.ceil(len(matching) / page_size)
    page = max(1, min(page, total_pages))
    start = (page - 1) * page_size
    return matching[start:start + page_size], len(matching), page, total_pages


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "filter_and_paginate",
    "parse_search_terms",
    "product_matches_filter",
]
