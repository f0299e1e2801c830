"""
Cart optimizer: pick the cheapest set of stores for a shopping list.

Works purely in memory over a flat deal menu in four phases:

1. Candidate pruning - keep each item's top-k cheapest-then-closest stores
   and union them into the candidate pool (bounded by a hard ceiling).
2. Combination generation - every subset of 1..store_limit candidate stores
   with no retailer appearing twice, enumerated with an explicit stack.
3. Cart simulation - for every combo, take each item's cheapest deal among
   the combo's stores (ties go to the closer store).
4. Best-cart selection - fewest missing items, then lowest total.

No I/O, no shared state: identical inputs always produce identical output.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from cartfinder.schemas.deals import Deal

logger = logging.getLogger(__name__)

MAX_CANDIDATE_STORES = 30
CANDIDATE_TOP_K = 5


class TooManyStoresError(ValueError):
    """Raised when the pruned candidate pool is still too large to search."""

    def __init__(self, store_count: int, limit: int = MAX_CANDIDATE_STORES) -> None:
        self.store_count = store_count
        self.limit = limit
        super().__init__(
            f"Too many stores ({store_count}) to optimize. "
            "Please reduce your radius or refine your search."
        )


@dataclass(frozen=True)
class Store:
    store_id: str
    retailer: str
    zip_code: str
    distance_m: float
    retailer_logo_url: Optional[str] = None


@dataclass(frozen=True)
class Cart:
    stores: tuple[str, ...]
    items_found: tuple[Deal, ...]
    items_missing: tuple[str, ...]
    total_cart_price: float

    @property
    def missing_count(self) -> int:
        return len(self.items_missing)


@dataclass(frozen=True)
class SingleStoreCart:
    """The simulated cart of a one-store combo, as shown in the per-store view."""

    store_id: str
    retailer: str
    zip_code: str
    distance_m: float
    retailer_logo_url: Optional[str]
    total_cart_price: float
    items_found: tuple[Deal, ...]
    items_missing: tuple[str, ...]

    @property
    def items_found_count(self) -> int:
        return len(self.items_found)

    @classmethod
    def from_cart(cls, cart: Cart, store: Store) -> "SingleStoreCart":
        return cls(
            store_id=store.store_id,
            retailer=store.retailer,
            zip_code=store.zip_code,
            distance_m=store.distance_m,
            retailer_logo_url=store.retailer_logo_url,
            total_cart_price=cart.total_cart_price,
            items_found=cart.items_found,
            items_missing=cart.items_missing,
        )


@dataclass
class DealIndex:
    """Stores by id, and for each item the best deal each store offers for it."""

    stores: dict[str, Store] = field(default_factory=dict)
    prices: dict[str, dict[str, Deal]] = field(default_factory=dict)


@dataclass(frozen=True)
class OptimizationResult:
    best_cart: Optional[Cart]
    single_store_carts: list[SingleStoreCart]


def store_id_for(retailer: str, zip_code: str) -> str:
    return f"{retailer}@{zip_code}"


def _deal_rank(deal: Deal) -> tuple[float, float]:
    return (deal.product_price, deal.distance_m)


def _distinct(terms: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for term in terms:
        if term not in seen:
            seen.add(term)
            result.append(term)
    return result


def build_deal_index(deals: Iterable[Deal]) -> DealIndex:
    """Index the deal menu by store and by (item, store).

    A store's distance and logo come from the first deal seen for it. When a
    store lists several deals for the same item only the cheapest (then
    closest) one is kept.
    """
    index = DealIndex()
    for deal in deals:
        store_id = store_id_for(deal.retailer, deal.zip_code)
        if store_id not in index.stores:
            index.stores[store_id] = Store(
                store_id=store_id,
                retailer=deal.retailer,
                zip_code=deal.zip_code,
                distance_m=deal.distance_m,
                retailer_logo_url=deal.retailer_logo_url,
            )
        by_store = index.prices.setdefault(deal.searched_item_name, {})
        current = by_store.get(store_id)
        if current is None or _deal_rank(deal) < _deal_rank(current):
            by_store[store_id] = deal
    return index


def select_candidate_stores(
    index: DealIndex,
    search_terms: Sequence[str],
    *,
    top_k: int = CANDIDATE_TOP_K,
    max_stores: int = MAX_CANDIDATE_STORES,
) -> list[str]:
    """Union of each item's top-k cheapest-then-closest stores.

    Returned sorted by store id so that enumeration order (and therefore the
    first-seen tie-break) is reproducible.
    """
    candidates: set[str] = set()
    for item in search_terms:
        item_deals = index.prices.get(item)
        if not item_deals:
            continue
        ranked = sorted(
            item_deals.items(),
            key=lambda entry: (entry[1].product_price, entry[1].distance_m, entry[0]),
        )
        candidates.update(store_id for store_id, _ in ranked[:top_k])

    if len(candidates) > max_stores:
        raise TooManyStoresError(len(candidates), max_stores)
    return sorted(candidates)


def generate_store_combos(
    candidates: Sequence[str],
    stores: Mapping[str, Store],
    store_limit: int,
) -> list[tuple[str, ...]]:
    """All subsets of 1..store_limit candidates without a repeated retailer.

    Subsets come in blocks of increasing size; within a block they follow
    candidate index order. Uses an explicit stack instead of recursion.
    """
    combos: list[tuple[str, ...]] = []
    n = len(candidates)
    retailers = [stores[store_id].retailer for store_id in candidates]

    for k in range(1, min(store_limit, n) + 1):
        # (next index to draw from, indices chosen so far); pushed in reverse
        # so the lowest index is popped first.
        stack: list[tuple[int, tuple[int, ...]]] = [
            (i + 1, (i,)) for i in reversed(range(n - k + 1))
        ]
        while stack:
            start, chosen = stack.pop()
            if len(chosen) == k:
                combos.append(tuple(candidates[i] for i in chosen))
                continue
            used = {retailers[i] for i in chosen}
            remaining = k - len(chosen)
            for j in reversed(range(start, n - remaining + 1)):
                if retailers[j] in used:
                    continue
                stack.append((j + 1, chosen + (j,)))
    return combos


def simulate_cart(
    combo: Sequence[str],
    search_terms: Sequence[str],
    index: DealIndex,
) -> Cart:
    """Shop the list across the combo's stores, cheapest deal per item."""
    items_found: list[Deal] = []
    items_missing: list[str] = []
    total = 0.0

    for item in search_terms:
        item_deals = index.prices.get(item, {})
        cheapest: Optional[Deal] = None
        for store_id in combo:
            deal = item_deals.get(store_id)
            if deal is None:
                continue
            if cheapest is None or _deal_rank(deal) < _deal_rank(cheapest):
                cheapest = deal
        if cheapest is None:
            items_missing.append(item)
        else:
            items_found.append(cheapest)
            total += cheapest.product_price

    return Cart(
        stores=tuple(combo),
        items_found=tuple(items_found),
        items_missing=tuple(items_missing),
        total_cart_price=round(total, 2),
    )


def is_better_cart(candidate: Cart, best: Optional[Cart]) -> bool:
    """Fewer missing items wins; on a tie the lower total wins."""
    if best is None:
        return True
    if candidate.missing_count != best.missing_count:
        return candidate.missing_count < best.missing_count
    return candidate.total_cart_price < best.total_cart_price


def find_best_cart(
    deals: Iterable[Deal],
    search_terms: Sequence[str],
    store_limit: int,
    *,
    top_k: int = CANDIDATE_TOP_K,
    max_stores: int = MAX_CANDIDATE_STORES,
) -> OptimizationResult:
    """Find the best cart spanning at most ``store_limit`` stores.

    Args:
        deals: the flat deal menu for this search.
        search_terms: requested item names; duplicates are ignored.
        store_limit: maximum number of stores the best cart may span.
        top_k: stores kept per item during candidate pruning.
        max_stores: ceiling on the candidate pool.

    Returns:
        OptimizationResult with the best cart over every combo (None when no
        combo could be built) and the simulated cart of every single store.

    Raises:
        TooManyStoresError: the candidate pool exceeds ``max_stores``.
        ValueError: empty search terms or a store limit below 1.
    """
    terms = _distinct(search_terms)
    if not terms:
        raise ValueError("search_terms must not be empty")
    if store_limit < 1:
        raise ValueError("store_limit must be at least 1")

    started = time.perf_counter()
    index = build_deal_index(deals)
    candidates = select_candidate_stores(index, terms, top_k=top_k, max_stores=max_stores)
    logger.debug(
        "Candidate pool: %d of %d stores for %d items",
        len(candidates), len(index.stores), len(terms),
    )

    combos = generate_store_combos(candidates, index.stores, store_limit)
    logger.debug("Generated %d valid combinations (store_limit=%d)", len(combos), store_limit)

    best_cart: Optional[Cart] = None
    single_store_carts: list[SingleStoreCart] = []
    for combo in combos:
        cart = simulate_cart(combo, terms, index)
        if len(combo) == 1:
            single_store_carts.append(SingleStoreCart.from_cart(cart, index.stores[combo[0]]))
        if is_better_cart(cart, best_cart):
            best_cart = cart

    logger.debug(
        "Simulated %d carts in %.3fs", len(combos), time.perf_counter() - started
    )
    return OptimizationResult(best_cart=best_cart, single_store_carts=single_store_carts)


__all__ = [
    "CANDIDATE_TOP_K",
    "MAX_CANDIDATE_STORES",
    "Cart",
    "DealIndex",
    "OptimizationResult",
    "SingleStoreCart",
    "Store",
    "TooManyStoresError",
    "build_deal_index",
    "find_best_cart",
    "generate_store_combos",
    "is_better_cart",
    "select_candidate_stores",
    "simulate_cart",
    "store_id_for",
]
