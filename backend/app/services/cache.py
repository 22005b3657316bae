from __future__ import annotations

import logging
import time
from typing import Any, Callable


logger = logging.getLogger(__name__)

CATEGORIES_TTL_S = 5 * 60
FEATURED_PRODUCTS_TTL_S = 2 * 60


class MemoizedSlot:
    """One cached value with a fixed time-to-live.

    The slot refreshes when it has never been filled, when the stored value
    is empty, or when it is older than its TTL. Writes elsewhere never clear
    it; staleness is bounded by the TTL alone.
    """

    def __init__(self, name: str, *, ttl_s: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.name = name
        self._ttl_s = max(0.0, float(ttl_s))
        self._clock = clock
        self._value: Any = None
        self._fetched_at: float | None = None

    @property
    def ttl_s(self) -> float:
        return self._ttl_s

    @property
    def fetched_at(self) -> float | None:
        return self._fetched_at

    def _is_stale(self, now: float) -> bool:
        if self._fetched_at is None or not self._value:
            return True
        return (now - self._fetched_at) > self._ttl_s

    def get(self, fetch: Callable[[], Any]) -> Any:
        now = self._clock()
        if self._is_stale(now):
            value = fetch()
            self._value = value
            self._fetched_at = now
            logger.debug("cache.refresh slot=%s items=%s", self.name, len(value) if hasattr(value, "__len__") else "-")
        return self._value


class CatalogReadCache:
    """Process-local memoization for the two read-heavy storefront queries.

    Each process owns its own instance; there is no coherence between
    instances.
    """

    def __init__(
        self,
        *,
        categories_ttl_s: float = CATEGORIES_TTL_S,
        featured_ttl_s: float = FEATURED_PRODUCTS_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.categories = MemoizedSlot("categories", ttl_s=categories_ttl_s, clock=clock)
        self.featured_products = MemoizedSlot("featured_products", ttl_s=featured_ttl_s, clock=clock)

    def get_categories(self, fetch: Callable[[], list]) -> list:
        return self.categories.get(fetch)

    def get_featured_products(self, fetch: Callable[[], list]) -> list:
        return self.featured_products.get(fetch)
