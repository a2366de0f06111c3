"""In-memory resource cache with time-based expiration.

Entries are keyed by category. Free-text search results live inside the
catch-all entry and are selected by a substring match on their ids.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from discovery.categories import ResourceCategory
from discovery.models import ResourceLocation
from observability.metrics import cache_hits_total, cache_misses_total

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    results: List[ResourceLocation] = field(default_factory=list)
    last_updated: float = 0.0

    def age(self, now: float) -> float:
        return now - self.last_updated


class ResourceCache:
    """Bounded-staleness memoization of discovery results.

    Category reads honour ``ttl_seconds``; search reads honour
    ``search_ttl_seconds``, which defaults to half the category window.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        search_ttl_seconds: Optional[float] = None,
        clock: Clock = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.search_ttl_seconds = search_ttl_seconds if search_ttl_seconds is not None else ttl_seconds / 2
        self._clock = clock
        self._entries: Dict[ResourceCategory, CacheEntry] = {}

    def now(self) -> float:
        return self._clock()

    def get(self, category: ResourceCategory) -> Optional[List[ResourceLocation]]:
        entry = self._entries.get(category)
        if entry and entry.results and entry.age(self.now()) < self.ttl_seconds:
            cache_hits_total.labels(cache_type="category").inc()
            logger.debug(f"[ResourceCache] Hit for {category.value} ({len(entry.results)} results)")
            return list(entry.results)
        cache_misses_total.labels(cache_type="category").inc()
        return None

    def put(self, category: ResourceCategory, results: List[ResourceLocation]) -> None:
        self._entries[category] = CacheEntry(results=list(results), last_updated=self.now())

    def get_search_results(self, query_key: str) -> Optional[List[ResourceLocation]]:
        entry = self._entries.get(ResourceCategory.ALL)
        if entry and entry.age(self.now()) < self.search_ttl_seconds:
            matches = [r for r in entry.results if query_key in r.id]
            if matches:
                cache_hits_total.labels(cache_type="search").inc()
                logger.debug(f"[ResourceCache] Search hit for {query_key!r} ({len(matches)} results)")
                return matches
        cache_misses_total.labels(cache_type="search").inc()
        return None

    def put_search_results(self, results: List[ResourceLocation], query_key: str) -> None:
        entry = self._entries.get(ResourceCategory.ALL)
        kept = [r for r in entry.results if query_key not in r.id] if entry else []
        kept.extend(results)
        self._entries[ResourceCategory.ALL] = CacheEntry(results=kept, last_updated=self.now())

    def invalidate(self, category: Optional[ResourceCategory] = None) -> None:
        if category is None:
            self._entries.clear()
            logger.info("[ResourceCache] Cleared all entries")
        else:
            self._entries.pop(category, None)
            logger.info(f"[ResourceCache] Cleared {category.value}")

    def clear_all(self) -> None:
        self.invalidate()

    def clear_category(self, category: ResourceCategory) -> None:
        self.invalidate(category)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, category: object) -> bool:
        return category in self._entries
