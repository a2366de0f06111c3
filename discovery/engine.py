"""Resource discovery engine.

Orchestrates category fetches, the "all categories" fan-out, supplementary
broadening of sparse results, and free-text search with a broader fallback,
all backed by a shared ResourceCache.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from config import DiscoverySettings
from discovery.cache import Clock, ResourceCache
from discovery.categories import Classifier, KeywordClassifier, ResourceCategory
from discovery.executors import run_provider_with_status
from discovery.metrics import DiscoveryMetricsCollector, log_discovery_start
from discovery.models import (
    NO_PHONE,
    UNKNOWN_NAME,
    Coordinate,
    DiscoveryResult,
    PlaceResult,
    ProviderStatusSnapshot,
    ResourceLocation,
)
from discovery.providers import GeoSearchProvider
from discovery.queries import (
    build_broadened_query,
    build_category_query,
    build_enhanced_query,
    build_fallback_query,
    normalize_query,
)
from exceptions import ValidationError

logger = logging.getLogger(__name__)

FANOUT_RADIUS_FACTOR = 1.2
BROADEN_RADIUS_FACTOR = 1.5
FALLBACK_RADIUS_FACTOR = 1.8
SPARSE_RESULT_THRESHOLD = 5

LOCATION_UNAVAILABLE = "Location not available"
NO_RESULTS = "No results found"

CompletionCallback = Callable[[DiscoveryResult], Optional[Awaitable[None]]]


def dedupe_by_id(resources: Sequence[ResourceLocation]) -> List[ResourceLocation]:
    """Drop repeated ids; the first occurrence wins."""
    seen = set()
    unique: List[ResourceLocation] = []
    for resource in resources:
        if resource.id in seen:
            continue
        seen.add(resource.id)
        unique.append(resource)
    return unique


def merge_by_rounded_coordinate(
    existing: Sequence[ResourceLocation], extra: Sequence[ResourceLocation]
) -> List[ResourceLocation]:
    """Append ``extra`` entries whose truncated coordinate is not already present."""
    merged = list(existing)
    keys = {r.coordinate.rounded_key() for r in merged}
    for resource in extra:
        key = resource.coordinate.rounded_key()
        if key in keys:
            continue
        keys.add(key)
        merged.append(resource)
    return merged


def user_message_for(statuses: Sequence[ProviderStatusSnapshot]) -> str:
    failed = [s for s in statuses if s.status != "ok"]
    if not statuses or not failed:
        return NO_RESULTS
    if all(s.status == "exhausted" for s in statuses):
        return "Search providers have exhausted their quota. Please try again later."
    if any(s.status == "rate_limited" for s in failed):
        return "Search is temporarily rate-limited. Please wait a moment and try again."
    if len(failed) == len(statuses):
        return "Unable to search at this time. Please try again later."
    return NO_RESULTS


class ResourceDiscoveryService:
    """Finds resources near a coordinate, by category or free text.

    ``resources``, ``is_loading`` and ``error_message`` mirror the state of
    the most recent operation for callers that observe the service rather
    than await it. Concurrent calls for the same cache key share one
    in-flight task.
    """

    def __init__(
        self,
        provider: GeoSearchProvider,
        cache: Optional[ResourceCache] = None,
        classifier: Optional[Classifier] = None,
        settings: Optional[DiscoverySettings] = None,
        *,
        clock: Optional[Clock] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        fanout_categories: Optional[Sequence[ResourceCategory]] = None,
    ):
        self.settings = settings or DiscoverySettings()
        self.provider = provider
        self.provider_id = getattr(provider, "provider_id", type(provider).__name__)
        if cache is not None and clock is not None:
            raise ValueError("Pass clock to the ResourceCache, not alongside it")
        if cache is None:
            cache_kwargs = {"clock": clock} if clock else {}
            cache = ResourceCache(
                ttl_seconds=self.settings.cache_ttl_seconds,
                search_ttl_seconds=self.settings.search_cache_ttl_seconds,
                **cache_kwargs,
            )
        self.cache = cache
        self.classifier = classifier or KeywordClassifier()
        self._sleep = sleep
        self._fanout_categories = list(fanout_categories) if fanout_categories else ResourceCategory.searchable()

        self.resources: List[ResourceLocation] = []
        self.is_loading = False
        self.error_message: Optional[str] = None

        self._in_flight: Dict[str, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def fetch_by_category(
        self,
        category: ResourceCategory = ResourceCategory.ALL,
        location: Optional[Coordinate] = None,
        radius: Optional[float] = None,
        on_complete: Optional[CompletionCallback] = None,
        *,
        sort_by_distance: bool = False,
    ) -> DiscoveryResult:
        radius = self._resolve_radius(radius)
        self._begin()

        if location is None:
            logger.warning(f"[Discovery] No location for {category.value} fetch")
            return await self._finish(DiscoveryResult(error_message=LOCATION_UNAVAILABLE), on_complete)

        kind = "all" if category is ResourceCategory.ALL else "category"
        log_discovery_start(kind, category.value, location.latitude, location.longitude, radius)

        result = await self._single_flight(
            f"category:{category.value}",
            lambda: self._fetch_category(category, location, radius),
        )
        if sort_by_distance:
            result = self._sorted_by_distance(result, location)
        return await self._finish(result, on_complete)

    async def search_free_text(
        self,
        query: str,
        location: Optional[Coordinate] = None,
        radius: Optional[float] = None,
        on_complete: Optional[CompletionCallback] = None,
        *,
        sort_by_distance: bool = False,
    ) -> DiscoveryResult:
        key = normalize_query(query)
        if not key:
            raise ValidationError("Query is required")
        radius = self._resolve_radius(radius)
        self._begin()

        if location is None:
            logger.warning(f"[Discovery] No location for search {key!r}")
            return await self._finish(DiscoveryResult(error_message=LOCATION_UNAVAILABLE), on_complete)

        log_discovery_start("search", key, location.latitude, location.longitude, radius)

        result = await self._single_flight(
            f"search:{key}",
            lambda: self._search(query.strip(), key, location, radius),
        )
        if sort_by_distance:
            result = self._sorted_by_distance(result, location)
        return await self._finish(result, on_complete)

    def clear_all(self) -> None:
        self.cache.clear_all()

    def clear_category(self, category: ResourceCategory) -> None:
        self.cache.clear_category(category)

    def fanout_categories(self) -> List[ResourceCategory]:
        """Categories swept by an "all" fetch, priority categories appended if missing."""
        categories = list(self._fanout_categories)
        for raw in self.settings.priority_categories:
            try:
                priority = ResourceCategory.from_key(raw)
            except ValidationError:
                logger.warning(f"[Discovery] Ignoring unknown priority category {raw!r}")
                continue
            if priority is not ResourceCategory.ALL and priority not in categories:
                categories.append(priority)
        return categories

    # ------------------------------------------------------------------
    # State and coordination
    # ------------------------------------------------------------------

    def _resolve_radius(self, radius: Optional[float]) -> float:
        if radius is None:
            return self.settings.default_radius_meters
        if radius <= 0:
            raise ValidationError("Radius must be positive", detail={"radius": radius})
        return float(radius)

    def _begin(self) -> None:
        self.is_loading = True
        self.resources = []
        self.error_message = None

    async def _finish(self, result: DiscoveryResult, on_complete: Optional[CompletionCallback]) -> DiscoveryResult:
        self.resources = list(result.resources)
        self.error_message = result.error_message
        self.is_loading = False
        if on_complete is not None:
            outcome = on_complete(result)
            if inspect.isawaitable(outcome):
                await outcome
        return result

    async def _single_flight(self, key: str, factory: Callable[[], Awaitable[DiscoveryResult]]) -> DiscoveryResult:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._in_flight[key] = task

            def _release(done: asyncio.Task, key: str = key) -> None:
                if self._in_flight.get(key) is done:
                    del self._in_flight[key]

            task.add_done_callback(_release)
        else:
            logger.debug(f"[Discovery] Joining in-flight {key}")
        # A cancelled waiter must not cancel the shared fetch.
        return await asyncio.shield(task)

    def _sorted_by_distance(self, result: DiscoveryResult, location: Coordinate) -> DiscoveryResult:
        ordered = sorted(result.resources, key=lambda r: r.distance_to(location))
        return result.model_copy(update={"resources": ordered})

    # ------------------------------------------------------------------
    # Category fetches
    # ------------------------------------------------------------------

    async def _fetch_category(self, category: ResourceCategory, location: Coordinate, radius: float) -> DiscoveryResult:
        collector = DiscoveryMetricsCollector()
        kind = "all" if category is ResourceCategory.ALL else "category"
        with collector.track_discovery(kind, category.value):
            if category is ResourceCategory.ALL:
                result = await self._fetch_all(location, radius, collector)
            else:
                result = await self._fetch_single(category, location, radius, collector)
            collector.record_results(result.count)
            return result

    async def _fetch_all(
        self, location: Coordinate, radius: float, collector: DiscoveryMetricsCollector
    ) -> DiscoveryResult:
        categories = self.fanout_categories()
        fan_radius = radius * FANOUT_RADIUS_FACTOR
        accumulated: List[ResourceLocation] = []
        statuses: List[ProviderStatusSnapshot] = []

        for index, category in enumerate(categories):
            results, status = await self._fetch_one(category, location, fan_radius, collector)
            accumulated.extend(results)
            if status is None:
                continue
            statuses.append(status)
            if index < len(categories) - 1:
                await self._sleep(self.settings.fanout_delay_seconds)

        unique = dedupe_by_id(accumulated)
        self.cache.put(ResourceCategory.ALL, unique)
        logger.info(
            f"[Discovery] Fan-out over {len(categories)} categories: "
            f"{len(accumulated)} results, {len(unique)} unique"
        )
        return DiscoveryResult(
            resources=unique,
            from_cache=not statuses,
            provider_statuses=statuses,
            error_message=None if unique else user_message_for(statuses),
        )

    async def _fetch_one(
        self,
        category: ResourceCategory,
        location: Coordinate,
        radius: float,
        collector: DiscoveryMetricsCollector,
    ) -> Tuple[List[ResourceLocation], Optional[ProviderStatusSnapshot]]:
        """Fetch one category for a fan-out; the status is None on a cache hit."""
        cached = self.cache.get(category)
        if cached:
            collector.record_cache_hit()
            return cached, None

        places, status = await self._call_provider(build_category_query(category), location, radius, collector)
        if status.status != "ok":
            logger.warning(f"[Discovery] Skipping {category.value}: {status.message}")
            return [], status

        resources = [self._category_resource(place, category) for place in places]
        self.cache.put(category, resources)
        return resources, status

    async def _fetch_single(
        self,
        category: ResourceCategory,
        location: Coordinate,
        radius: float,
        collector: DiscoveryMetricsCollector,
    ) -> DiscoveryResult:
        cached = self.cache.get(category)
        if cached:
            collector.record_cache_hit()
            return DiscoveryResult(resources=cached, from_cache=True)

        places, status = await self._call_provider(build_category_query(category), location, radius, collector)
        statuses = [status]
        resources = [self._category_resource(place, category) for place in places]
        broadened = False
        error_message: Optional[str] = None

        if len(places) < SPARSE_RESULT_THRESHOLD:
            broadened = True
            collector.record_broadening()
            extra, broad_status = await self._broaden(category, location, radius * BROADEN_RADIUS_FACTOR, collector)
            statuses.append(broad_status)
            before = len(resources)
            resources = merge_by_rounded_coordinate(resources, extra)
            logger.info(
                f"[Discovery] Broadened {category.value}: {len(places)} sparse results, "
                f"+{len(resources) - before} of {len(extra)} broadened"
            )
            if broad_status.status != "ok":
                error_message = broad_status.message

        if status.status == "ok":
            self.cache.put(category, resources)
        if not resources:
            error_message = user_message_for(statuses)

        return DiscoveryResult(
            resources=resources,
            provider_statuses=statuses,
            broadened=broadened,
            error_message=error_message,
        )

    async def _broaden(
        self,
        category: ResourceCategory,
        location: Coordinate,
        radius: float,
        collector: DiscoveryMetricsCollector,
    ) -> Tuple[List[ResourceLocation], ProviderStatusSnapshot]:
        places, status = await self._call_provider(build_broadened_query(category), location, radius, collector)
        resources = [
            self._to_resource(
                place,
                category,
                f"{category.value}-broad-{self._coordinate_suffix(place)}",
                [category.value],
            )
            for place in places
        ]
        return resources, status

    # ------------------------------------------------------------------
    # Free-text search
    # ------------------------------------------------------------------

    async def _search(self, query: str, key: str, location: Coordinate, radius: float) -> DiscoveryResult:
        collector = DiscoveryMetricsCollector()
        with collector.track_discovery("search", key):
            result = await self._search_inner(query, key, location, radius, collector)
            collector.record_results(result.count)
            return result

    async def _search_inner(
        self,
        query: str,
        key: str,
        location: Coordinate,
        radius: float,
        collector: DiscoveryMetricsCollector,
    ) -> DiscoveryResult:
        cached = self.cache.get_search_results(key)
        if cached:
            collector.record_cache_hit()
            return DiscoveryResult(resources=cached, from_cache=True)

        places, status = await self._call_provider(build_enhanced_query(query), location, radius, collector)
        statuses = [status]
        if places:
            resources = dedupe_by_id([
                self._search_resource(place, query, f"search-{key}-{self._coordinate_suffix(place)}")
                for place in places
            ])
            self.cache.put_search_results(resources, key)
            return DiscoveryResult(resources=resources, provider_statuses=statuses)

        collector.record_broadening()
        logger.info(f"[Discovery] No results for {key!r}, trying broader search")
        places, fallback_status = await self._call_provider(
            build_fallback_query(query), location, radius * FALLBACK_RADIUS_FACTOR, collector
        )
        statuses.append(fallback_status)
        if not places:
            return DiscoveryResult(
                provider_statuses=statuses,
                broadened=True,
                error_message=user_message_for(statuses),
            )

        resources = dedupe_by_id([
            self._search_resource(place, query, f"search-broad-{key}-{self._coordinate_suffix(place)}")
            for place in places
        ])
        self.cache.put_search_results(resources, f"broad-{key}")
        return DiscoveryResult(resources=resources, provider_statuses=statuses, broadened=True)

    # ------------------------------------------------------------------
    # Provider calls and mapping
    # ------------------------------------------------------------------

    async def _call_provider(
        self,
        query: str,
        location: Coordinate,
        radius: float,
        collector: DiscoveryMetricsCollector,
    ) -> Tuple[List[PlaceResult], ProviderStatusSnapshot]:
        places, status = await run_provider_with_status(
            self.provider_id,
            self.provider,
            query,
            location,
            radius,
            timeout_seconds=self.settings.provider_timeout_seconds,
        )
        collector.record_provider(
            provider_id=self.provider_id,
            query=query,
            status=status.status,
            result_count=status.result_count,
            latency_ms=status.latency_ms or 0,
            error_message=status.message,
        )
        return places, status

    @staticmethod
    def _coordinate_suffix(place: PlaceResult) -> str:
        return f"{place.coordinate.latitude}-{place.coordinate.longitude}"

    def _category_resource(self, place: PlaceResult, category: ResourceCategory) -> ResourceLocation:
        return self._to_resource(
            place, category, f"{category.value}-{self._coordinate_suffix(place)}", [category.value]
        )

    def _search_resource(self, place: PlaceResult, query: str, resource_id: str) -> ResourceLocation:
        category = self.classifier.classify(query, place.name or "")
        return self._to_resource(place, category, resource_id, [query])

    @staticmethod
    def _to_resource(
        place: PlaceResult, category: ResourceCategory, resource_id: str, services: List[str]
    ) -> ResourceLocation:
        return ResourceLocation(
            id=resource_id,
            name=place.name or UNKNOWN_NAME,
            category=category,
            address=place.address,
            phone_number=place.phone or NO_PHONE,
            coordinate=place.coordinate,
            website=place.website,
            services=services,
        )
