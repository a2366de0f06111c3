"""Discovery operation metrics.

One DiscoveryMetrics record is collected per engine operation and logged in
structured form when the operation ends:
- provider calls and their outcomes
- cache hits
- broadening passes
- final result count and latency
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import List, Optional

from observability.metrics import discovery_broadening_total, discovery_requests_total

logger = logging.getLogger("discovery.metrics")


@dataclass
class ProviderCallMetrics:
    """Metrics for a single provider call."""
    provider_id: str
    query: str
    status: str  # ok, error, timeout, exhausted, rate_limited
    result_count: int
    latency_ms: float
    error_message: Optional[str] = None


@dataclass
class DiscoveryMetrics:
    """Aggregated metrics for one discovery operation."""
    kind: str = "category"  # category, all, search
    key: str = ""
    provider_calls: int = 0
    provider_succeeded: int = 0
    provider_failed: int = 0
    cache_hits: int = 0
    broadening_passes: int = 0
    result_count: int = 0
    total_latency_ms: float = 0.0
    calls: List[ProviderCallMetrics] = field(default_factory=list)

    def success_rate(self) -> float:
        if self.provider_calls == 0:
            return 0.0
        return self.provider_succeeded / self.provider_calls

    def has_results(self) -> bool:
        return self.result_count > 0


class DiscoveryMetricsCollector:
    """Collects metrics for the operation currently being tracked.

    Each engine operation gets its own collector so that overlapping
    operations never share a record.
    """

    def __init__(self):
        self._current: Optional[DiscoveryMetrics] = None
        self._start_time: Optional[float] = None

    @property
    def current(self) -> Optional[DiscoveryMetrics]:
        return self._current

    @contextmanager
    def track_discovery(self, kind: str, key: str = ""):
        self._current = DiscoveryMetrics(kind=kind, key=key)
        self._start_time = time.time()
        discovery_requests_total.labels(kind=kind).inc()
        try:
            yield self._current
        finally:
            if self._current and self._start_time:
                self._current.total_latency_ms = (time.time() - self._start_time) * 1000
                self._log_metrics()
            self._current = None
            self._start_time = None

    def record_provider(self, provider_id: str, query: str, status: str, result_count: int,
                        latency_ms: float, error_message: Optional[str] = None):
        if not self._current:
            return
        self._current.calls.append(ProviderCallMetrics(
            provider_id=provider_id,
            query=query,
            status=status,
            result_count=result_count,
            latency_ms=latency_ms,
            error_message=error_message,
        ))
        self._current.provider_calls += 1
        if status == "ok":
            self._current.provider_succeeded += 1
        else:
            self._current.provider_failed += 1

    def record_cache_hit(self):
        if self._current:
            self._current.cache_hits += 1

    def record_broadening(self):
        if self._current:
            self._current.broadening_passes += 1
            discovery_broadening_total.labels(kind=self._current.kind).inc()

    def record_results(self, count: int):
        if self._current:
            self._current.result_count = count

    def _log_metrics(self):
        m = self._current
        if not m:
            return

        log_data = {
            "event": "discovery_complete",
            "kind": m.kind,
            "key": m.key,
            "providers": {
                "called": m.provider_calls,
                "succeeded": m.provider_succeeded,
                "failed": m.provider_failed,
                "success_rate": round(m.success_rate(), 2),
                "details": [
                    {"query": c.query, "status": c.status, "results": c.result_count,
                     "latency_ms": round(c.latency_ms, 1)}
                    for c in m.calls
                ],
            },
            "cache_hits": m.cache_hits,
            "broadening_passes": m.broadening_passes,
            "result_count": m.result_count,
            "latency_ms": round(m.total_latency_ms, 1),
            "success": m.has_results(),
        }

        if m.provider_failed == m.provider_calls and m.provider_calls > 0:
            logger.error("Discovery failed - all provider calls failed", extra=log_data)
        elif m.provider_failed > 0:
            logger.warning("Discovery completed with provider failures", extra=log_data)
        elif not m.has_results():
            logger.warning("Discovery completed but no results", extra=log_data)
        else:
            logger.info("Discovery completed successfully", extra=log_data)


def log_discovery_start(kind: str, key: str, latitude: float, longitude: float, radius: float):
    logger.info(
        "Discovery started",
        extra={
            "event": "discovery_start",
            "kind": kind,
            "key": key,
            "latitude": round(latitude, 3),
            "longitude": round(longitude, 3),
            "radius_m": radius,
        },
    )
