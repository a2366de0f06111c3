"""
Prometheus instruments, all registered on the default registry under the
``safehaven_`` namespace and exposed by ``GET /metrics``.
"""

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

metrics_registry = REGISTRY
NAMESPACE = "safehaven"

# HTTP surface
http_requests_total = Counter(
    "http_requests_total",
    "HTTP requests by method, endpoint and status code",
    ["method", "endpoint", "status"],
    namespace=NAMESPACE,
    registry=metrics_registry,
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency; uncached fan-outs land in the top buckets",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 20, 40),
    namespace=NAMESPACE,
    registry=metrics_registry,
)
http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently being served",
    ["method", "endpoint"],
    namespace=NAMESPACE,
    registry=metrics_registry,
)

# Geo search provider calls
provider_call_duration_seconds = Histogram(
    "provider_call_duration_seconds",
    "Latency of successful geo search provider calls",
    ["provider"],
    buckets=(0.1, 0.25, 0.5, 1, 2, 4, 8, 15),
    namespace=NAMESPACE,
    registry=metrics_registry,
)
provider_failures_total = Counter(
    "provider_failures_total",
    "Failed provider calls by outcome (timeout, exhausted, rate_limited, error)",
    ["provider", "status"],
    namespace=NAMESPACE,
    registry=metrics_registry,
)
provider_places_returned = Histogram(
    "provider_places_returned",
    "Places returned per successful provider call",
    ["provider"],
    buckets=(0, 1, 4, 5, 10, 20, 60),
    namespace=NAMESPACE,
    registry=metrics_registry,
)

# Discovery engine
discovery_requests_total = Counter(
    "discovery_requests_total",
    "Discovery operations that reached the engine, by kind (category, all, search)",
    ["kind"],
    namespace=NAMESPACE,
    registry=metrics_registry,
)
discovery_broadening_total = Counter(
    "discovery_broadening_total",
    "Supplementary broadened or fallback provider passes, by kind",
    ["kind"],
    namespace=NAMESPACE,
    registry=metrics_registry,
)
cache_hits_total = Counter(
    "cache_hits_total",
    "Resource cache reads served from a fresh entry, by cache_type (category, search)",
    ["cache_type"],
    namespace=NAMESPACE,
    registry=metrics_registry,
)
cache_misses_total = Counter(
    "cache_misses_total",
    "Resource cache reads that found no fresh entry",
    ["cache_type"],
    namespace=NAMESPACE,
    registry=metrics_registry,
)
