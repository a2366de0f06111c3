"""Logging, Prometheus instruments and request middleware for the discovery service."""

from .logging import correlation_id_context, get_correlation_id, get_logger, setup_logging
from .metrics import (
    cache_hits_total,
    cache_misses_total,
    discovery_broadening_total,
    discovery_requests_total,
    metrics_registry,
    provider_call_duration_seconds,
    provider_failures_total,
    provider_places_returned,
)

__all__ = [
    "cache_hits_total",
    "cache_misses_total",
    "correlation_id_context",
    "discovery_broadening_total",
    "discovery_requests_total",
    "get_correlation_id",
    "get_logger",
    "metrics_registry",
    "provider_call_duration_seconds",
    "provider_failures_total",
    "provider_places_returned",
    "setup_logging",
]
