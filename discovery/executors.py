"""Provider execution with status instrumentation."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Tuple

from discovery.models import Coordinate, PlaceResult, ProviderStatusSnapshot
from discovery.providers import GeoSearchProvider
from observability.metrics import (
    provider_call_duration_seconds,
    provider_failures_total,
    provider_places_returned,
)
from utils.security import redact_secrets_from_text

logger = logging.getLogger(__name__)


def classify_failure(message: str) -> Tuple[str, str]:
    """Map a provider error message to (status, user-facing message)."""
    if "402" in message or "Payment Required" in message or "quota" in message.lower():
        return "exhausted", "API quota exhausted"
    if "429" in message or "Too Many Requests" in message:
        return "rate_limited", "Rate limit exceeded"
    return "error", "Search failed"


async def run_provider_with_status(
    provider_id: str,
    provider: GeoSearchProvider,
    query: str,
    center: Coordinate,
    radius_meters: float,
    *,
    timeout_seconds: float = 8.0,
) -> Tuple[List[PlaceResult], ProviderStatusSnapshot]:
    started = time.monotonic()
    try:
        results = await asyncio.wait_for(
            provider.search(query, center, radius_meters), timeout=timeout_seconds
        )
        elapsed = time.monotonic() - started
        provider_call_duration_seconds.labels(provider=provider_id).observe(elapsed)
        provider_places_returned.labels(provider=provider_id).observe(len(results))
        status = ProviderStatusSnapshot(
            provider_id=provider_id,
            status="ok",
            result_count=len(results),
            latency_ms=int(elapsed * 1000),
        )
        logger.info(
            f"Provider {provider_id} completed",
            extra={
                "event": "provider_complete",
                "provider_id": provider_id,
                "status": "ok",
                "result_count": len(results),
                "latency_ms": status.latency_ms,
            },
        )
        return results, status
    except asyncio.TimeoutError:
        elapsed = time.monotonic() - started
        provider_failures_total.labels(provider=provider_id, status="timeout").inc()
        logger.warning(f"[{provider_id}] Search timed out after {elapsed:.2f}s for {query!r}")
        status = ProviderStatusSnapshot(
            provider_id=provider_id,
            status="timeout",
            result_count=0,
            latency_ms=int(elapsed * 1000),
            message="Search timed out",
        )
        return [], status
    except Exception as e:
        elapsed = time.monotonic() - started
        error_msg = redact_secrets_from_text(str(e))
        status_name, message = classify_failure(error_msg)
        provider_failures_total.labels(provider=provider_id, status=status_name).inc()
        logger.warning(f"[{provider_id}] Search error: {type(e).__name__}: {error_msg[:200]}")
        status = ProviderStatusSnapshot(
            provider_id=provider_id,
            status=status_name,
            result_count=0,
            latency_ms=int(elapsed * 1000),
            message=message,
        )
        return [], status
