"""Environment-driven settings for the discovery service."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env", override=False)

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY_CATEGORIES = ("shelter", "food", "healthcare", "crisis")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"[config] Invalid {name}={raw!r}, using {default}")
        return default


@dataclass(frozen=True)
class DiscoverySettings:
    cache_ttl_seconds: float = 30 * 60
    search_cache_ttl_seconds: float = 15 * 60
    fanout_delay_seconds: float = 0.2
    priority_categories: Tuple[str, ...] = field(default=DEFAULT_PRIORITY_CATEGORIES)
    default_radius_meters: float = 5000.0
    provider_timeout_seconds: float = 8.0
    google_places_api_key: Optional[str] = None
    use_mock_search: str = "auto"


def load_settings() -> DiscoverySettings:
    cache_ttl = _env_float("DISCOVERY_CACHE_TTL_SECONDS", 30 * 60)
    # Search results stay half as long as category results unless overridden.
    search_ttl = _env_float("DISCOVERY_SEARCH_CACHE_TTL_SECONDS", cache_ttl / 2)

    fanout_delay = _env_float("DISCOVERY_FANOUT_DELAY_SECONDS", 0.2)
    if not 0.1 <= fanout_delay <= 0.3:
        logger.warning(f"[config] DISCOVERY_FANOUT_DELAY_SECONDS={fanout_delay} outside 0.1-0.3s, clamping")
        fanout_delay = min(max(fanout_delay, 0.1), 0.3)

    raw_priority = os.getenv("DISCOVERY_PRIORITY_CATEGORIES", "")
    priority = tuple(p.strip() for p in raw_priority.split(",") if p.strip()) or DEFAULT_PRIORITY_CATEGORIES

    return DiscoverySettings(
        cache_ttl_seconds=cache_ttl,
        search_cache_ttl_seconds=search_ttl,
        fanout_delay_seconds=fanout_delay,
        priority_categories=priority,
        default_radius_meters=_env_float("DISCOVERY_DEFAULT_RADIUS_METERS", 5000.0),
        provider_timeout_seconds=_env_float("DISCOVERY_PROVIDER_TIMEOUT_SECONDS", 8.0),
        google_places_api_key=os.getenv("GOOGLE_PLACES_API_KEY") or None,
        use_mock_search=(os.getenv("USE_MOCK_SEARCH", "auto") or "").strip().lower(),
    )
