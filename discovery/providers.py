"""Geo search providers: "places near a coordinate matching a text query"."""

from __future__ import annotations

import hashlib
import logging
import math
import random
from abc import ABC, abstractmethod
from typing import List, Optional

import httpx

from config import DiscoverySettings
from discovery.models import Coordinate, PlaceResult
from exceptions import SearchProviderError

logger = logging.getLogger(__name__)

# Places Text Search rejects larger radii.
MAX_PLACES_RADIUS_METERS = 50_000


def format_address(
    street_number: Optional[str] = None,
    street: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    postal_code: Optional[str] = None,
) -> str:
    parts = [street_number, street, city, state, postal_code]
    return ", ".join(p for p in parts if p)


class GeoSearchProvider(ABC):
    provider_id: str = "geo"

    @abstractmethod
    async def search(self, query: str, center: Coordinate, radius_meters: float) -> List[PlaceResult]:
        pass


class GooglePlacesProvider(GeoSearchProvider):
    """Google Places Text Search (legacy JSON endpoint)."""

    provider_id = "google_places"

    def __init__(self, api_key: str, timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = "https://maps.googleapis.com/maps/api/place/textsearch/json"

    async def search(self, query: str, center: Coordinate, radius_meters: float) -> List[PlaceResult]:
        params = {
            "query": query,
            "location": f"{center.latitude},{center.longitude}",
            "radius": int(min(radius_meters, MAX_PLACES_RADIUS_METERS)),
            "key": self.api_key,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(self.base_url, params=params)
            response.raise_for_status()
            data = response.json()

        status = data.get("status", "OK")
        if status == "ZERO_RESULTS":
            return []
        if status == "OVER_QUERY_LIMIT":
            raise SearchProviderError("429 Too Many Requests: OVER_QUERY_LIMIT", provider=self.provider_id)
        if status != "OK":
            message = data.get("error_message") or status
            raise SearchProviderError(f"Places API error: {message}", provider=self.provider_id)

        results: List[PlaceResult] = []
        for item in data.get("results", []):
            location = (item.get("geometry") or {}).get("location") or {}
            if "lat" not in location or "lng" not in location:
                continue
            results.append(PlaceResult(
                name=item.get("name"),
                address=item.get("formatted_address") or item.get("vicinity") or "",
                phone=item.get("formatted_phone_number"),
                coordinate=Coordinate(latitude=location["lat"], longitude=location["lng"]),
                website=item.get("website"),
            ))
        logger.debug(f"[GooglePlaces] {len(results)} places for {query!r}")
        return results


class MockPlacesProvider(GeoSearchProvider):
    """Offline provider returning deterministic places around the center."""

    provider_id = "mock"

    _STREETS = ["Main St", "Oak Ave", "Peachtree St", "Broad St", "Pine St", "Elm St"]
    _SUFFIXES = ["Community Center", "Outreach", "Services", "Resource Hub", "Mission", "Clinic"]

    def __init__(self, min_results: int = 6, max_results: int = 12):
        self.min_results = min_results
        self.max_results = max_results

    async def search(self, query: str, center: Coordinate, radius_meters: float) -> List[PlaceResult]:
        seed = int(hashlib.md5(query.encode()).hexdigest()[:8], 16)
        rng = random.Random(seed)
        head = query.split(" OR ")[0].strip().title() or "Local"

        # Roughly one degree of latitude per 111km.
        spread = min(radius_meters, MAX_PLACES_RADIUS_METERS) / 111_000.0
        results: List[PlaceResult] = []
        for i in range(rng.randint(self.min_results, self.max_results)):
            angle = rng.uniform(0, 2 * math.pi)
            distance = rng.uniform(0.1, 1.0) * spread
            latitude = max(-90.0, min(90.0, center.latitude + distance * math.sin(angle)))
            longitude = max(-180.0, min(180.0, center.longitude + distance * math.cos(angle)))
            results.append(PlaceResult(
                name=f"{head} {rng.choice(self._SUFFIXES)} #{i + 1}",
                address=format_address(
                    street_number=str(rng.randint(10, 9999)),
                    street=rng.choice(self._STREETS),
                    city="Springfield",
                    state="GA",
                    postal_code=f"30{rng.randint(100, 999)}",
                ),
                phone=f"(404) 555-{rng.randint(1000, 9999)}" if i % 3 else None,
                coordinate=Coordinate(latitude=round(latitude, 6), longitude=round(longitude, 6)),
                website=f"https://example.org/resources/{seed + i}" if i % 2 == 0 else None,
            ))
        return results


def build_provider(settings: DiscoverySettings) -> GeoSearchProvider:
    if settings.use_mock_search in ("1", "true", "yes", "always"):
        return MockPlacesProvider()
    if settings.google_places_api_key:
        return GooglePlacesProvider(settings.google_places_api_key, timeout=settings.provider_timeout_seconds)
    if settings.use_mock_search == "auto":
        logger.info("[providers] GOOGLE_PLACES_API_KEY not set, using mock places")
        return MockPlacesProvider()
    raise SearchProviderError("No geo search provider configured")
