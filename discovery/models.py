"""Typed models for the resource discovery pipeline."""

from __future__ import annotations

import math
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from discovery.categories import ResourceCategory

ProviderStatus = Literal["ok", "error", "timeout", "exhausted", "rate_limited"]

UNKNOWN_NAME = "Unknown Location"
NO_PHONE = "No phone available"

EARTH_RADIUS_METERS = 6_371_000.0


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    def rounded_key(self) -> Tuple[int, int]:
        """Coordinate truncated to three decimals, used to dedup broadened results."""
        return int(self.latitude * 1000), int(self.longitude * 1000)

    def distance_to(self, other: "Coordinate") -> float:
        """Great-circle distance in meters."""
        lat1, lat2 = math.radians(self.latitude), math.radians(other.latitude)
        d_lat = lat2 - lat1
        d_lon = math.radians(other.longitude - self.longitude)
        a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
        return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))


class PlaceResult(BaseModel):
    """Raw place returned by a geo search provider."""

    name: Optional[str] = None
    address: str = ""
    phone: Optional[str] = None
    coordinate: Coordinate
    website: Optional[str] = None


class ResourceLocation(BaseModel):
    """A discovered resource. Identity is the ``id`` string alone."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = UNKNOWN_NAME
    category: ResourceCategory
    address: str = ""
    phone_number: str = NO_PHONE
    description: str = ""
    coordinate: Coordinate
    icon: str = ""
    website: Optional[str] = None
    hours: Optional[str] = None
    services: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fill_category_defaults(cls, data):
        if not isinstance(data, dict):
            return data
        category = data.get("category")
        if isinstance(category, str) and not isinstance(category, ResourceCategory):
            category = ResourceCategory(category)
        if isinstance(category, ResourceCategory):
            data = dict(data)
            if not data.get("icon"):
                data["icon"] = category.icon
            if not data.get("description"):
                data["description"] = f"A local resource providing {category.value.lower()} services."
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceLocation):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def distance_to(self, coordinate: Coordinate) -> float:
        return self.coordinate.distance_to(coordinate)


class ProviderStatusSnapshot(BaseModel):
    provider_id: str
    status: ProviderStatus
    result_count: int = 0
    latency_ms: Optional[int] = None
    message: Optional[str] = None


class DiscoveryResult(BaseModel):
    """Outcome of one discovery operation as seen by the caller."""

    resources: List[ResourceLocation] = Field(default_factory=list)
    error_message: Optional[str] = None
    provider_statuses: List[ProviderStatusSnapshot] = Field(default_factory=list)
    from_cache: bool = False
    broadened: bool = False

    @property
    def count(self) -> int:
        return len(self.resources)
