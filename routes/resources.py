"""
Resource discovery endpoints.

  GET    /api/categories            catalog listing
  GET    /api/resources             resources by category near a coordinate
  GET    /api/resources/search      free-text search near a coordinate
  DELETE /api/resources/cache       manual cache invalidation
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request

from discovery import Coordinate, DiscoveryResult, ResourceCategory, ResourceDiscoveryService
from exceptions import LocationUnavailableError, ValidationError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["resources"])


def get_discovery_service(request: Request) -> ResourceDiscoveryService:
    return request.app.state.discovery


def _location(lat: Optional[float], lon: Optional[float]) -> Coordinate:
    if lat is None or lon is None:
        raise LocationUnavailableError()
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise ValidationError("Coordinate out of range", detail={"lat": lat, "lon": lon})
    return Coordinate(latitude=lat, longitude=lon)


def _wants_distance_sort(sort: Optional[str]) -> bool:
    if sort in (None, "", "relevance"):
        return False
    if sort == "distance":
        return True
    raise ValidationError("Unsupported sort", detail={"sort": sort})


@router.get("/api/categories")
async def list_categories() -> Dict[str, Any]:
    items: List[Dict[str, Any]] = [
        {
            "key": category.key,
            "label": category.label,
            "icon": category.icon,
            "color": category.color,
            "keywords": category.search_keywords,
        }
        for category in ResourceCategory
    ]
    return {"items": items, "count": len(items)}


@router.get("/api/resources", response_model=DiscoveryResult)
async def list_resources(
    category: str = Query("all"),
    lat: Optional[float] = Query(None),
    lon: Optional[float] = Query(None),
    radius: Optional[float] = Query(None),
    sort: Optional[str] = Query(None),
    service: ResourceDiscoveryService = Depends(get_discovery_service),
):
    resolved = ResourceCategory.from_key(category)
    location = _location(lat, lon)
    return await service.fetch_by_category(
        resolved, location, radius, sort_by_distance=_wants_distance_sort(sort)
    )


@router.get("/api/resources/search", response_model=DiscoveryResult)
async def search_resources(
    q: str = Query(""),
    lat: Optional[float] = Query(None),
    lon: Optional[float] = Query(None),
    radius: Optional[float] = Query(None),
    sort: Optional[str] = Query(None),
    service: ResourceDiscoveryService = Depends(get_discovery_service),
):
    if not q.strip():
        raise ValidationError("Query is required")
    if len(q) > 200:
        raise ValidationError("Query too long (max 200 chars)")
    location = _location(lat, lon)
    logger.info(f"[ResourcesAPI] Search {q.strip().lower()!r}")
    return await service.search_free_text(
        q, location, radius, sort_by_distance=_wants_distance_sort(sort)
    )


@router.delete("/api/resources/cache")
async def clear_cache(
    category: Optional[str] = Query(None),
    service: ResourceDiscoveryService = Depends(get_discovery_service),
) -> Dict[str, Any]:
    if category:
        resolved = ResourceCategory.from_key(category)
        service.clear_category(resolved)
        return {"ok": True, "cleared": resolved.label}
    service.clear_all()
    return {"ok": True, "cleared": "all"}
