"""Resource discovery: category catalog, cache, providers and search engine."""

from .categories import (
    CATEGORY_QUERIES,
    Classifier,
    KeywordClassifier,
    ResourceCategory,
    category_query,
    classify,
)
from .cache import CacheEntry, ResourceCache
from .models import (
    Coordinate,
    DiscoveryResult,
    PlaceResult,
    ProviderStatusSnapshot,
    ResourceLocation,
)
from .providers import (
    GeoSearchProvider,
    GooglePlacesProvider,
    MockPlacesProvider,
    build_provider,
    format_address,
)
from .engine import ResourceDiscoveryService

__all__ = [
    "CATEGORY_QUERIES",
    "CacheEntry",
    "Classifier",
    "Coordinate",
    "DiscoveryResult",
    "GeoSearchProvider",
    "GooglePlacesProvider",
    "KeywordClassifier",
    "MockPlacesProvider",
    "PlaceResult",
    "ProviderStatusSnapshot",
    "ResourceCache",
    "ResourceCategory",
    "ResourceDiscoveryService",
    "ResourceLocation",
    "build_provider",
    "category_query",
    "classify",
    "format_address",
]
