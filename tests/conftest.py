import os
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Add parent directory to path to allow importing the service modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import DiscoverySettings
from discovery.engine import ResourceDiscoveryService
from discovery.categories import ResourceCategory
from discovery.models import Coordinate, PlaceResult, ResourceLocation
from discovery.providers import GeoSearchProvider

ATLANTA = Coordinate(latitude=33.749, longitude=-84.388)


class FakeClock:
    """Manually advanced clock for cache staleness tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@dataclass
class ProviderCall:
    query: str
    center: Coordinate
    radius: float


class ScriptedProvider(GeoSearchProvider):
    """Returns canned places per query; exceptions in the script are raised."""

    provider_id = "scripted"

    def __init__(self, responses: Optional[Dict[str, object]] = None, default: object = None):
        self.responses = responses or {}
        self.default = default if default is not None else []
        self.calls: List[ProviderCall] = []

    async def search(self, query, center, radius_meters):
        self.calls.append(ProviderCall(query, center, radius_meters))
        response = self.responses.get(query, self.default)
        if callable(response):
            response = response(query)
        if isinstance(response, Exception):
            raise response
        return list(response)

    @property
    def queries(self) -> List[str]:
        return [c.query for c in self.calls]


def make_places(count: int, lat: float = 33.7005, lon: float = -84.3805,
                step: float = 0.01, prefix: str = "Place") -> List[PlaceResult]:
    """Places spaced ``step`` degrees apart; coordinates avoid truncation boundaries."""
    return [
        PlaceResult(
            name=f"{prefix} {i}",
            address=f"{100 + i} Main St, Atlanta, GA",
            phone=f"(404) 555-01{i:02d}",
            coordinate=Coordinate(latitude=round(lat + i * step, 6), longitude=lon),
        )
        for i in range(count)
    ]


def make_resource(resource_id: str, category: ResourceCategory = ResourceCategory.FOOD,
                  lat: float = 33.75, lon: float = -84.39, name: str = "Test Resource") -> ResourceLocation:
    return ResourceLocation(
        id=resource_id,
        name=name,
        category=category,
        coordinate=Coordinate(latitude=lat, longitude=lon),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def settings():
    return DiscoverySettings()


@pytest.fixture
def service(provider, clock, sleeper, settings):
    return ResourceDiscoveryService(provider, settings=settings, clock=clock, sleep=sleeper)


@pytest_asyncio.fixture(name="client")
async def client_fixture(service):
    from main import create_app

    app = create_app(service=service, settings=service.settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
