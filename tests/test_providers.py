"""Tests for geo search providers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import ATLANTA
from config import DiscoverySettings
from discovery.providers import (
    GooglePlacesProvider,
    MockPlacesProvider,
    build_provider,
    format_address,
)
from exceptions import SearchProviderError


def _mock_places_response(mock_client_class, payload):
    mock_client = AsyncMock()
    mock_client_class.return_value.__aenter__.return_value = mock_client
    mock_response = MagicMock()
    mock_response.json.return_value = payload
    mock_response.raise_for_status = MagicMock()
    mock_client.get.return_value = mock_response
    return mock_client


class TestGooglePlacesProvider:

    def test_init_sets_api_key_and_base_url(self):
        provider = GooglePlacesProvider("test_key")
        assert provider.api_key == "test_key"
        assert provider.base_url == "https://maps.googleapis.com/maps/api/place/textsearch/json"

    @pytest.mark.asyncio
    async def test_search_builds_correct_params(self):
        provider = GooglePlacesProvider("test_key")

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = _mock_places_response(mock_client_class, {"status": "ZERO_RESULTS", "results": []})

            await provider.search("food bank", ATLANTA, 6000)

            params = mock_client.get.call_args.kwargs["params"]
            assert params["query"] == "food bank"
            assert params["location"] == "33.749,-84.388"
            assert params["radius"] == 6000
            assert params["key"] == "test_key"

    @pytest.mark.asyncio
    async def test_radius_is_capped(self):
        provider = GooglePlacesProvider("test_key")

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = _mock_places_response(mock_client_class, {"status": "ZERO_RESULTS"})

            await provider.search("food bank", ATLANTA, 90_000)

            assert mock_client.get.call_args.kwargs["params"]["radius"] == 50_000

    @pytest.mark.asyncio
    async def test_search_parses_results(self):
        provider = GooglePlacesProvider("test_key")
        payload = {
            "status": "OK",
            "results": [
                {
                    "name": "Atlanta Community Food Bank",
                    "formatted_address": "3400 N Desert Dr, East Point, GA 30344",
                    "geometry": {"location": {"lat": 33.6873, "lng": -84.4738}},
                },
                {"name": "No Geometry"},
                {
                    "formatted_address": "1 Peachtree St",
                    "formatted_phone_number": "(404) 555-0100",
                    "website": "https://example.org",
                    "geometry": {"location": {"lat": 33.75, "lng": -84.39}},
                },
            ],
        }

        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_places_response(mock_client_class, payload)
            results = await provider.search("food bank", ATLANTA, 5000)

        assert len(results) == 2
        assert results[0].name == "Atlanta Community Food Bank"
        assert results[0].coordinate.latitude == 33.6873
        assert results[0].phone is None
        assert results[1].name is None
        assert results[1].phone == "(404) 555-0100"
        assert results[1].website == "https://example.org"

    @pytest.mark.asyncio
    async def test_over_query_limit_is_rate_limited(self):
        provider = GooglePlacesProvider("test_key")

        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_places_response(mock_client_class, {"status": "OVER_QUERY_LIMIT"})
            with pytest.raises(SearchProviderError) as exc:
                await provider.search("food bank", ATLANTA, 5000)

        assert "429" in exc.value.message

    @pytest.mark.asyncio
    async def test_denied_request_raises(self):
        provider = GooglePlacesProvider("test_key")

        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_places_response(
                mock_client_class,
                {"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."},
            )
            with pytest.raises(SearchProviderError) as exc:
                await provider.search("food bank", ATLANTA, 5000)

        assert exc.value.message == "Places API error: The provided API key is invalid."
        assert exc.value.detail["provider"] == "google_places"


class TestMockPlacesProvider:

    @pytest.mark.asyncio
    async def test_deterministic_per_query(self):
        provider = MockPlacesProvider()
        first = await provider.search("food bank", ATLANTA, 5000)
        second = await provider.search("food bank", ATLANTA, 5000)
        assert [p.model_dump() for p in first] == [p.model_dump() for p in second]

    @pytest.mark.asyncio
    async def test_results_within_bounds(self):
        provider = MockPlacesProvider(min_results=3, max_results=4)
        results = await provider.search("shelter OR emergency housing", ATLANTA, 5000)
        assert 3 <= len(results) <= 4
        for place in results:
            assert place.name.startswith("Shelter ")
            assert ATLANTA.distance_to(place.coordinate) <= 5000 * 1.05


def test_format_address_skips_missing_parts():
    assert format_address("12", "Main St", "Springfield", "GA", "30301") == "12, Main St, Springfield, GA, 30301"
    assert format_address(street="Main St", city="Springfield") == "Main St, Springfield"
    assert format_address() == ""


class TestBuildProvider:

    def test_forced_mock(self):
        settings = DiscoverySettings(google_places_api_key="k", use_mock_search="true")
        assert isinstance(build_provider(settings), MockPlacesProvider)

    def test_api_key_selects_google(self):
        settings = DiscoverySettings(google_places_api_key="k")
        provider = build_provider(settings)
        assert isinstance(provider, GooglePlacesProvider)
        assert provider.timeout == settings.provider_timeout_seconds

    def test_auto_falls_back_to_mock(self):
        assert isinstance(build_provider(DiscoverySettings()), MockPlacesProvider)

    def test_mock_disabled_without_key(self):
        with pytest.raises(SearchProviderError):
            build_provider(DiscoverySettings(use_mock_search="false"))
