"""Tests for free-text search and its broader fallback."""

import pytest

from conftest import ATLANTA, make_places
from discovery.categories import ResourceCategory
from discovery.queries import build_enhanced_query, build_fallback_query
from exceptions import ValidationError

MINUTE = 60
ENHANCED = build_enhanced_query("soup kitchen")
FALLBACK = build_fallback_query("soup kitchen")


class TestSearch:

    @pytest.mark.asyncio
    async def test_results_are_classified(self, service, provider):
        provider.responses = {ENHANCED: make_places(2, prefix="Grace Soup Kitchen")}

        result = await service.search_free_text("soup kitchen", ATLANTA, 5000)

        assert provider.queries == [ENHANCED]
        assert provider.calls[0].radius == 5000
        assert result.count == 2
        first = result.resources[0]
        assert first.id == "search-soup kitchen-33.7005--84.3805"
        assert first.category is ResourceCategory.FOOD
        assert first.services == ["soup kitchen"]

    @pytest.mark.asyncio
    async def test_classification_uses_place_name(self, service, provider):
        query = "help"
        provider.responses = {build_enhanced_query(query): make_places(1, prefix="Legal Aid Society")}

        result = await service.search_free_text(query, ATLANTA, 5000)

        assert result.resources[0].category is ResourceCategory.LEGAL_AID

    def test_enhanced_query_appends_boilerplate(self):
        assert ENHANCED == "soup kitchen assistance services support resources help community center"

    @pytest.mark.asyncio
    async def test_query_is_normalized_for_ids(self, service, provider):
        provider.responses = {build_enhanced_query("Soup Kitchen"): make_places(1)}

        result = await service.search_free_text("  Soup Kitchen ", ATLANTA, 5000)

        assert result.resources[0].id.startswith("search-soup kitchen-")
        assert result.resources[0].services == ["Soup Kitchen"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query_rejected(self, service, provider, query):
        with pytest.raises(ValidationError):
            await service.search_free_text(query, ATLANTA, 5000)
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_missing_location(self, service, provider):
        result = await service.search_free_text("soup kitchen", None, 5000)

        assert result.error_message == "Location not available"
        assert provider.calls == []


class TestSearchCache:

    @pytest.mark.asyncio
    async def test_repeat_search_within_window_is_cached(self, service, provider, clock):
        provider.responses = {ENHANCED: make_places(2)}

        await service.search_free_text("soup kitchen", ATLANTA, 5000)
        clock.advance(14 * MINUTE)
        result = await service.search_free_text("Soup Kitchen", ATLANTA, 5000)

        assert len(provider.calls) == 1
        assert result.from_cache is True
        assert result.count == 2

    @pytest.mark.asyncio
    async def test_search_expires_before_categories(self, service, provider, clock):
        provider.responses = {ENHANCED: make_places(2)}

        await service.search_free_text("soup kitchen", ATLANTA, 5000)
        clock.advance(16 * MINUTE)
        result = await service.search_free_text("soup kitchen", ATLANTA, 5000)

        assert len(provider.calls) == 2
        assert result.from_cache is False

    @pytest.mark.asyncio
    async def test_different_queries_cached_independently(self, service, provider):
        provider.responses = {
            ENHANCED: make_places(2),
            build_enhanced_query("legal aid"): make_places(1, lat=33.9005, prefix="Legal Aid"),
        }

        await service.search_free_text("soup kitchen", ATLANTA, 5000)
        await service.search_free_text("legal aid", ATLANTA, 5000)
        soup = await service.search_free_text("soup kitchen", ATLANTA, 5000)
        legal = await service.search_free_text("legal aid", ATLANTA, 5000)

        assert len(provider.calls) == 2
        assert soup.count == 2
        assert [r.name for r in legal.resources] == ["Legal Aid 0"]


class TestFallback:

    @pytest.mark.asyncio
    async def test_empty_results_use_wider_fallback(self, service, provider):
        provider.responses = {FALLBACK: make_places(3, prefix="Community Pantry")}

        result = await service.search_free_text("soup kitchen", ATLANTA, 5000)

        assert provider.queries == [ENHANCED, FALLBACK]
        assert provider.calls[1].radius == pytest.approx(9000)
        assert result.broadened is True
        assert result.count == 3
        assert all(r.id.startswith("search-broad-soup kitchen-") for r in result.resources)

    def test_fallback_query_includes_matching_category_terms(self):
        assert FALLBACK == (
            "community resources OR assistance OR services OR support OR "
            "food bank OR food pantry OR free meals OR Food & Meals"
        )

    @pytest.mark.asyncio
    async def test_food_fallback_includes_food_keywords(self, service, provider):
        await service.search_free_text("food", ATLANTA, 5000)

        assert len(provider.calls) == 2
        fallback = provider.queries[1]
        assert "community resources" in fallback
        for keyword in ResourceCategory.FOOD.top_keywords(3):
            assert keyword in fallback.split(" OR ")

    @pytest.mark.asyncio
    async def test_fallback_results_are_cached(self, service, provider):
        provider.responses = {FALLBACK: make_places(3)}

        await service.search_free_text("soup kitchen", ATLANTA, 5000)
        ids = [r.id for r in service.cache.get_search_results("broad-soup kitchen")]
        again = await service.search_free_text("soup kitchen", ATLANTA, 5000)

        assert len(ids) == 3
        assert again.from_cache is True
        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_failed_primary_falls_through_to_fallback(self, service, provider):
        provider.responses = {
            ENHANCED: RuntimeError("upstream 503"),
            FALLBACK: make_places(1),
        }

        result = await service.search_free_text("soup kitchen", ATLANTA, 5000)

        assert result.count == 1
        assert result.error_message is None
        assert [s.status for s in result.provider_statuses] == ["error", "ok"]

    @pytest.mark.asyncio
    async def test_no_results_anywhere(self, service, provider):
        result = await service.search_free_text("soup kitchen", ATLANTA, 5000)

        assert result.resources == []
        assert result.error_message == "No results found"
        assert service.cache.get_search_results("soup kitchen") is None

    @pytest.mark.asyncio
    async def test_both_calls_failing(self, service, provider):
        provider.default = RuntimeError("connection refused")

        result = await service.search_free_text("soup kitchen", ATLANTA, 5000)

        assert result.error_message == "Unable to search at this time. Please try again later."
        assert service.error_message == result.error_message
