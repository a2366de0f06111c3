"""Provider query builders for category, broadened and free-text searches."""

from __future__ import annotations

from typing import Dict, Iterable, List

from discovery.categories import ResourceCategory, category_query

BROADEN_KEYWORD_COUNT = 5
FALLBACK_SCAN_KEYWORD_COUNT = 5
FALLBACK_APPEND_KEYWORD_COUNT = 3

SEARCH_BOILERPLATE = "assistance services support resources help community center"
FALLBACK_SEED_TERMS = ("community resources", "assistance", "services", "support")


def _dedupe_terms(terms: Iterable[str]) -> List[str]:
    seen: Dict[str, str] = {}
    for term in terms:
        cleaned = str(term).strip()
        if not cleaned:
            continue
        key = cleaned.casefold()
        if key not in seen:
            seen[key] = cleaned
    return list(seen.values())


def normalize_query(query: str) -> str:
    return (query or "").strip().lower()


def build_category_query(category: ResourceCategory) -> str:
    return category_query(category)


def build_broadened_query(category: ResourceCategory) -> str:
    return " OR ".join(category.top_keywords(BROADEN_KEYWORD_COUNT))


def build_enhanced_query(query: str) -> str:
    return f"{query.strip()} {SEARCH_BOILERPLATE}"


def matching_categories(query: str) -> List[ResourceCategory]:
    """Categories whose leading keywords overlap the query in either direction."""
    lowered = normalize_query(query)
    if not lowered:
        return []
    matches = []
    for category in ResourceCategory.searchable():
        for keyword in category.top_keywords(FALLBACK_SCAN_KEYWORD_COUNT):
            if lowered in keyword or keyword in lowered:
                matches.append(category)
                break
    return matches


def build_fallback_terms(query: str) -> List[str]:
    terms: List[str] = list(FALLBACK_SEED_TERMS)
    for category in matching_categories(query):
        terms.extend(category.top_keywords(FALLBACK_APPEND_KEYWORD_COUNT))
        terms.append(category.value)
    return _dedupe_terms(terms)


def build_fallback_query(query: str) -> str:
    return " OR ".join(build_fallback_terms(query))
