"""Keyword-based query classification and entity extraction.

Specialised domains are checked first (urban planning, real estate,
energy/utilities, retail), then map, analytics and search intents;
anything else is ``COMPREHENSIVE``. Keywords match whole words (plural
suffix allowed) so that ``gas`` does not fire inside ``Las Vegas``.
"""

from __future__ import annotations

import logging
import re

from location_intel.core import constants as c
from location_intel.models.records import ExtractedEntities, QueryAnalysisResult, QueryType

logger = logging.getLogger("location_intel.routing.query_router")

DEFAULT_CONFIDENCE = 0.8

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

URBAN_PLANNING_KEYWORDS = (
    "urban planning", "community", "infrastructure", "zoning", "walkability",
    "bikeability", "mixed-use", "sustainable", "green space", "public space",
    "pedestrian", "neighborhood", "district", "residential", "commercial",
)
REAL_ESTATE_KEYWORDS = (
    "real estate", "property", "land use", "commercial property", "rental",
    "investment", "market analysis", "property value", "commercial space",
    "office space", "retail space", "land development", "property market",
)
ENERGY_UTILITIES_KEYWORDS = (
    "energy", "utilities", "power grid", "electrical", "gas", "water",
    "infrastructure", "renewable", "solar", "wind", "utility network",
    "power lines", "substation", "energy efficiency", "carbon footprint",
)
RETAIL_KEYWORDS = (
    "retail", "store location", "shopping center", "mall", "franchise",
    "business location", "market analysis", "customer traffic", "sales potential",
    "retail space", "store optimization", "market penetration", "trade area",
)
MAP_KEYWORDS = ("map", "show on map", "geojson", "coordinates", "plot", "visualize")
ANALYTICS_KEYWORDS = ("average", "count", "sum", "how many", "statistics", "foot traffic", "busy")
SEARCH_KEYWORDS = ("find", "search", "look for", "locate")
SEARCH_EXCLUSIONS = ("weather", "events")

CATEGORY_VOCABULARY = (
    "restaurant", "cafe", "coffee shop", "hotel", "gas station",
    "pharmacy", "hospital", "bank", "atm", "grocery store",
)
METRIC_VOCABULARY = ("average", "count", "sum", "max", "min", "total")
TIMEFRAME_VOCABULARY = ("today", "tomorrow", "this week", "weekend", "next week")

MAP_INDICATORS = ("map", "show", "plot", "visualize", "geojson", "coordinates")
BUSINESS_ANALYSIS_KEYWORDS = ("area", "around", "near", "location", "suitability", "competition", "analyze")
SUMMARY_INDICATORS = ("tell me", "explain", "describe", "what", "how")

_DOMAIN_ORDER: tuple[tuple[QueryType, tuple[str, ...]], ...] = (
    (QueryType.URBAN_PLANNING, URBAN_PLANNING_KEYWORDS),
    (QueryType.REAL_ESTATE, REAL_ESTATE_KEYWORDS),
    (QueryType.ENERGY_UTILITIES, ENERGY_UTILITIES_KEYWORDS),
    (QueryType.RETAIL, RETAIL_KEYWORDS),
)

QUERY_TYPE_DOMAINS: dict[QueryType, str] = {
    QueryType.URBAN_PLANNING: c.DOMAIN_URBAN_PLANNING,
    QueryType.REAL_ESTATE: c.DOMAIN_REAL_ESTATE,
    QueryType.ENERGY_UTILITIES: c.DOMAIN_ENERGY_UTILITIES,
    QueryType.RETAIL: c.DOMAIN_RETAIL,
}

_CAPITALISED = r"[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*"
_CITY_STATE = re.compile(rf"\b({_CAPITALISED}),\s*({_CAPITALISED})")
_PREPOSITION_PLACE = re.compile(rf"\b(?:in|near|at|around|by)\s+({_CAPITALISED})")
_CAPITALISED_RUN = re.compile(rf"\b({_CAPITALISED})\b")


def _contains(text: str, keyword: str) -> bool:
    return re.search(rf"(?<![\w-]){re.escape(keyword)}(?:s|es)?(?![\w-])", text) is not None


def _any_keyword(text: str, keywords: tuple[str, ...]) -> bool:
    return any(_contains(text, k) for k in keywords)


def _matching(text: str, vocabulary: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(term for term in vocabulary if _contains(text, term))


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_locations(query: str) -> tuple[str, ...]:
    """City-State pairs, preposition phrases, then capitalised runs (deduplicated)."""
    found: list[str] = []
    for match in _CITY_STATE.finditer(query):
        found.append(f"{match.group(1).strip()}, {match.group(2).strip()}")
    for pattern in (_PREPOSITION_PLACE, _CAPITALISED_RUN):
        found.extend(m.group(1).strip() for m in pattern.finditer(query))
    return tuple(dict.fromkeys(found))


def extract_entities(query: str) -> ExtractedEntities:
    lowered = query.lower()
    return ExtractedEntities(
        locations=extract_locations(query),
        categories=_matching(lowered, CATEGORY_VOCABULARY),
        metrics=_matching(lowered, METRIC_VOCABULARY),
        timeframes=_matching(lowered, TIMEFRAME_VOCABULARY),
    )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify(query: str) -> QueryType:
    lowered = query.lower()
    for query_type, keywords in _DOMAIN_ORDER:
        if _any_keyword(lowered, keywords):
            return query_type
    if _any_keyword(lowered, MAP_KEYWORDS):
        return QueryType.MAP_DATA_ONLY
    if _any_keyword(lowered, ANALYTICS_KEYWORDS):
        return QueryType.ANALYTICS
    if _any_keyword(lowered, SEARCH_KEYWORDS) and not _any_keyword(lowered, SEARCH_EXCLUSIONS):
        return QueryType.SEARCH_ONLY
    return QueryType.COMPREHENSIVE


def requires_mapping(query: str, entities: ExtractedEntities) -> bool:
    lowered = query.lower()
    return (
        _any_keyword(lowered, MAP_INDICATORS)
        or bool(entities.locations)
        or _any_keyword(lowered, BUSINESS_ANALYSIS_KEYWORDS)
    )


def requires_summary(query: str) -> bool:
    return _any_keyword(query.lower(), SUMMARY_INDICATORS)


def suggested_agents(query_type: QueryType, *, mapping: bool) -> tuple[str, ...]:
    domain = QUERY_TYPE_DOMAINS.get(query_type)
    if domain is not None:
        return (c.DOMAIN_AGENTS[domain], c.MAP_DATA_AGENT)
    if query_type is QueryType.MAP_DATA_ONLY:
        return (c.MAP_DATA_AGENT,)
    if query_type is QueryType.LOCATION_BASED:
        return (c.ORCHESTRATOR_AGENT, c.MAP_DATA_AGENT)
    if query_type is QueryType.COMPREHENSIVE and mapping:
        return (c.ORCHESTRATOR_AGENT, c.MAP_DATA_AGENT)
    return (c.ORCHESTRATOR_AGENT,)


class QueryRouter:
    """Classify a query and decide which agents and outputs it needs."""

    def analyze(self, query: str) -> QueryAnalysisResult:
        entities = extract_entities(query)
        query_type = classify(query)
        mapping = requires_mapping(query, entities)
        result = QueryAnalysisResult(
            query_type=query_type,
            confidence=DEFAULT_CONFIDENCE,
            entities=entities,
            requires_mapping=mapping,
            requires_summary=requires_summary(query),
            suggested_agents=suggested_agents(query_type, mapping=mapping),
        )
        logger.info(
            "Query analyzed | type=%s | confidence=%.2f | mapping=%s",
            query_type.value,
            result.confidence,
            mapping,
        )
        return result

    @staticmethod
    def domain_for(query_type: QueryType) -> str | None:
        """Domain served by *query_type*, or ``None`` for general intents."""
        return QUERY_TYPE_DOMAINS.get(query_type)
