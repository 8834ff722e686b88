"""Shared constants: single source of truth.

Centralises canonical tool identifiers, provider source tags, and agent
names that would otherwise be duplicated across the dispatcher, the
feature synthesizer, and the map pipeline.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Canonical tool ids
# ---------------------------------------------------------------------------

EXECUTE_PLAN = "execute-plan"
PLAN_QUERY = "plan-query"
TOMTOM_FUZZY_SEARCH = "tomtom-fuzzy-search"
SEARCH_POI = "search-poi"
GET_PLACE_BY_ID = "get-place-by-id"
GET_GOOGLE_PLACE_DETAILS = "get-google-place-details"
GET_GOOGLE_PLACES_INSIGHTS = "get-google-places-insights"
SEARCH_EVENTS = "search-events"
GET_IP_LOCATION = "get-ip-location"
GET_WEATHER = "get-weather"
GET_FOOT_TRAFFIC_SUMMARY = "get-foot-traffic-summary"
GET_FOOT_TRAFFIC_FORECAST = "get-foot-traffic-forecast"
GET_POI_PHOTOS = "get-poi-photos"
GET_AGGREGATED_METRIC = "get-aggregated-metric"
FORMAT_MAP_DATA = "format-map-data"

META_TOOLS: frozenset[str] = frozenset({EXECUTE_PLAN, PLAN_QUERY})
"""Planning/execution tools that must never run inside a dispatch batch."""

RECURSION_PREVENTED_MESSAGE = "Recursive/plan call prevented during execution"

NAMESPACE_PREFIXES: tuple[str, ...] = ("functions.", "tools.")
"""Prefixes some generation agents prepend to tool ids."""

# ---------------------------------------------------------------------------
# Feature ``source`` provenance tags
# ---------------------------------------------------------------------------

SOURCE_TOMTOM_FUZZY = "TomTom Fuzzy Search"
SOURCE_TOMTOM_POI = "TomTom POI Search"
SOURCE_TOMTOM_PLACE = "TomTom Place Details"
SOURCE_GOOGLE_PLACE = "Google Place Details"
SOURCE_PREDICTHQ = "PredictHQ Events"
SOURCE_IP_LOCATION = "IP Location"

# ---------------------------------------------------------------------------
# Agent names
# ---------------------------------------------------------------------------

MAP_DATA_AGENT = "mapDataAgent"
ORCHESTRATOR_AGENT = "orchestratorAgent"

DOMAIN_URBAN_PLANNING = "urban-planning"
DOMAIN_REAL_ESTATE = "real-estate"
DOMAIN_ENERGY_UTILITIES = "energy-utilities"
DOMAIN_RETAIL = "retail"

DOMAIN_AGENTS: dict[str, str] = {
    DOMAIN_URBAN_PLANNING: "urbanPlanningAgent",
    DOMAIN_REAL_ESTATE: "realEstateAgent",
    DOMAIN_ENERGY_UTILITIES: "energyUtilitiesAgent",
    DOMAIN_RETAIL: "retailAgent",
}

DOMAIN_TOOLS: dict[str, tuple[str, ...]] = {
    DOMAIN_URBAN_PLANNING: (
        GET_FOOT_TRAFFIC_SUMMARY,
        GET_WEATHER,
        SEARCH_EVENTS,
        GET_AGGREGATED_METRIC,
        SEARCH_POI,
        FORMAT_MAP_DATA,
    ),
    DOMAIN_REAL_ESTATE: (
        GET_FOOT_TRAFFIC_SUMMARY,
        GET_GOOGLE_PLACES_INSIGHTS,
        GET_AGGREGATED_METRIC,
        SEARCH_POI,
        GET_GOOGLE_PLACE_DETAILS,
        FORMAT_MAP_DATA,
    ),
    DOMAIN_ENERGY_UTILITIES: (
        GET_WEATHER,
        GET_AGGREGATED_METRIC,
        SEARCH_POI,
        GET_IP_LOCATION,
        FORMAT_MAP_DATA,
    ),
    DOMAIN_RETAIL: (
        GET_FOOT_TRAFFIC_SUMMARY,
        GET_GOOGLE_PLACES_INSIGHTS,
        GET_AGGREGATED_METRIC,
        SEARCH_POI,
        GET_GOOGLE_PLACE_DETAILS,
        SEARCH_EVENTS,
        FORMAT_MAP_DATA,
    ),
}
"""Tools each domain agent is wired with (reported as provenance)."""
