"""Canonical tool id -> async implementation.

Each tool takes the argument dict an agent supplied and returns the
provider payload (or, for ``format-map-data``, the synthesized
FeatureCollection dict). Argument names follow the agents' camelCase
conventions.

Meta-tools (``execute-plan``, ``plan-query``) are deliberately absent:
the dispatcher rejects them before lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from location_intel.core import constants as c
from location_intel.core.exceptions import ValidationError
from location_intel.insights.planner import InsightsQueryPlanner
from location_intel.models.payloads import FuzzySearchArgs, validate_payload
from location_intel.synthesis.feature_synthesizer import FeatureSynthesizer

if TYPE_CHECKING:
    from location_intel.core.config import PipelineConfig
    from location_intel.providers.factory import ProviderSet

logger = logging.getLogger("location_intel.tools.registry")

ToolFn = Callable[[dict[str, Any]], Awaitable[Any]]


def _required_str(args: dict[str, Any], key: str, tool_id: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{tool_id}: '{key}' is required", stage="dispatch")
    return value


def _required_float(args: dict[str, Any], key: str, tool_id: str) -> float:
    value = args.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValidationError(f"{tool_id}: '{key}' must be a number", stage="dispatch")
    return float(value)


def build_tool_registry(
    providers: ProviderSet,
    config: PipelineConfig,
    *,
    synthesizer: FeatureSynthesizer | None = None,
) -> dict[str, ToolFn]:
    """Bind every implemented tool to the given providers."""
    synthesizer = synthesizer or FeatureSynthesizer()
    planner = InsightsQueryPlanner.from_config(providers.google, config)

    async def fuzzy_search(args: dict[str, Any]) -> Any:
        validate_payload(args, FuzzySearchArgs, stage="dispatch")
        return await providers.tomtom.fuzzy_search(
            args["query"],
            lat=args.get("lat"),
            lon=args.get("lon"),
            radius=args.get("radius", config.search_radius_default_m),
            limit=args.get("limit", 10),
            country_set=args.get("countrySet"),
            category_set=args.get("categorySet"),
        )

    async def search_poi(args: dict[str, Any]) -> Any:
        validate_payload(args, FuzzySearchArgs, stage="dispatch")
        return await providers.tomtom.poi_search(
            args["query"],
            lat=args.get("lat"),
            lon=args.get("lon"),
            radius=args.get("radius", config.search_radius_default_m),
            limit=args.get("limit", 10),
            country_set=args.get("countrySet"),
            category_set=args.get("categorySet"),
        )

    async def place_by_id(args: dict[str, Any]) -> Any:
        return await providers.tomtom.place_by_id(_required_str(args, "entityId", c.GET_PLACE_BY_ID))

    async def google_place_details(args: dict[str, Any]) -> Any:
        return await providers.google.place_details(_required_str(args, "placeId", c.GET_GOOGLE_PLACE_DETAILS))

    async def google_places_insights(args: dict[str, Any]) -> Any:
        return await planner.run(args)

    async def search_events(args: dict[str, Any]) -> Any:
        radius_m = args.get("radius", config.search_radius_default_m)
        return await providers.events.search_events(
            lat=_required_float(args, "lat", c.SEARCH_EVENTS),
            lon=_required_float(args, "lon", c.SEARCH_EVENTS),
            radius_km=float(radius_m) / 1000,
            query=args.get("query"),
            category=args.get("category"),
            limit=args.get("limit", 20),
        )

    async def ip_location(args: dict[str, Any]) -> Any:
        return await providers.ip_location.ip_location(args.get("ip", "") or "")

    async def weather(args: dict[str, Any]) -> Any:
        return await providers.weather.current_weather(
            lat=_required_float(args, "lat", c.GET_WEATHER),
            lon=_required_float(args, "lon", c.GET_WEATHER),
            units=args.get("units", "metric"),
        )

    async def foot_traffic_summary(args: dict[str, Any]) -> Any:
        return await providers.foot_traffic.foot_traffic_summary(
            venue_name=_required_str(args, "venueName", c.GET_FOOT_TRAFFIC_SUMMARY),
            venue_address=_required_str(args, "venueAddress", c.GET_FOOT_TRAFFIC_SUMMARY),
        )

    async def format_map_data(args: dict[str, Any]) -> Any:
        raw = args.get("rawData")
        if not isinstance(raw, dict):
            raise ValidationError(f"{c.FORMAT_MAP_DATA}: 'rawData' must be an object", stage="dispatch")
        return synthesizer.format_map_data(raw)

    registry: dict[str, ToolFn] = {
        c.TOMTOM_FUZZY_SEARCH: fuzzy_search,
        c.SEARCH_POI: search_poi,
        c.GET_PLACE_BY_ID: place_by_id,
        c.GET_GOOGLE_PLACE_DETAILS: google_place_details,
        c.GET_GOOGLE_PLACES_INSIGHTS: google_places_insights,
        c.SEARCH_EVENTS: search_events,
        c.GET_IP_LOCATION: ip_location,
        c.GET_WEATHER: weather,
        c.GET_FOOT_TRAFFIC_SUMMARY: foot_traffic_summary,
        c.FORMAT_MAP_DATA: format_map_data,
    }
    logger.debug("Tool registry built | tools=%d", len(registry))
    return registry
