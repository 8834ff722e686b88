"""Tool id alias table and normalisation.

Generation agents name tools inconsistently: ``tomtomFuzzySearchTool``,
``functions.tomtom-fuzzy-search`` and ``tomtom-fuzzy-search`` all mean
the same tool. Every component that keys anything by tool id resolves it
through ``normalize_tool_id`` first.

The table is built once at import and exposed read-only.
"""

from __future__ import annotations

from types import MappingProxyType

from location_intel.core import constants as c

_CANONICAL_IDS: tuple[tuple[str, str], ...] = (
    ("executePlanTool", c.EXECUTE_PLAN),
    ("planTool", c.PLAN_QUERY),
    ("tomtomFuzzySearchTool", c.TOMTOM_FUZZY_SEARCH),
    ("searchPoiTool", c.SEARCH_POI),
    ("getPlaceByIdTool", c.GET_PLACE_BY_ID),
    ("getGooglePlaceDetailsTool", c.GET_GOOGLE_PLACE_DETAILS),
    ("getGooglePlacesInsightsTool", c.GET_GOOGLE_PLACES_INSIGHTS),
    ("searchEventsTool", c.SEARCH_EVENTS),
    ("getIpLocationTool", c.GET_IP_LOCATION),
    ("getWeatherTool", c.GET_WEATHER),
    ("getFootTrafficTool", c.GET_FOOT_TRAFFIC_FORECAST),
    ("getFootTrafficSummaryTool", c.GET_FOOT_TRAFFIC_SUMMARY),
    ("getPoiPhotosTool", c.GET_POI_PHOTOS),
    ("getAggregatedMetricTool", c.GET_AGGREGATED_METRIC),
    ("formatMapDataTool", c.FORMAT_MAP_DATA),
)


def _build_alias_table() -> MappingProxyType[str, str]:
    table: dict[str, str] = {}
    for alias, canonical in _CANONICAL_IDS:
        table[alias] = canonical
        table[canonical] = canonical
    return MappingProxyType(table)


TOOL_ALIASES: MappingProxyType[str, str] = _build_alias_table()
"""Alias (camelCase or kebab) -> canonical kebab-case tool id."""

CANONICAL_TOOL_IDS: frozenset[str] = frozenset(TOOL_ALIASES.values())


def normalize_tool_id(tool_id: str) -> str:
    """Strip a namespace prefix and map *tool_id* to its canonical form.

    Unknown ids are returned prefix-stripped but otherwise unchanged.
    """
    name = tool_id.strip()
    for prefix in c.NAMESPACE_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix) :]
            break
    return TOOL_ALIASES.get(name, name)


def is_meta_tool(tool_id: str) -> bool:
    """True if *tool_id* (any spelling) is a planning/execution meta-tool."""
    return normalize_tool_id(tool_id) in c.META_TOOLS
