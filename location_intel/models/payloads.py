"""Typed payload schemas for tool and provider boundaries.

Tool arguments arrive from generation agents as plain JSON dicts. These
``TypedDict`` definitions make the expected shapes explicit, and
``validate_payload`` catches missing keys at runtime.

Usage::

    from location_intel.models.payloads import InsightsRequest, validate_payload

    validate_payload(raw, InsightsRequest, stage="insights")
"""

from __future__ import annotations

from typing import Any, NotRequired, TypedDict

from location_intel.core.exceptions import ContractError

# ---------------------------------------------------------------------------
# Places Insights
# ---------------------------------------------------------------------------


class LatLng(TypedDict):
    latitude: float
    longitude: float


class CircleFilter(TypedDict, total=False):
    latLng: LatLng
    place: str
    radius: int


class LocationFilter(TypedDict, total=False):
    circle: CircleFilter
    region: dict[str, str]
    customArea: dict[str, Any]


class TypeFilter(TypedDict, total=False):
    includedTypes: list[str]
    excludedTypes: list[str]
    includedPrimaryTypes: list[str]
    excludedPrimaryTypes: list[str]


class InsightsFilter(TypedDict):
    locationFilter: LocationFilter
    typeFilter: TypeFilter
    operatingStatus: NotRequired[list[str]]
    priceLevels: NotRequired[list[str]]
    ratingFilter: NotRequired[dict[str, float]]


class BusinessContext(TypedDict, total=False):
    industry: str
    targetCustomers: str
    businessModel: str


class InsightsRequest(TypedDict):
    """Arguments of the ``get-google-places-insights`` tool."""

    insights: list[str]
    filter: InsightsFilter
    analysisType: NotRequired[str]
    businessContext: NotRequired[BusinessContext]


class BusinessIntelligence(TypedDict, total=False):
    marketDensity: str
    competitionLevel: str
    recommendations: list[str]
    riskFactors: list[str]


class InsightsMetadata(TypedDict):
    analysisType: str
    filterCriteria: dict[str, Any]
    timestamp: str
    searchRadius: NotRequired[int]
    listingRadius: NotRequired[int]
    truncated: NotRequired[bool]


class InsightsResult(TypedDict):
    """Output of the ``get-google-places-insights`` tool."""

    count: str
    metadata: InsightsMetadata
    places: NotRequired[list[str]]
    businessIntelligence: NotRequired[BusinessIntelligence]


# ---------------------------------------------------------------------------
# Fuzzy search
# ---------------------------------------------------------------------------


class FuzzySearchArgs(TypedDict):
    """Arguments of the ``tomtom-fuzzy-search`` / ``search-poi`` tools."""

    query: str
    lat: NotRequired[float]
    lon: NotRequired[float]
    radius: NotRequired[int]
    limit: NotRequired[int]
    countrySet: NotRequired[str]
    categorySet: NotRequired[str]


# ---------------------------------------------------------------------------
# Required-key registrations (used by validate_payload)
# ---------------------------------------------------------------------------

_REQUIRED_KEYS: dict[type, frozenset[str]] = {
    InsightsRequest: frozenset({"insights", "filter"}),
    InsightsFilter: frozenset({"locationFilter", "typeFilter"}),
    FuzzySearchArgs: frozenset({"query"}),
}


def validate_payload(
    raw: dict[str, Any],
    schema: type,
    *,
    stage: str,
) -> None:
    """Validate that *raw* contains the required keys for *schema*.

    Raises:
        ContractError: If *raw* is not a dict or required keys are missing.
    """
    if not isinstance(raw, dict):
        msg = f"{stage}: expected a mapping, got {type(raw).__name__}"
        raise ContractError(msg, stage=stage, code="PAYLOAD_NOT_MAPPING")

    required = _REQUIRED_KEYS.get(schema)
    if required is None:
        return

    missing = required - raw.keys()
    if missing:
        msg = f"{stage}: missing required payload key(s): {', '.join(sorted(missing))}"
        raise ContractError(msg, stage=stage, code="PAYLOAD_MISSING_KEYS")
