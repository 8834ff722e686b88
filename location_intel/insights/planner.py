"""Adaptive count-then-list querying of the Places Insights provider.

The insights API rejects listings above a hard cap (``M``, 100 places).
The planner therefore always asks for the count first and, when a
listing is wanted and the count exceeds ``M``, shrinks the circle radius
before asking for the places:

    scale      = sqrt(M / C) * safety_margin
    new_radius = max(min_radius, floor(radius * scale))

Count is assumed to scale with area (radius squared). That assumption is
a heuristic, so the listing the provider returns is still authoritative
and is truncated to ``M`` (with ``metadata.truncated``) if it overflows.

A failed listing call keeps the count and omits ``places``. A failed
count call propagates to the caller.
"""

from __future__ import annotations

import copy
import enum
import logging
import math
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol

from location_intel.core.exceptions import MalformedPayloadError, ValidationError
from location_intel.models.payloads import (
    BusinessIntelligence,
    InsightsFilter,
    InsightsRequest,
    InsightsResult,
    validate_payload,
)
from location_intel.providers.base import ProviderError

if TYPE_CHECKING:
    from location_intel.core.config import PipelineConfig

logger = logging.getLogger("location_intel.insights.planner")

INSIGHT_COUNT = "INSIGHT_COUNT"
INSIGHT_PLACES = "INSIGHT_PLACES"

OPERATIONAL = "OPERATING_STATUS_OPERATIONAL"

MAX_CIRCLE_RADIUS_M = 50_000
DEFAULT_BI_RADIUS_M = 1000

ANALYSIS_TYPES = frozenset(
    {"MARKET_DENSITY", "COMPETITOR_ANALYSIS", "LOCATION_SUITABILITY", "PRICE_ANALYSIS", "CUSTOM"}
)


class DensityTier(enum.Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    SATURATED = "SATURATED"


# ---------------------------------------------------------------------------
# Business-intelligence presets
# ---------------------------------------------------------------------------

BUSINESS_PRESETS: dict[str, dict[str, Any]] = {
    "RETAIL_COMPETITION": {
        "includedPrimaryTypes": ["clothing_store", "electronics_store", "department_store", "shopping_mall"],
        "operatingStatus": [OPERATIONAL],
        "description": "Analyze retail competition in an area",
    },
    "FOOD_SERVICE": {
        "includedPrimaryTypes": ["restaurant", "cafe", "fast_food_restaurant", "meal_takeaway"],
        "operatingStatus": [OPERATIONAL],
        "description": "Food service business analysis",
    },
    "REAL_ESTATE_COMMERCIAL": {
        "includedTypes": ["real_estate_agency", "moving_company", "storage"],
        "operatingStatus": [OPERATIONAL],
        "description": "Commercial real estate services",
    },
    "PROFESSIONAL_SERVICES": {
        "includedPrimaryTypes": ["lawyer", "accounting", "dentist", "doctor", "veterinary_care"],
        "operatingStatus": [OPERATIONAL],
        "description": "Professional service providers",
    },
    "FITNESS_WELLNESS": {
        "includedPrimaryTypes": ["gym", "spa", "beauty_salon", "physiotherapist"],
        "operatingStatus": [OPERATIONAL],
        "description": "Health and wellness businesses",
    },
}


class InsightsBackend(Protocol):
    async def compute_insights(self, insights: list[str], filter_: dict[str, Any]) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def scaled_radius(
    count: int,
    radius_m: int,
    *,
    max_places: int,
    safety_margin: float,
    min_radius_m: int,
) -> int:
    """Return the radius expected to hold at most *max_places* places.

    Returns *radius_m* unchanged when *count* is already within the cap.
    """
    if count <= max_places:
        return radius_m
    scale = math.sqrt(max_places / count) * safety_margin
    return max(min_radius_m, math.floor(radius_m * scale))


def parse_count(value: object) -> int:
    """Return the insights ``count`` as an int (numeric string tolerated, else 0)."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def density_per_km2(count: int, radius_m: float) -> float:
    area_km2 = math.pi * (radius_m / 1000) ** 2
    return count / area_km2


def density_tier(density: float) -> DensityTier:
    if density < 1:
        return DensityTier.LOW
    if density < 5:
        return DensityTier.MODERATE
    if density < 15:
        return DensityTier.HIGH
    return DensityTier.SATURATED


def business_intelligence(
    count: int,
    radius_m: int,
    analysis_type: str,
    business_context: dict[str, Any] | None = None,
) -> BusinessIntelligence:
    """Density tier plus tier/analysis/business-model recommendations."""
    density = density_per_km2(count, radius_m)
    tier = density_tier(density)
    recommendations: list[str] = []
    risks: list[str] = []

    if tier is DensityTier.LOW:
        recommendations.append("Market opportunity exists with low competition")
        recommendations.append("Consider being a market pioneer in this area")
    elif tier is DensityTier.MODERATE:
        recommendations.append("Balanced market with room for differentiation")
        recommendations.append("Focus on unique value proposition")
    elif tier is DensityTier.HIGH:
        recommendations.append("Highly competitive market - strong differentiation required")
        risks.append("High competition may impact market share")
    else:
        recommendations.append("Market appears saturated - consider alternative locations")
        risks.append("Market saturation may limit growth potential")
        risks.append("High customer acquisition costs likely")

    if analysis_type == "MARKET_DENSITY":
        recommendations.append(f"Market density: {density:.2f} businesses per km²")
    elif analysis_type == "COMPETITOR_ANALYSIS":
        recommendations.append(f"{count} direct competitors identified in {radius_m}m radius")
        if count > 10:
            risks.append("High number of competitors may indicate market saturation")
    elif analysis_type == "LOCATION_SUITABILITY":
        if tier is DensityTier.LOW:
            recommendations.append("Location shows good potential for new business entry")
        elif tier is DensityTier.SATURATED:
            recommendations.append("Consider alternative locations with less competition")

    if (business_context or {}).get("businessModel") == "franchise":
        recommendations.append("Franchise model may benefit from established brand recognition")
        if tier is DensityTier.HIGH:
            recommendations.append("Strong franchise support will be crucial in competitive market")

    bi: BusinessIntelligence = {
        "marketDensity": f"{density:.2f} businesses per km² ({count} total in {radius_m}m radius)",
        "competitionLevel": tier.value,
        "recommendations": recommendations,
    }
    if risks:
        bi["riskFactors"] = risks
    return bi


def apply_business_preset(filter_: InsightsFilter, industry: str | None) -> InsightsFilter:
    """Merge the preset whose description mentions *industry* into *filter_*.

    Returns a new filter; *filter_* is not modified.
    """
    enhanced: InsightsFilter = copy.deepcopy(filter_)
    if not industry:
        return enhanced
    needle = industry.lower()
    preset = next((p for p in BUSINESS_PRESETS.values() if needle in p["description"].lower()), None)
    if preset is None:
        return enhanced
    type_filter = dict(enhanced.get("typeFilter") or {})
    for key in ("includedTypes", "includedPrimaryTypes"):
        if key in preset:
            type_filter[key] = list(preset[key])
    enhanced["typeFilter"] = type_filter  # type: ignore[typeddict-item]
    if not enhanced.get("operatingStatus"):
        enhanced["operatingStatus"] = list(preset["operatingStatus"])
    return enhanced


def validate_insights_request(request: dict[str, Any]) -> None:
    """Check the insights request shape.

    Raises:
        ContractError: Required keys missing.
        ValidationError: Location, radius, or type filter invalid.
    """
    validate_payload(request, InsightsRequest, stage="insights")
    filter_ = request["filter"]
    validate_payload(filter_, InsightsFilter, stage="insights")

    insights = request["insights"]
    if not isinstance(insights, list) or not insights:
        raise ValidationError("insights must be a non-empty list", stage="insights")
    unknown = [i for i in insights if i not in (INSIGHT_COUNT, INSIGHT_PLACES)]
    if unknown:
        raise ValidationError(f"Unknown insight types: {unknown}", stage="insights")

    location = filter_["locationFilter"] or {}
    circle = location.get("circle")
    has_circle = isinstance(circle, dict) and bool(circle.get("latLng") or circle.get("place"))
    if not (has_circle or location.get("region") or location.get("customArea")):
        raise ValidationError(
            "At least one location filter (circle, region, or customArea) must be specified",
            stage="insights",
        )
    if isinstance(circle, dict) and "radius" in circle:
        radius = circle["radius"]
        if isinstance(radius, bool) or not isinstance(radius, int | float) or not 1 <= radius <= MAX_CIRCLE_RADIUS_M:
            raise ValidationError(
                f"Circle radius must be between 1 and {MAX_CIRCLE_RADIUS_M} metres, got {radius!r}",
                stage="insights",
            )

    type_filter = filter_["typeFilter"] or {}
    if not (type_filter.get("includedTypes") or type_filter.get("includedPrimaryTypes")):
        raise ValidationError(
            "At least one of includedTypes or includedPrimaryTypes must be specified",
            stage="insights",
        )

    analysis_type = request.get("analysisType", "CUSTOM")
    if analysis_type not in ANALYSIS_TYPES:
        raise ValidationError(f"Unknown analysisType: {analysis_type!r}", stage="insights")


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------


class InsightsQueryPlanner:
    """Count-first, radius-scaled Places Insights querying.

    Args:
        backend: Object exposing ``compute_insights`` (the Google adapter).
        max_places: Hard cap ``M`` on the listing size.
        safety_margin: Multiplier (<1) on the radius scale.
        min_radius_m: Radius floor in metres.
    """

    def __init__(
        self,
        backend: InsightsBackend,
        *,
        max_places: int = 100,
        safety_margin: float = 0.9,
        min_radius_m: int = 50,
    ) -> None:
        self._backend = backend
        self.max_places = max_places
        self.safety_margin = safety_margin
        self.min_radius_m = min_radius_m

    @classmethod
    def from_config(cls, backend: InsightsBackend, config: PipelineConfig) -> InsightsQueryPlanner:
        return cls(
            backend,
            max_places=config.insights_max_places,
            safety_margin=config.insights_safety_margin,
            min_radius_m=config.search_radius_min_m,
        )

    async def run(self, request: dict[str, Any]) -> InsightsResult:
        """Execute one insights request.

        Raises:
            ContractError / ValidationError: The request is malformed.
            ProviderError: The count query failed.
        """
        validate_insights_request(request)
        analysis_type = request.get("analysisType") or "CUSTOM"
        business_context = request.get("businessContext") or {}
        filter_ = apply_business_preset(request["filter"], business_context.get("industry"))

        count_payload = await self._backend.compute_insights([INSIGHT_COUNT], dict(filter_))
        count = parse_count(count_payload.get("count"))
        logger.info("Insights count | count=%d | analysis=%s", count, analysis_type)

        result: InsightsResult = {
            "count": str(count),
            "metadata": {
                "analysisType": analysis_type,
                "filterCriteria": dict(filter_),
                "timestamp": datetime.now(UTC).isoformat(),
            },
        }

        circle = filter_["locationFilter"].get("circle") or {}
        original_radius = circle.get("radius")
        effective_radius = original_radius

        if INSIGHT_PLACES in request["insights"]:
            if original_radius and count > self.max_places:
                effective_radius = scaled_radius(
                    count,
                    int(original_radius),
                    max_places=self.max_places,
                    safety_margin=self.safety_margin,
                    min_radius_m=self.min_radius_m,
                )
                logger.info(
                    "Insights radius scaled | count=%d | cap=%d | radius=%s -> %d",
                    count,
                    self.max_places,
                    original_radius,
                    effective_radius,
                )
            places = await self._list_places(filter_, effective_radius)
            if places is not None:
                if len(places) > self.max_places:
                    logger.warning(
                        "Insights listing over cap, truncating | returned=%d | cap=%d",
                        len(places),
                        self.max_places,
                    )
                    places = places[: self.max_places]
                    result["metadata"]["truncated"] = True
                result["places"] = places
            if effective_radius != original_radius:
                result["metadata"]["listingRadius"] = int(effective_radius)

        if analysis_type != "CUSTOM":
            # The count was measured over the requested circle, not the listing one.
            bi_radius = int(original_radius or DEFAULT_BI_RADIUS_M)
            result["businessIntelligence"] = business_intelligence(
                count, bi_radius, analysis_type, business_context
            )
            result["metadata"]["searchRadius"] = bi_radius

        return result

    async def _list_places(self, filter_: InsightsFilter, radius: int | None) -> list[str] | None:
        """Return listed place ids, or ``None`` when the listing failed."""
        places_filter: dict[str, Any] = copy.deepcopy(dict(filter_))
        if radius:
            places_filter["locationFilter"].setdefault("circle", {})["radius"] = radius
        try:
            payload = await self._backend.compute_insights([INSIGHT_PLACES], places_filter)
            return _place_ids(payload)
        except (ProviderError, MalformedPayloadError) as exc:
            logger.warning("Insights listing failed, keeping count only | error=%s", exc)
            return None


def _place_ids(payload: object) -> list[str]:
    if not isinstance(payload, dict):
        raise MalformedPayloadError("google_places", "Insights response is not an object")
    entries = payload.get("placeInsights")
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise MalformedPayloadError("google_places", "placeInsights is not a list")
    return [entry["place"] for entry in entries if isinstance(entry, dict) and isinstance(entry.get("place"), str)]
