"""Tests for the count-then-list Places Insights planner.

Covers:
- Radius scaling formula and floor
- Count-first ordering and the scaled listing radius
- Listing failure keeps the count
- Truncation of an over-cap listing
- Business presets and business-intelligence tiers
- Request validation
"""

from __future__ import annotations

import copy
from typing import Any
from unittest.mock import AsyncMock

import pytest

from location_intel.core.exceptions import ContractError, ValidationError
from location_intel.insights.planner import (
    INSIGHT_COUNT,
    INSIGHT_PLACES,
    OPERATIONAL,
    DensityTier,
    InsightsQueryPlanner,
    apply_business_preset,
    business_intelligence,
    density_tier,
    parse_count,
    scaled_radius,
    validate_insights_request,
)
from location_intel.providers.base import ProviderError


def _request(radius: int = 5000, **overrides: Any) -> dict[str, Any]:
    request: dict[str, Any] = {
        "insights": [INSIGHT_COUNT, INSIGHT_PLACES],
        "filter": {
            "locationFilter": {"circle": {"latLng": {"latitude": 25.76, "longitude": -80.19}, "radius": radius}},
            "typeFilter": {"includedTypes": ["restaurant"]},
        },
    }
    request.update(overrides)
    return request


def _backend(count: object, places: list[str] | Exception | None = None) -> AsyncMock:
    """Backend whose count call returns *count* and listing returns *places*."""

    async def compute(insights: list[str], filter_: dict[str, Any]) -> dict[str, Any]:
        if insights == [INSIGHT_COUNT]:
            return {"count": count}
        if isinstance(places, Exception):
            raise places
        return {"placeInsights": [{"place": p} for p in places or []]}

    return AsyncMock(side_effect=compute)


class TestScaledRadius:
    def test_reference_case(self) -> None:
        assert scaled_radius(1000, 5000, max_places=100, safety_margin=0.9, min_radius_m=50) == 1423

    def test_within_cap_unchanged(self) -> None:
        assert scaled_radius(100, 5000, max_places=100, safety_margin=0.9, min_radius_m=50) == 5000

    def test_floor_applied(self) -> None:
        assert scaled_radius(10_000_000, 500, max_places=100, safety_margin=0.9, min_radius_m=50) == 50

    @pytest.mark.parametrize("count", [101, 250, 1000, 40_000])
    def test_always_shrinks_above_cap(self, count: int) -> None:
        assert scaled_radius(count, 5000, max_places=100, safety_margin=0.9, min_radius_m=50) < 5000


class TestParseCount:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("1000", 1000), (42, 42), (3.0, 3), (" 7 ", 7), ("many", 0), (None, 0), (True, 0)],
    )
    def test_parse(self, value: object, expected: int) -> None:
        assert parse_count(value) == expected


class TestPlannerRun:
    @pytest.mark.asyncio()
    async def test_count_first_then_scaled_listing(self) -> None:
        backend = AsyncMock()
        backend.compute_insights = _backend("1000", [f"places/{i}" for i in range(80)])
        planner = InsightsQueryPlanner(backend)

        result = await planner.run(_request())

        calls = backend.compute_insights.await_args_list
        assert [call.args[0] for call in calls] == [[INSIGHT_COUNT], [INSIGHT_PLACES]]
        assert calls[1].args[1]["locationFilter"]["circle"]["radius"] == 1423
        assert result["count"] == "1000"
        assert len(result["places"]) == 80
        assert "truncated" not in result["metadata"]

    @pytest.mark.asyncio()
    async def test_caller_filter_not_mutated(self) -> None:
        backend = AsyncMock()
        backend.compute_insights = _backend("1000", [])
        request = _request()
        snapshot = copy.deepcopy(request)

        await InsightsQueryPlanner(backend).run(request)

        assert request == snapshot

    @pytest.mark.asyncio()
    async def test_count_within_cap_keeps_radius(self) -> None:
        backend = AsyncMock()
        backend.compute_insights = _backend(40, ["places/a"])

        await InsightsQueryPlanner(backend).run(_request())

        listing = backend.compute_insights.await_args_list[1]
        assert listing.args[1]["locationFilter"]["circle"]["radius"] == 5000

    @pytest.mark.asyncio()
    async def test_count_only_request_never_lists(self) -> None:
        backend = AsyncMock()
        backend.compute_insights = _backend("1000")

        result = await InsightsQueryPlanner(backend).run(_request(insights=[INSIGHT_COUNT]))

        assert backend.compute_insights.await_count == 1
        assert "places" not in result

    @pytest.mark.asyncio()
    async def test_listing_failure_keeps_count(self) -> None:
        backend = AsyncMock()
        backend.compute_insights = _backend("1000", ProviderError("google_places", "boom", status_code=400))

        result = await InsightsQueryPlanner(backend).run(_request())

        assert result["count"] == "1000"
        assert "places" not in result

    @pytest.mark.asyncio()
    async def test_count_failure_propagates(self) -> None:
        backend = AsyncMock()
        backend.compute_insights = AsyncMock(side_effect=ProviderError("google_places", "down"))

        with pytest.raises(ProviderError):
            await InsightsQueryPlanner(backend).run(_request())

    @pytest.mark.asyncio()
    async def test_over_cap_listing_truncated(self) -> None:
        backend = AsyncMock()
        backend.compute_insights = _backend("1000", [f"places/{i}" for i in range(130)])

        result = await InsightsQueryPlanner(backend).run(_request())

        assert len(result["places"]) == 100
        assert result["places"][0] == "places/0"
        assert result["metadata"]["truncated"] is True

    @pytest.mark.asyncio()
    async def test_density_measured_at_counted_radius(self) -> None:
        backend = AsyncMock()
        backend.compute_insights = _backend("1000", [])

        result = await InsightsQueryPlanner(backend).run(_request(analysisType="MARKET_DENSITY"))

        assert result["metadata"]["searchRadius"] == 5000
        assert result["metadata"]["listingRadius"] == 1423
        assert result["businessIntelligence"]["competitionLevel"] == "HIGH"
        assert "12.7" in result["businessIntelligence"]["marketDensity"]

    @pytest.mark.asyncio()
    async def test_custom_analysis_has_no_business_intelligence(self) -> None:
        backend = AsyncMock()
        backend.compute_insights = _backend(5)

        result = await InsightsQueryPlanner(backend).run(_request(insights=[INSIGHT_COUNT]))

        assert "businessIntelligence" not in result
        assert result["metadata"]["analysisType"] == "CUSTOM"

    @pytest.mark.asyncio()
    async def test_invalid_request_never_reaches_backend(self) -> None:
        backend = AsyncMock()
        backend.compute_insights = AsyncMock()

        with pytest.raises(ValidationError):
            await InsightsQueryPlanner(backend).run(_request(radius=60_000))

        backend.compute_insights.assert_not_awaited()


class TestBusinessIntelligence:
    @pytest.mark.parametrize(
        ("density", "tier"),
        [(0.5, DensityTier.LOW), (1.0, DensityTier.MODERATE), (14.9, DensityTier.HIGH), (15.0, DensityTier.SATURATED)],
    )
    def test_tiers(self, density: float, tier: DensityTier) -> None:
        assert density_tier(density) is tier

    def test_low_density_recommendations(self) -> None:
        bi = business_intelligence(1, 1000, "LOCATION_SUITABILITY")
        assert bi["competitionLevel"] == "LOW"
        assert "Location shows good potential for new business entry" in bi["recommendations"]
        assert "riskFactors" not in bi

    def test_competitor_analysis_flags_many_competitors(self) -> None:
        bi = business_intelligence(12, 1000, "COMPETITOR_ANALYSIS")
        assert "12 direct competitors identified in 1000m radius" in bi["recommendations"]
        assert "High number of competitors may indicate market saturation" in bi["riskFactors"]

    def test_franchise_in_high_density(self) -> None:
        bi = business_intelligence(30, 1000, "MARKET_DENSITY", {"businessModel": "franchise"})
        assert bi["competitionLevel"] == "HIGH"
        assert "Strong franchise support will be crucial in competitive market" in bi["recommendations"]

    def test_market_density_text(self) -> None:
        bi = business_intelligence(0, 1000, "MARKET_DENSITY")
        assert bi["marketDensity"] == "0.00 businesses per km² (0 total in 1000m radius)"


class TestBusinessPresets:
    def test_food_service_preset_applied(self) -> None:
        base = _request()["filter"]
        enhanced = apply_business_preset(base, "food service")
        assert enhanced["typeFilter"]["includedPrimaryTypes"][0] == "restaurant"
        assert enhanced["typeFilter"]["includedTypes"] == ["restaurant"]
        assert enhanced["operatingStatus"] == [OPERATIONAL]
        assert "operatingStatus" not in base

    def test_existing_operating_status_kept(self) -> None:
        base = _request()["filter"]
        base["operatingStatus"] = ["OPERATING_STATUS_TEMPORARILY_CLOSED"]
        enhanced = apply_business_preset(base, "wellness")
        assert enhanced["operatingStatus"] == ["OPERATING_STATUS_TEMPORARILY_CLOSED"]

    def test_unknown_industry_unchanged(self) -> None:
        base = _request()["filter"]
        assert apply_business_preset(base, "aerospace") == base


class TestValidateInsightsRequest:
    def test_valid_request_passes(self) -> None:
        validate_insights_request(_request())

    def test_missing_filter_is_contract_error(self) -> None:
        with pytest.raises(ContractError):
            validate_insights_request({"insights": [INSIGHT_COUNT]})

    def test_missing_location_rejected(self) -> None:
        request = _request()
        request["filter"]["locationFilter"] = {}
        with pytest.raises(ValidationError, match="location filter"):
            validate_insights_request(request)

    def test_missing_types_rejected(self) -> None:
        request = _request()
        request["filter"]["typeFilter"] = {"excludedTypes": ["bar"]}
        with pytest.raises(ValidationError, match="includedTypes"):
            validate_insights_request(request)

    @pytest.mark.parametrize("radius", [0, 50_001])
    def test_radius_out_of_range(self, radius: int) -> None:
        with pytest.raises(ValidationError, match="radius"):
            validate_insights_request(_request(radius=radius))

    def test_unknown_insight_type(self) -> None:
        with pytest.raises(ValidationError, match="Unknown insight"):
            validate_insights_request(_request(insights=["INSIGHT_EVERYTHING"]))

    def test_unknown_analysis_type(self) -> None:
        with pytest.raises(ValidationError, match="analysisType"):
            validate_insights_request(_request(analysisType="VIBES"))
