"""Tests for the Feature / FeatureCollection models and the outcome model."""

from __future__ import annotations

from datetime import UTC, datetime

import pydantic
import pytest

from location_intel.models.geojson import (
    Feature,
    FeatureCollection,
    ModelValidationError,
    compute_bounds,
    has_features,
    is_feature_collection,
    to_finite_float,
    valid_lon_lat,
)
from location_intel.models.outcome import PipelineOutcome, ResponseType
from location_intel.models.records import ToolInvocationRecord


class TestCoordinateHelpers:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1, 1.0), (2.5, 2.5), ("25.76", 25.76), (" -80.1 ", -80.1), (True, None), (None, None), ("x", None)],
    )
    def test_to_finite_float(self, value: object, expected: float | None) -> None:
        assert to_finite_float(value) == expected

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "-inf"])
    def test_non_finite_rejected(self, value: object) -> None:
        assert to_finite_float(value) is None

    def test_valid_lon_lat_range(self) -> None:
        assert valid_lon_lat(-80.19, 25.76) == (-80.19, 25.76)
        assert valid_lon_lat(181, 0) is None
        assert valid_lon_lat(0, -91) is None


class TestFeature:
    def test_point_drops_none_properties(self) -> None:
        feature = Feature.point(-80.19, 25.76, name="Cafe", address=None, source="Test")
        assert feature.properties == {"name": "Cafe", "source": "Test"}
        assert feature.lon_lat == (-80.19, 25.76)

    @pytest.mark.parametrize("coords", [(float("nan"), 1.0), (200.0, 1.0), (1.0,), "1,2"])
    def test_invalid_point_rejected(self, coords: object) -> None:
        with pytest.raises(ModelValidationError):
            Feature(geometry_type="Point", coordinates=coords)

    def test_empty_geometry_type_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="geometry_type"):
            Feature(geometry_type="", coordinates=None)

    def test_non_point_has_no_lon_lat(self) -> None:
        line = Feature(geometry_type="LineString", coordinates=[[0, 0], [1, 1]])
        assert line.lon_lat is None

    def test_dict_round_trip(self) -> None:
        data = {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [-80.19, 25.76]},
            "properties": {"name": "Cafe"},
        }
        assert Feature.from_dict(data).to_dict() == data

    def test_from_dict_requires_geometry(self) -> None:
        with pytest.raises(ModelValidationError, match="geometry"):
            Feature.from_dict({"type": "Feature", "properties": {}})


class TestFeatureCollection:
    def test_build_computes_derived_fields(self) -> None:
        features = [
            Feature.point(-80.0, 25.0, source="A"),
            Feature.point(-81.0, 26.0, source="B"),
            Feature.point(-80.5, 25.5, source="A"),
            Feature(geometry_type="LineString", coordinates=[[0, 0], [1, 1]]),
        ]
        stamp = datetime(2026, 1, 1, tzinfo=UTC)

        collection = FeatureCollection.build(features, generated_at=stamp)

        assert collection.bounds is not None
        assert collection.bounds.to_dict() == {"north": 26.0, "south": 25.0, "east": -80.0, "west": -81.0}
        assert collection.center is not None
        assert collection.center.lat == pytest.approx(25.5)
        assert collection.center.lon == pytest.approx(-80.5)
        assert collection.metadata.total_features == 4
        assert collection.metadata.sources == ("A", "B")
        assert collection.to_dict()["metadata"]["generatedAt"] == "2026-01-01T00:00:00+00:00"

    def test_no_points_no_bounds(self) -> None:
        collection = FeatureCollection.build([])
        assert collection.bounds is None
        assert collection.center is None
        assert collection.is_empty
        assert compute_bounds([]) is None

    def test_shape_predicates(self) -> None:
        empty = {"type": "FeatureCollection", "features": []}
        assert is_feature_collection(empty)
        assert not has_features(empty)
        assert has_features(FeatureCollection.build([Feature.point(1, 2)]).to_dict())
        assert not is_feature_collection({"type": "Feature"})
        assert not is_feature_collection([])


class TestRecordsAndOutcome:
    def test_record_result_payload(self) -> None:
        assert ToolInvocationRecord("search-poi", result={"a": 1}).to_result_payload() == {"a": 1}
        failed = ToolInvocationRecord("search-poi", error="boom")
        assert not failed.succeeded
        assert failed.to_result_payload() == {"error": "boom"}

    def test_outcome_requires_text(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            PipelineOutcome(text="")

    def test_outcome_confidence_bounded(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            PipelineOutcome(text="x", confidence=1.5)

    def test_outcome_is_frozen(self) -> None:
        outcome = PipelineOutcome(text="x")
        with pytest.raises(pydantic.ValidationError):
            outcome.text = "y"

    def test_response_dict(self) -> None:
        outcome = PipelineOutcome(
            response_type=ResponseType.ANALYSIS,
            text="done",
            tools_used=["search-poi"],
            agents_used=["retailAgent"],
            execution_time_ms=12.5,
            intent="retail",
            confidence=0.8,
        )
        data = outcome.to_response_dict()
        assert data["type"] == "analysis"
        assert data["data"] == {"text": "done", "analysis": {}, "mapData": None}
        assert data["metadata"]["toolsUsed"] == ["search-poi"]
        assert data["metadata"]["executionTime"] == 12.5
        assert outcome.has_map is False
