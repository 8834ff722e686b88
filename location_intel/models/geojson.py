"""GeoJSON-style feature models.

A ``Feature`` is one geometry (type tag + coordinate payload) plus a
property mapping; a ``FeatureCollection`` is an ordered sequence of
features with a computed ``bounds``, ``center``, and metadata block.

Design notes:
- All models are frozen dataclasses.
- Point coordinates are ``(lon, lat)`` in WGS 84, GeoJSON order.
- ``bounds`` and ``center`` are ``None`` unless at least one point
  feature exists. There is never a placeholder origin.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from location_intel.core.exceptions import PipelineError

POINT = "Point"
FEATURE_COLLECTION = "FeatureCollection"


class ModelValidationError(ValueError, PipelineError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        PipelineError.__init__(self, formatted)


# ---------------------------------------------------------------------------
# Coordinate helpers
# ---------------------------------------------------------------------------


def to_finite_float(value: object) -> float | None:
    """Convert *value* to a finite float, or ``None`` if that is impossible.

    Booleans are rejected even though they are ``int`` subclasses.
    Numeric strings (``"25.76"``) are accepted because several providers
    serialise coordinates that way.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def valid_lon_lat(lon: object, lat: object) -> tuple[float, float] | None:
    """Return ``(lon, lat)`` as finite WGS 84 floats, or ``None``."""
    lon_f = to_finite_float(lon)
    lat_f = to_finite_float(lat)
    if lon_f is None or lat_f is None:
        return None
    if not -180.0 <= lon_f <= 180.0 or not -90.0 <= lat_f <= 90.0:
        return None
    return (lon_f, lat_f)


# ---------------------------------------------------------------------------
# Feature
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Feature:
    """A single geometric feature with properties.

    Attributes:
        geometry_type: GeoJSON geometry type tag (e.g. ``"Point"``).
        coordinates: Coordinate payload. For points, ``(lon, lat)``.
        properties: Display and provenance fields (``name``, ``address``,
            ``category``, ``confidence``, ``source`` ...).
    """

    geometry_type: str
    coordinates: Any
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.geometry_type:
            raise ModelValidationError("Feature", "geometry_type", self.geometry_type, "must not be empty")
        if self.geometry_type == POINT:
            coords = self.coordinates
            if not isinstance(coords, list | tuple) or len(coords) < 2:
                raise ModelValidationError(
                    "Feature", "coordinates", coords, "point must have [lon, lat]"
                )
            if valid_lon_lat(coords[0], coords[1]) is None:
                raise ModelValidationError(
                    "Feature", "coordinates", coords, "point coordinates must be finite WGS 84"
                )

    @classmethod
    def point(cls, lon: float, lat: float, **properties: Any) -> Feature:
        """Build a point feature, dropping ``None``-valued properties."""
        props = {k: v for k, v in properties.items() if v is not None}
        return cls(geometry_type=POINT, coordinates=(float(lon), float(lat)), properties=props)

    @property
    def source(self) -> str:
        """Provenance tag, or ``""`` when none was recorded."""
        value = self.properties.get("source")
        return str(value) if value else ""

    @property
    def lon_lat(self) -> tuple[float, float] | None:
        """``(lon, lat)`` for point features, otherwise ``None``."""
        if self.geometry_type != POINT:
            return None
        return valid_lon_lat(self.coordinates[0], self.coordinates[1])

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a GeoJSON ``Feature`` dict."""
        coords = list(self.coordinates) if isinstance(self.coordinates, tuple) else self.coordinates
        return {
            "type": "Feature",
            "geometry": {"type": self.geometry_type, "coordinates": coords},
            "properties": dict(self.properties),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Feature:
        """Deserialise from a GeoJSON ``Feature`` dict.

        Raises:
            ModelValidationError: If the geometry block is missing or invalid.
        """
        geometry = data.get("geometry")
        if not isinstance(geometry, dict):
            raise ModelValidationError("Feature", "geometry", geometry, "must be a mapping")
        properties = data.get("properties") or {}
        if not isinstance(properties, dict):
            raise ModelValidationError("Feature", "properties", properties, "must be a mapping")
        coords = geometry.get("coordinates")
        if isinstance(coords, list) and geometry.get("type") == POINT:
            coords = tuple(coords)
        return cls(
            geometry_type=str(geometry.get("type") or ""),
            coordinates=coords,
            properties=dict(properties),
        )


# ---------------------------------------------------------------------------
# Bounds / center
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Bounds:
    """Coordinate-wise extrema over point features (degrees)."""

    north: float
    south: float
    east: float
    west: float

    def to_dict(self) -> dict[str, float]:
        return {"north": self.north, "south": self.south, "east": self.east, "west": self.west}


@dataclass(frozen=True, slots=True)
class Center:
    """Arithmetic mean position over point features (degrees)."""

    lat: float
    lon: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


def _points(features: list[Feature]) -> list[tuple[float, float]]:
    return [p for p in (f.lon_lat for f in features) if p is not None]


def compute_bounds(features: list[Feature]) -> Bounds | None:
    """Return the bounding extrema of all point features, or ``None``."""
    points = _points(features)
    if not points:
        return None

    from shapely.geometry import MultiPoint

    west, south, east, north = MultiPoint(points).bounds
    return Bounds(north=north, south=south, east=east, west=west)


def compute_center(features: list[Feature]) -> Center | None:
    """Return the mean position of all point features, or ``None``.

    The centroid of a multipoint is the arithmetic mean of its members.
    """
    points = _points(features)
    if not points:
        return None

    from shapely.geometry import MultiPoint

    centroid = MultiPoint(points).centroid
    return Center(lat=centroid.y, lon=centroid.x)


# ---------------------------------------------------------------------------
# FeatureCollection
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CollectionMetadata:
    """Summary block attached to a ``FeatureCollection``.

    Attributes:
        total_features: Number of features in the collection.
        sources: Distinct ``source`` tags in first-seen order.
        generated_at: ISO 8601 UTC generation timestamp.
    """

    total_features: int
    sources: tuple[str, ...]
    generated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalFeatures": self.total_features,
            "sources": list(self.sources),
            "generatedAt": self.generated_at,
        }


@dataclass(frozen=True, slots=True)
class FeatureCollection:
    """An ordered sequence of features plus derived bounds/center/metadata.

    Build instances with :meth:`build` so the derived fields stay
    consistent with the features.
    """

    features: list[Feature]
    bounds: Bounds | None
    center: Center | None
    metadata: CollectionMetadata

    @classmethod
    def build(
        cls,
        features: list[Feature],
        *,
        generated_at: datetime | None = None,
    ) -> FeatureCollection:
        """Assemble a collection and compute its bounds, center, and metadata."""
        ordered = list(features)
        sources: list[str] = []
        for feature in ordered:
            tag = feature.source
            if tag and tag not in sources:
                sources.append(tag)
        timestamp = (generated_at or datetime.now(UTC)).isoformat()
        return cls(
            features=ordered,
            bounds=compute_bounds(ordered),
            center=compute_center(ordered),
            metadata=CollectionMetadata(
                total_features=len(ordered),
                sources=tuple(sources),
                generated_at=timestamp,
            ),
        )

    @property
    def is_empty(self) -> bool:
        return not self.features

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the GeoJSON-style wire shape."""
        return {
            "type": FEATURE_COLLECTION,
            "features": [f.to_dict() for f in self.features],
            "bounds": self.bounds.to_dict() if self.bounds else None,
            "center": self.center.to_dict() if self.center else None,
            "metadata": self.metadata.to_dict(),
        }


def is_feature_collection(value: object) -> bool:
    """Return ``True`` if *value* is ``{type: "FeatureCollection", features: list}``."""
    return (
        isinstance(value, dict)
        and value.get("type") == FEATURE_COLLECTION
        and isinstance(value.get("features"), list)
    )


def has_features(value: object) -> bool:
    """Return ``True`` if *value* is a FeatureCollection with at least one feature."""
    return is_feature_collection(value) and len(value["features"]) > 0  # type: ignore[index]
