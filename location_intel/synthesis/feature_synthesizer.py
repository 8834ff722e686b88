"""Reconcile heterogeneous provider payloads into one FeatureCollection.

Each provider shape has one adapter function, registered under its
canonical tool id, that turns the raw payload into point features. Input
keys may use any alias spelling (``tomtomFuzzySearchTool``,
``functions.search-poi`` ...); they resolve through the tool alias table.

Rules shared by every adapter:
- A record becomes a feature only if its coordinates convert to finite
  WGS 84 floats. ``(0, 0)`` is kept only when the provider reported it.
- A payload carrying an ``error`` key contributes nothing.
- Insights payloads list place ids only and never produce features. A
  place-details feature whose id appears in an insights listing is
  flagged ``insight_match``.

Output is deterministic except ``metadata.generatedAt``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from location_intel.core import constants as c
from location_intel.models.geojson import Feature, FeatureCollection, valid_lon_lat
from location_intel.tools.aliases import normalize_tool_id

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

logger = logging.getLogger("location_intel.synthesis.feature_synthesizer")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _get(mapping: object, *path: str) -> Any:
    """Walk *path* through nested dicts; ``None`` on any miss."""
    current = mapping
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _first(values: object) -> Any:
    if isinstance(values, list) and values:
        return values[0]
    return None


def _results(payload: object) -> list[dict[str, Any]]:
    results = _get(payload, "results")
    if not isinstance(results, list):
        return []
    return [r for r in results if isinstance(r, dict)]


def _tomtom_feature(record: dict[str, Any], source: str) -> Feature | None:
    point = valid_lon_lat(_get(record, "position", "lon"), _get(record, "position", "lat"))
    if point is None:
        return None
    address = _get(record, "address", "freeformAddress")
    return Feature.point(
        *point,
        name=_get(record, "poi", "name") or address,
        address=address,
        category=_first(_get(record, "poi", "categories")),
        source=source,
    )


# ---------------------------------------------------------------------------
# Built-in adapters
# ---------------------------------------------------------------------------


def tomtom_fuzzy_features(payload: Any) -> list[Feature]:
    features = (_tomtom_feature(r, c.SOURCE_TOMTOM_FUZZY) for r in _results(payload))
    return [f for f in features if f is not None]


def tomtom_poi_features(payload: Any) -> list[Feature]:
    features = (_tomtom_feature(r, c.SOURCE_TOMTOM_POI) for r in _results(payload))
    return [f for f in features if f is not None]


def tomtom_place_features(payload: Any) -> list[Feature]:
    if isinstance(payload, dict) and isinstance(payload.get("position"), dict):
        record: Any = payload
    else:
        record = _first(_results(payload))
    if not isinstance(record, dict):
        return []
    feature = _tomtom_feature(record, c.SOURCE_TOMTOM_PLACE)
    return [feature] if feature is not None else []


def _google_place_feature(place: dict[str, Any]) -> Feature | None:
    location = place.get("location")
    point = valid_lon_lat(_get(location, "longitude"), _get(location, "latitude"))
    if point is None:
        return None
    name = _get(place, "displayName", "text")
    if name is None and isinstance(place.get("displayName"), str):
        name = place["displayName"]
    return Feature.point(
        *point,
        name=name,
        address=place.get("formattedAddress"),
        rating=place.get("rating"),
        priceLevel=place.get("priceLevel"),
        place_id=place.get("id") or _bare_place_id(place.get("name")),
        source=c.SOURCE_GOOGLE_PLACE,
    )


def google_place_features(payload: Any) -> list[Feature]:
    """Place details: ``{result: place}``, a bare place, or a list of either."""
    items = payload if isinstance(payload, list) else [payload]
    features: list[Feature] = []
    for item in items:
        if not isinstance(item, dict) or "error" in item:
            continue
        place = item.get("result") if isinstance(item.get("result"), dict) else item
        feature = _google_place_feature(place)
        if feature is not None:
            features.append(feature)
    return features


def google_insights_features(payload: Any) -> list[Feature]:
    """Insights listings carry ids only: never any features."""
    return []


def _event_lon_lat(event: dict[str, Any]) -> tuple[float, float] | None:
    location = event.get("location")
    if isinstance(location, dict):
        location = location.get("coordinates")
    if not isinstance(location, list) or len(location) < 2:
        location = _get(event, "geo", "geometry", "coordinates")
    if not isinstance(location, list) or len(location) < 2:
        return None
    return valid_lon_lat(location[0], location[1])


def event_features(payload: Any) -> list[Feature]:
    features: list[Feature] = []
    for event in _results(payload):
        point = _event_lon_lat(event)
        if point is None:
            continue
        features.append(
            Feature.point(
                *point,
                title=event.get("title"),
                name=event.get("title"),
                category=event.get("category"),
                start=event.get("start"),
                end=event.get("end"),
                source=c.SOURCE_PREDICTHQ,
            )
        )
    return features


def ip_location_features(payload: Any) -> list[Feature]:
    if not isinstance(payload, dict):
        return []
    point = valid_lon_lat(payload.get("longitude"), payload.get("latitude"))
    if point is None:
        return []
    return [Feature.point(*point, city=payload.get("city"), name=payload.get("city"), source=c.SOURCE_IP_LOCATION)]


# ---------------------------------------------------------------------------
# Adapter registry
# ---------------------------------------------------------------------------

_ADAPTERS: dict[str, Callable[[Any], list[Feature]]] = {
    c.TOMTOM_FUZZY_SEARCH: tomtom_fuzzy_features,
    c.SEARCH_POI: tomtom_poi_features,
    c.GET_PLACE_BY_ID: tomtom_place_features,
    c.GET_GOOGLE_PLACE_DETAILS: google_place_features,
    c.GET_GOOGLE_PLACES_INSIGHTS: google_insights_features,
    c.SEARCH_EVENTS: event_features,
    c.GET_IP_LOCATION: ip_location_features,
}


def register_adapter(provider_id: str, adapter: Callable[[Any], list[Feature]]) -> None:
    """Register (or replace) the adapter for *provider_id* (any alias spelling).

    Raises:
        ValueError: If the provider id is empty.
    """
    if not provider_id or not provider_id.strip():
        msg = "Provider id must be non-empty"
        raise ValueError(msg)
    canonical = normalize_tool_id(provider_id)
    _ADAPTERS[canonical] = adapter
    logger.debug("Registered feature adapter: %s", canonical)


def registered_providers() -> list[str]:
    return sorted(_ADAPTERS)


# ---------------------------------------------------------------------------
# Insights / details companion matching
# ---------------------------------------------------------------------------


def _bare_place_id(value: object) -> str | None:
    if not isinstance(value, str) or not value:
        return None
    return value.removeprefix("places/")


def _insight_place_ids(payload: object) -> set[str]:
    ids: set[str] = set()
    listed = _get(payload, "places")
    if isinstance(listed, list):
        ids.update(i for i in (_bare_place_id(p) for p in listed) if i)
    entries = _get(payload, "placeInsights")
    if isinstance(entries, list):
        ids.update(i for i in (_bare_place_id(_get(e, "place")) for e in entries) if i)
    return ids


def _flag_insight_matches(features: list[Feature], insight_ids: set[str]) -> list[Feature]:
    if not insight_ids:
        return features
    flagged: list[Feature] = []
    for feature in features:
        place_id = _bare_place_id(feature.properties.get("place_id"))
        if feature.source == c.SOURCE_GOOGLE_PLACE and place_id in insight_ids:
            feature = replace(feature, properties={**feature.properties, "insight_match": True})
        flagged.append(feature)
    return flagged


# ---------------------------------------------------------------------------
# Synthesizer
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Synthesis:
    """A synthesized collection and the tool ids whose payloads produced features."""

    collection: FeatureCollection
    contributing_tools: tuple[str, ...]


class FeatureSynthesizer:
    """Turn a ``{tool id: raw payload}`` mapping into a FeatureCollection."""

    def synthesize(self, raw: Mapping[str, Any]) -> Synthesis:
        """Run every registered adapter over its payload.

        The first payload per canonical id (in input order) is used; later
        alias spellings of the same provider are ignored.
        """
        payloads: dict[str, Any] = {}
        for key, payload in raw.items():
            if not isinstance(key, str):
                continue
            canonical = normalize_tool_id(key)
            if canonical in payloads or payload is None:
                continue
            if isinstance(payload, dict) and "error" in payload:
                logger.debug("Skipping failed tool payload | tool=%s", canonical)
                continue
            payloads[canonical] = payload

        features: list[Feature] = []
        contributing: list[str] = []
        for canonical, payload in payloads.items():
            adapter = _ADAPTERS.get(canonical)
            if adapter is None:
                continue
            produced = adapter(payload)
            if produced:
                features.extend(produced)
                contributing.append(canonical)

        insights = payloads.get(c.GET_GOOGLE_PLACES_INSIGHTS)
        if insights is not None:
            features = _flag_insight_matches(features, _insight_place_ids(insights))

        collection = FeatureCollection.build(features)
        logger.info(
            "Synthesized features | features=%d | providers=%s",
            len(features),
            ",".join(contributing) or "-",
        )
        return Synthesis(collection=collection, contributing_tools=tuple(contributing))

    def format_map_data(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        """Synthesize and return the GeoJSON wire dict."""
        return self.synthesize(raw).collection.to_dict()
