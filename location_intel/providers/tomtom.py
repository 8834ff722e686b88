"""TomTom Search API adapter.

Covers fuzzy search, POI search, place-by-id lookup, and geocoding.
All four return the provider's raw JSON; search payloads carry a
``results`` array whose entries have ``position{lat, lon}``,
``poi{name, categories}``, and ``address{freeformAddress}``.

References:
    https://developer.tomtom.com/search-api/documentation/search-service/fuzzy-search
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from location_intel.models.geojson import valid_lon_lat
from location_intel.providers.base import GeoDataProvider

logger = logging.getLogger("location_intel.providers.tomtom")

_BASE_URL = "https://api.tomtom.com/search/2"
_DEFAULT_LIMIT = 10
_MAX_LIMIT = 100


class TomTomSearchAdapter(GeoDataProvider):
    """TomTom Search API (fuzzy, POI, place-by-id, geocode)."""

    name = "tomtom"
    key_setting = "TOMTOM_API_KEY"

    async def fuzzy_search(
        self,
        query: str,
        *,
        lat: float | None = None,
        lon: float | None = None,
        radius: int | None = None,
        limit: int = _DEFAULT_LIMIT,
        country_set: str | None = None,
        category_set: str | None = None,
    ) -> dict[str, Any]:
        """Free-form search biased to an optional ``lat``/``lon`` circle."""
        params = self._search_params(lat, lon, radius, limit, country_set, category_set)
        payload = await self._get_json(f"{_BASE_URL}/search/{quote(query, safe='')}.json", params=params)
        logger.info(
            "TomTom fuzzy search | query=%s | results=%d",
            query,
            len(payload.get("results") or []) if isinstance(payload, dict) else 0,
        )
        return payload

    async def poi_search(
        self,
        query: str,
        *,
        lat: float | None = None,
        lon: float | None = None,
        radius: int | None = None,
        limit: int = _DEFAULT_LIMIT,
        country_set: str | None = None,
        category_set: str | None = None,
    ) -> dict[str, Any]:
        """Points-of-interest search."""
        params = self._search_params(lat, lon, radius, limit, country_set, category_set)
        return await self._get_json(f"{_BASE_URL}/poiSearch/{quote(query, safe='')}.json", params=params)

    async def place_by_id(self, entity_id: str) -> dict[str, Any]:
        """Look up one place by its TomTom entity id."""
        params = {"key": self.api_key, "entityId": entity_id}
        return await self._get_json(f"{_BASE_URL}/place.json", params=params)

    async def geocode(self, query: str, *, limit: int = 1) -> dict[str, Any]:
        """Geocode an address or place name."""
        params = {"key": self.api_key, "limit": _clamp_limit(limit)}
        return await self._get_json(f"{_BASE_URL}/geocode/{quote(query, safe='')}.json", params=params)

    def _search_params(
        self,
        lat: float | None,
        lon: float | None,
        radius: int | None,
        limit: int,
        country_set: str | None,
        category_set: str | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"key": self.api_key, "limit": _clamp_limit(limit)}
        if lat is not None and lon is not None:
            params["lat"] = lat
            params["lon"] = lon
            if radius is not None:
                params["radius"] = int(radius)
        if country_set:
            params["countrySet"] = country_set
        if category_set:
            params["categorySet"] = category_set
        return params


def _clamp_limit(limit: int) -> int:
    return max(1, min(int(limit), _MAX_LIMIT))


def first_position(payload: object) -> tuple[float, float] | None:
    """Return ``(lat, lon)`` of the first geocoded result, or ``None``."""
    if not isinstance(payload, dict):
        return None
    results = payload.get("results")
    if not isinstance(results, list) or not results:
        return None
    position = results[0].get("position") if isinstance(results[0], dict) else None
    if not isinstance(position, dict):
        return None
    lon_lat = valid_lon_lat(position.get("lon"), position.get("lat"))
    if lon_lat is None:
        return None
    return (lon_lat[1], lon_lat[0])
