"""Contextual data adapters: events, IP geolocation, weather, foot traffic.

These providers feed the domain agents' narrative. Events and IP
geolocation also carry coordinates the feature synthesizer can map.
"""

from __future__ import annotations

import logging
from typing import Any

from location_intel.providers.base import GeoDataProvider

logger = logging.getLogger("location_intel.providers.context")

_PREDICTHQ_URL = "https://api.predicthq.com/v1/events/"
_IPAPI_URL = "https://ipapi.co/{ip}/json/"
_OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
_BESTTIME_URL = "https://besttime.app/api/v1/forecasts"


class PredictHQEventsAdapter(GeoDataProvider):
    """PredictHQ events-by-location search.

    Each event in ``results`` carries ``location`` as ``[lon, lat]``.
    """

    name = "predicthq"
    key_setting = "PREDICTHQ_API_KEY"

    async def search_events(
        self,
        *,
        lat: float,
        lon: float,
        radius_km: float = 5.0,
        query: str | None = None,
        category: str | None = None,
        limit: int = 20,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "within": f"{radius_km:g}km@{lat},{lon}",
            "limit": max(1, int(limit)),
        }
        if query:
            params["q"] = query
        if category:
            params["category"] = category
        headers = {"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"}
        return await self._get_json(_PREDICTHQ_URL, params=params, headers=headers)


class IpLocationAdapter(GeoDataProvider):
    """ipapi.co IP geolocation. The key is optional (free tier)."""

    name = "ipapi"
    key_setting = "IPAPI_API_KEY"

    async def ip_location(self, ip: str = "") -> dict[str, Any]:
        url = _IPAPI_URL.format(ip=ip) if ip else "https://ipapi.co/json/"
        params = {"key": self._api_key} if self._api_key else None
        return await self._get_json(url, params=params)


class OpenWeatherAdapter(GeoDataProvider):
    """OpenWeather current conditions."""

    name = "openweather"
    key_setting = "OPENWEATHER_API_KEY"

    async def current_weather(self, *, lat: float, lon: float, units: str = "metric") -> dict[str, Any]:
        params = {"lat": lat, "lon": lon, "appid": self.api_key, "units": units}
        return await self._get_json(_OPENWEATHER_URL, params=params)


class BestTimeFootTrafficAdapter(GeoDataProvider):
    """BestTime weekly foot-traffic forecast summary."""

    name = "besttime"
    key_setting = "BESTTIME_API_KEY"

    async def foot_traffic_summary(self, *, venue_name: str, venue_address: str) -> dict[str, Any]:
        params = {
            "api_key_private": self.api_key,
            "venue_name": venue_name,
            "venue_address": venue_address,
        }
        data = await self._post_json(_BESTTIME_URL, params=params)
        if not isinstance(data, dict):
            data = {}
        analysis = data.get("analysis")
        if not isinstance(analysis, list):
            logger.info("BestTime returned no weekly analysis | venue=%s", venue_name)
            return {"venue": data.get("venue_info", {}), "days": []}
        days = [
            {
                "day": (day.get("day_info") or {}).get("day_text"),
                "peak_hours": day.get("peak_hours", []),
                "busy_hours": day.get("busy_hours", []),
                "quiet_hours": day.get("quiet_hours", []),
            }
            for day in analysis
            if isinstance(day, dict)
        ]
        return {"venue": data.get("venue_info", {}), "days": days}
