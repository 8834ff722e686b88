"""Google Places adapters: Place Details (New) and Places Insights.

``place_details`` returns ``{"result": <place>}`` so downstream code can
treat it like the other single-result providers. ``compute_insights``
posts one ``computeInsights`` request and returns the raw response
(``count`` and/or ``placeInsights[].place``). Place ids only: insights
responses never carry coordinates.

References:
    https://developers.google.com/maps/documentation/places/web-service/place-details
    https://developers.google.com/maps/documentation/places-insights
"""

from __future__ import annotations

from typing import Any

from location_intel.providers.base import GeoDataProvider

_DETAILS_URL = "https://places.googleapis.com/v1/places/{place_id}"
_INSIGHTS_URL = "https://areainsights.googleapis.com/v1:computeInsights"

_DETAILS_FIELD_MASK = "id,displayName,formattedAddress,location,rating,priceLevel,types"


class GooglePlacesAdapter(GeoDataProvider):
    """Google Places Details + Places Insights."""

    name = "google_places"
    key_setting = "GOOGLE_API_KEY"

    async def place_details(self, place_id: str) -> dict[str, Any]:
        """Fetch details for *place_id* (``places/<id>`` or bare ``<id>``)."""
        bare_id = place_id.removeprefix("places/")
        headers = {
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": _DETAILS_FIELD_MASK,
        }
        place = await self._get_json(_DETAILS_URL.format(place_id=bare_id), headers=headers)
        return {"result": place}

    async def compute_insights(self, insights: list[str], filter_: dict[str, Any]) -> dict[str, Any]:
        """Issue one ``computeInsights`` request."""
        headers = {"Content-Type": "application/json", "X-Goog-Api-Key": self.api_key}
        body = {"insights": list(insights), "filter": filter_}
        payload = await self._post_json(_INSIGHTS_URL, json=body, headers=headers)
        return payload if isinstance(payload, dict) else {}
