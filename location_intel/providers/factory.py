"""Provider factory: builds the adapter set for one pipeline instance.

Adapters share a single ``RetryingHttpClient`` so that connection
pooling and retry policy are configured once. Keys come from
``PipelineConfig``; a missing key only fails when that adapter is first
called.

Usage::

    from location_intel.providers.factory import build_providers

    async with RetryingHttpClient.from_config(config) as http:
        providers = build_providers(config, http)
        payload = await providers.tomtom.fuzzy_search("cafes")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from location_intel.providers.context import (
    BestTimeFootTrafficAdapter,
    IpLocationAdapter,
    OpenWeatherAdapter,
    PredictHQEventsAdapter,
)
from location_intel.providers.google_places import GooglePlacesAdapter
from location_intel.providers.tomtom import TomTomSearchAdapter

if TYPE_CHECKING:
    from location_intel.core.config import PipelineConfig
    from location_intel.providers.http import RetryingHttpClient

logger = logging.getLogger("location_intel.providers.factory")


@dataclass(frozen=True, slots=True)
class ProviderSet:
    """The adapters available to the tool registry and map pipeline."""

    tomtom: TomTomSearchAdapter
    google: GooglePlacesAdapter
    events: PredictHQEventsAdapter
    ip_location: IpLocationAdapter
    weather: OpenWeatherAdapter
    foot_traffic: BestTimeFootTrafficAdapter


def build_providers(config: PipelineConfig, http: RetryingHttpClient) -> ProviderSet:
    """Create every provider adapter over the shared *http* client."""
    providers = ProviderSet(
        tomtom=TomTomSearchAdapter(http, config.tomtom_api_key),
        google=GooglePlacesAdapter(http, config.google_api_key),
        events=PredictHQEventsAdapter(http, config.predicthq_api_key),
        ip_location=IpLocationAdapter(http, ""),
        weather=OpenWeatherAdapter(http, config.openweather_api_key),
        foot_traffic=BestTimeFootTrafficAdapter(http, config.besttime_api_key),
    )
    missing = [
        adapter.key_setting
        for adapter in (providers.tomtom, providers.google, providers.events, providers.weather, providers.foot_traffic)
        if not adapter._api_key
    ]
    if missing:
        logger.info("Provider keys not configured | missing=%s", ",".join(missing))
    return providers
