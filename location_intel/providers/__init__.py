"""Geodata provider adapters.

- RetryingHttpClient: bounded exponential backoff on 429 / network errors
- GeoDataProvider: base class owning credential lookup and JSON decoding
- TomTomSearchAdapter, GooglePlacesAdapter: place search and details
- PredictHQ, ipapi, OpenWeather, BestTime: contextual data

Adapters return raw provider JSON; reconciliation into features happens
in ``location_intel.synthesis``.
"""

from location_intel.providers.base import (
    GeoDataProvider,
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    ProviderRateLimitedError,
    raise_for_provider_status,
)
from location_intel.providers.factory import ProviderSet, build_providers
from location_intel.providers.http import RetryingHttpClient, backoff_delays

__all__ = [
    "GeoDataProvider",
    "ProviderAuthError",
    "ProviderError",
    "ProviderNetworkError",
    "ProviderRateLimitedError",
    "ProviderSet",
    "RetryingHttpClient",
    "backoff_delays",
    "build_providers",
    "raise_for_provider_status",
]
