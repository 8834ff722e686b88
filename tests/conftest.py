"""Shared pytest fixtures for the location-intel test suite."""

from __future__ import annotations

from typing import Any

import pytest

from location_intel.core.config import PipelineConfig
from tests.fakes import SleepRecorder

# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> PipelineConfig:
    """Config with every provider key set."""
    return PipelineConfig(
        tomtom_api_key="tt-key",
        google_api_key="g-key",
        predicthq_api_key="phq-key",
        openweather_api_key="ow-key",
        besttime_api_key="bt-key",
    )


@pytest.fixture()
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


# ---------------------------------------------------------------------------
# Provider payload fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tomtom_payload() -> dict[str, Any]:
    """Two TomTom search results around Brickell, Miami."""
    return {
        "summary": {"numResults": 2},
        "results": [
            {
                "position": {"lat": 25.7617, "lon": -80.1918},
                "poi": {"name": "Brickell City Centre", "categories": ["shopping center"]},
                "address": {"freeformAddress": "701 S Miami Ave, Miami, FL"},
            },
            {
                "position": {"lat": 25.7650, "lon": -80.1936},
                "poi": {"name": "Mary Brickell Village", "categories": ["market"]},
                "address": {"freeformAddress": "901 S Miami Ave, Miami, FL"},
            },
        ],
    }


@pytest.fixture()
def google_details_payload() -> dict[str, Any]:
    return {
        "result": {
            "id": "ChIJabc",
            "displayName": {"text": "Cafe Bastille"},
            "formattedAddress": "248 SE 1st St, Miami, FL",
            "location": {"latitude": 25.7726, "longitude": -80.1899},
            "rating": 4.5,
            "priceLevel": "PRICE_LEVEL_MODERATE",
        }
    }


@pytest.fixture()
def feature_collection() -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [-80.19, 25.76]},
                "properties": {"name": "Somewhere", "source": "Upstream"},
            }
        ],
    }
