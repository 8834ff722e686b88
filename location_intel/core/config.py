"""Pipeline configuration loaded from environment variables.

All configuration values have sensible defaults. Provider API keys
default to empty: their absence is not an error at load time, only at
the first call that needs them (``require_key`` raises
``ConfigurationError``).

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from location_intel.core.exceptions import ConfigurationError, PipelineError


class ConfigValidationError(PipelineError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        self.message = message
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Immutable pipeline configuration.

    Loaded once at startup and passed to the provider adapters, the
    insights planner, and the map pipeline.

    Attributes:
        tomtom_api_key: TomTom Search API key.
        google_api_key: Google Places / Places Insights API key.
        predicthq_api_key: PredictHQ events API token.
        openweather_api_key: OpenWeather API key.
        besttime_api_key: BestTime foot-traffic API private key.
        insights_max_places: Hard cap on an insights place listing.
        insights_safety_margin: Multiplier (<1) applied to the radius scale.
        search_radius_default_m: Default search radius in metres.
        search_radius_min_m: Floor for any reduced radius in metres.
        http_max_retries: Retries on HTTP 429 / network failure.
        http_retry_base_delay_s: Exponential backoff base in seconds.
        http_timeout_s: Per-request timeout in seconds.
        fallback_search_category: Keyword for the deterministic seed search.
        fallback_search_limit: Result limit for the deterministic seed search.
    """

    tomtom_api_key: str = ""
    google_api_key: str = ""
    predicthq_api_key: str = ""
    openweather_api_key: str = ""
    besttime_api_key: str = ""
    insights_max_places: int = 100
    insights_safety_margin: float = 0.9
    search_radius_default_m: int = 5000
    search_radius_min_m: int = 50
    http_max_retries: int = 3
    http_retry_base_delay_s: float = 1.0
    http_timeout_s: float = 30.0
    fallback_search_category: str = "points of interest"
    fallback_search_limit: int = 20

    @classmethod
    def from_env(cls) -> PipelineConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range
                or a required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``HTTP_MAX_RETRIES=abc``).
        """
        config = cls(
            tomtom_api_key=os.getenv("TOMTOM_API_KEY", ""),
            google_api_key=os.getenv("GOOGLE_API_KEY", ""),
            predicthq_api_key=os.getenv("PREDICTHQ_API_KEY", ""),
            openweather_api_key=os.getenv("OPENWEATHER_API_KEY", ""),
            besttime_api_key=os.getenv("BESTTIME_API_KEY", ""),
            insights_max_places=int(os.getenv("INSIGHTS_MAX_PLACES", "100")),
            insights_safety_margin=float(os.getenv("INSIGHTS_SAFETY_MARGIN", "0.9")),
            search_radius_default_m=int(os.getenv("SEARCH_RADIUS_DEFAULT_M", "5000")),
            search_radius_min_m=int(os.getenv("SEARCH_RADIUS_MIN_M", "50")),
            http_max_retries=int(os.getenv("HTTP_MAX_RETRIES", "3")),
            http_retry_base_delay_s=float(os.getenv("HTTP_RETRY_BASE_DELAY_S", "1.0")),
            http_timeout_s=float(os.getenv("HTTP_TIMEOUT_S", "30")),
            fallback_search_category=os.getenv("FALLBACK_SEARCH_CATEGORY", "points of interest"),
            fallback_search_limit=int(os.getenv("FALLBACK_SEARCH_LIMIT", "20")),
        )
        _validate(config)
        return config


def require_key(value: str, setting: str) -> str:
    """Return *value*, or raise ``ConfigurationError`` naming *setting* if empty."""
    if not value:
        raise ConfigurationError(setting)
    return value


def _validate(config: PipelineConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.insights_max_places < 1:
        raise ConfigValidationError(
            "INSIGHTS_MAX_PLACES",
            config.insights_max_places,
            "must be >= 1",
        )

    if not 0.0 < config.insights_safety_margin < 1.0:
        raise ConfigValidationError(
            "INSIGHTS_SAFETY_MARGIN",
            config.insights_safety_margin,
            "must be strictly between 0 and 1",
        )

    if config.search_radius_min_m < 1:
        raise ConfigValidationError(
            "SEARCH_RADIUS_MIN_M",
            config.search_radius_min_m,
            "must be >= 1 (metres)",
        )

    if config.search_radius_default_m < config.search_radius_min_m:
        raise ConfigValidationError(
            "SEARCH_RADIUS_DEFAULT_M",
            config.search_radius_default_m,
            f"must be >= SEARCH_RADIUS_MIN_M ({config.search_radius_min_m})",
        )

    if config.http_max_retries < 0:
        raise ConfigValidationError(
            "HTTP_MAX_RETRIES",
            config.http_max_retries,
            "must be >= 0",
        )

    if config.http_retry_base_delay_s < 0:
        raise ConfigValidationError(
            "HTTP_RETRY_BASE_DELAY_S",
            config.http_retry_base_delay_s,
            "must be >= 0 (seconds)",
        )

    if config.http_timeout_s <= 0:
        raise ConfigValidationError(
            "HTTP_TIMEOUT_S",
            config.http_timeout_s,
            "must be > 0 (seconds)",
        )

    if not config.fallback_search_category.strip():
        raise ConfigValidationError(
            "FALLBACK_SEARCH_CATEGORY",
            config.fallback_search_category,
            "must not be empty",
        )

    if config.fallback_search_limit < 1:
        raise ConfigValidationError(
            "FALLBACK_SEARCH_LIMIT",
            config.fallback_search_limit,
            "must be >= 1",
        )
