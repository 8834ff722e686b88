"""Tests for pipeline configuration.

Covers:
- Default values
- Loading from environment variables
- Fail-fast range validation
- Missing provider keys fail only at first use
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from location_intel.core.config import ConfigValidationError, PipelineConfig, require_key
from location_intel.core.exceptions import ConfigurationError


class TestPipelineConfigDefaults:
    """Verify default configuration values."""

    def test_insights_defaults(self) -> None:
        cfg = PipelineConfig()
        assert cfg.insights_max_places == 100
        assert cfg.insights_safety_margin == 0.9

    def test_radius_defaults(self) -> None:
        cfg = PipelineConfig()
        assert cfg.search_radius_default_m == 5000
        assert cfg.search_radius_min_m == 50

    def test_http_defaults(self) -> None:
        cfg = PipelineConfig()
        assert cfg.http_max_retries == 3
        assert cfg.http_retry_base_delay_s == 1.0
        assert cfg.http_timeout_s == 30.0

    def test_fallback_search_defaults(self) -> None:
        cfg = PipelineConfig()
        assert cfg.fallback_search_category == "points of interest"
        assert cfg.fallback_search_limit == 20

    def test_keys_default_empty(self) -> None:
        cfg = PipelineConfig()
        assert cfg.tomtom_api_key == ""
        assert cfg.google_api_key == ""


class TestPipelineConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        env = {
            "TOMTOM_API_KEY": "tt",
            "GOOGLE_API_KEY": "gg",
            "INSIGHTS_MAX_PLACES": "50",
            "INSIGHTS_SAFETY_MARGIN": "0.8",
            "SEARCH_RADIUS_DEFAULT_M": "2000",
            "SEARCH_RADIUS_MIN_M": "100",
            "HTTP_MAX_RETRIES": "5",
            "HTTP_RETRY_BASE_DELAY_S": "0.5",
            "HTTP_TIMEOUT_S": "10",
            "FALLBACK_SEARCH_CATEGORY": "restaurants",
            "FALLBACK_SEARCH_LIMIT": "5",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = PipelineConfig.from_env()

        assert cfg.tomtom_api_key == "tt"
        assert cfg.google_api_key == "gg"
        assert cfg.insights_max_places == 50
        assert cfg.insights_safety_margin == 0.8
        assert cfg.search_radius_default_m == 2000
        assert cfg.search_radius_min_m == 100
        assert cfg.http_max_retries == 5
        assert cfg.http_retry_base_delay_s == 0.5
        assert cfg.http_timeout_s == 10.0
        assert cfg.fallback_search_category == "restaurants"
        assert cfg.fallback_search_limit == 5

    def test_missing_keys_do_not_fail_at_load(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = PipelineConfig.from_env()
        assert cfg.tomtom_api_key == ""

    def test_unparsable_number_raises_value_error(self) -> None:
        with patch.dict(os.environ, {"HTTP_MAX_RETRIES": "abc"}, clear=False), pytest.raises(ValueError):
            PipelineConfig.from_env()


class TestConfigValidation:
    """Fail-fast range validation."""

    @pytest.mark.parametrize(
        ("env_key", "value"),
        [
            ("INSIGHTS_MAX_PLACES", "0"),
            ("INSIGHTS_SAFETY_MARGIN", "1.0"),
            ("INSIGHTS_SAFETY_MARGIN", "0"),
            ("SEARCH_RADIUS_MIN_M", "0"),
            ("SEARCH_RADIUS_DEFAULT_M", "10"),
            ("HTTP_MAX_RETRIES", "-1"),
            ("HTTP_RETRY_BASE_DELAY_S", "-0.5"),
            ("HTTP_TIMEOUT_S", "0"),
            ("FALLBACK_SEARCH_CATEGORY", "   "),
            ("FALLBACK_SEARCH_LIMIT", "0"),
        ],
    )
    def test_out_of_range_rejected(self, env_key: str, value: str) -> None:
        with patch.dict(os.environ, {env_key: value}, clear=False), pytest.raises(ConfigValidationError) as excinfo:
            PipelineConfig.from_env()
        assert excinfo.value.key == env_key

    def test_zero_retries_allowed(self) -> None:
        with patch.dict(os.environ, {"HTTP_MAX_RETRIES": "0"}, clear=False):
            assert PipelineConfig.from_env().http_max_retries == 0


class TestRequireKey:
    def test_returns_value(self) -> None:
        assert require_key("abc", "TOMTOM_API_KEY") == "abc"

    def test_empty_raises_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            require_key("", "GOOGLE_API_KEY")
        assert excinfo.value.setting == "GOOGLE_API_KEY"
