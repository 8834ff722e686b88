"""Tests for the unified exception taxonomy.

Validates:
- PipelineError hierarchy and structured attributes
- Category classification (validation, transient, permanent, contract)
- ``to_error_dict()`` produces stable payload keys
- Provider / dispatch / config exceptions carry stage and code
"""

from __future__ import annotations

from typing import ClassVar

from location_intel.core.config import ConfigValidationError
from location_intel.core.exceptions import (
    AgentUnavailableError,
    ConfigurationError,
    ContractError,
    MalformedPayloadError,
    PermanentError,
    PipelineError,
    RecursionRejectedError,
    ToolNotFoundError,
    TransientError,
    ValidationError,
)
from location_intel.models.geojson import ModelValidationError
from location_intel.providers.base import (
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    ProviderRateLimitedError,
)


class TestPipelineErrorBase:
    """PipelineError base class behavior."""

    def test_default_attributes(self) -> None:
        err = PipelineError("boom")
        assert err.message == "boom"
        assert err.stage == ""
        assert err.code == ""
        assert err.retryable is False
        assert err.correlation_id == ""

    def test_to_error_dict_keys(self) -> None:
        err = PipelineError("x", stage="s", code="C", retryable=True, correlation_id="id")
        d = err.to_error_dict()
        assert set(d.keys()) == {"category", "code", "stage", "message", "retryable", "correlation_id"}
        assert d["category"] == "transient"
        assert d["correlation_id"] == "id"


class TestCategoryBases:
    """Category base classes set correct defaults."""

    def test_validation_error_not_retryable(self) -> None:
        err = ValidationError("bad input")
        assert err.retryable is False
        assert err.category == "validation"

    def test_transient_error_retryable(self) -> None:
        assert TransientError("timeout").category == "transient"

    def test_permanent_error_not_retryable(self) -> None:
        assert PermanentError("gone").category == "permanent"

    def test_contract_error_not_retryable(self) -> None:
        err = ContractError("schema drift")
        assert err.retryable is False
        assert err.category == "contract"


class TestAllExceptionsArePipelineError:
    """Every custom exception inherits from PipelineError."""

    EXCEPTION_CLASSES: ClassVar[list[type[PipelineError]]] = [
        ConfigurationError,
        ConfigValidationError,
        MalformedPayloadError,
        ToolNotFoundError,
        RecursionRejectedError,
        AgentUnavailableError,
        ModelValidationError,
        ProviderError,
        ProviderAuthError,
        ProviderRateLimitedError,
        ProviderNetworkError,
    ]

    def test_all_subclass_pipeline_error(self) -> None:
        for cls in self.EXCEPTION_CLASSES:
            assert issubclass(cls, PipelineError), f"{cls.__name__} is not a PipelineError"


class TestDomainErrors:
    """Concrete errors carry their stage, code and category."""

    def test_configuration_error_names_setting(self) -> None:
        err = ConfigurationError("TOMTOM_API_KEY")
        assert err.setting == "TOMTOM_API_KEY"
        assert "TOMTOM_API_KEY" in err.message
        assert err.stage == "config"
        assert err.code == "CONFIGURATION_MISSING"
        assert err.category == "permanent"

    def test_malformed_payload_prefixes_source(self) -> None:
        err = MalformedPayloadError("tomtom", "not JSON")
        assert err.message == "[tomtom] not JSON"
        assert err.category == "contract"

    def test_recursion_rejected_is_validation(self) -> None:
        err = RecursionRejectedError("execute-plan")
        assert err.tool_id == "execute-plan"
        assert err.stage == "dispatch"
        assert err.category == "validation"

    def test_tool_not_found(self) -> None:
        err = ToolNotFoundError("mystery-tool")
        assert err.code == "TOOL_NOT_FOUND"
        assert "mystery-tool" in err.message

    def test_rate_limited_is_retryable_with_body(self) -> None:
        err = ProviderRateLimitedError("tomtom", body="slow down", attempts=4)
        assert err.retryable is True
        assert err.status_code == 429
        assert err.body == "slow down"
        assert err.attempts == 4
        assert str(err).startswith("[tomtom] ")

    def test_exhausted_retries_are_transient(self) -> None:
        for err in (ProviderRateLimitedError("tomtom"), ProviderNetworkError("tomtom", "reset", attempts=4)):
            assert isinstance(err, TransientError)
            assert isinstance(err, ProviderError)
            assert err.category == "transient"
            assert err.stage == "provider"
            assert err.to_error_dict()["retryable"] is True

    def test_auth_error_not_retryable(self) -> None:
        err = ProviderAuthError("google_places", "bad key")
        assert err.retryable is False
        assert err.code == "PROVIDER_AUTH_FAILED"

    def test_config_validation_error(self) -> None:
        err = ConfigValidationError("HTTP_MAX_RETRIES", -1, "must be >= 0")
        assert err.stage == "config"
        assert err.code == "CONFIG_VALIDATION_FAILED"
        assert err.key == "HTTP_MAX_RETRIES"

    def test_model_validation_error_is_value_error(self) -> None:
        err = ModelValidationError("Feature", "coordinates", (1, 2), "bad")
        assert isinstance(err, ValueError)
        assert err.code == "MODEL_VALIDATION_FAILED"
