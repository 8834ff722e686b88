"""Unified exception taxonomy.

Provides a shared base exception hierarchy for the pipeline, the tool
dispatcher, and the provider adapters. Every domain exception inherits
from ``PipelineError`` and carries structured context fields that enable
consistent retry decisions and operator diagnostics.

Taxonomy categories
-------------------
- ``ValidationError``: input/contract violations, never retryable.
- ``TransientError``: temporary failures (network, throttle), retryable.
- ``PermanentError``: unrecoverable failures (missing credentials), not retryable.
- ``ContractError``: unexpected payload shape from a provider or agent, never retryable.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging and the request-handling layer.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Component or stage where the error occurred
            (e.g. ``"dispatch"``, ``"seed_search"``).
        code: Machine-readable error code (e.g. ``"PROVIDER_RATE_LIMITED"``).
        retryable: Whether the caller may retry the operation.
        correlation_id: Request correlation identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(PipelineError):
    """Input or domain-model validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(PipelineError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(PipelineError):
    """Unrecoverable failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(PipelineError):
    """Unexpected payload shape between components. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Concrete domain errors
# ---------------------------------------------------------------------------


class ConfigurationError(PermanentError):
    """A required credential or setting is missing.

    Fatal: raised at the first call that needs the setting and never
    retried.

    Attributes:
        setting: Name of the missing environment variable.
    """

    default_stage = "config"
    default_code = "CONFIGURATION_MISSING"

    def __init__(self, setting: str, message: str = "") -> None:
        self.setting = setting
        super().__init__(message or f"Missing required configuration: {setting}")


class MalformedPayloadError(ContractError):
    """Unparsable or unexpected payload from a provider or generation agent.

    Treated as "no data from this source": the map pipeline advances to
    its next fallback stage.

    Attributes:
        source: Provider or agent that produced the payload.
    """

    default_stage = "extraction"
    default_code = "MALFORMED_UPSTREAM_PAYLOAD"

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"[{source}] {message}")


class ToolNotFoundError(PermanentError):
    """A tool id did not resolve to any registered implementation."""

    default_stage = "dispatch"
    default_code = "TOOL_NOT_FOUND"

    def __init__(self, tool_id: str) -> None:
        self.tool_id = tool_id
        super().__init__(f"No implementation registered for tool {tool_id!r}")


class RecursionRejectedError(ValidationError):
    """A planning/execution meta-tool was requested during execution."""

    default_stage = "dispatch"
    default_code = "RECURSION_REJECTED"

    def __init__(self, tool_id: str) -> None:
        self.tool_id = tool_id
        super().__init__(f"Recursive/plan call prevented during execution: {tool_id}")


class AgentUnavailableError(PermanentError):
    """No generation collaborator is registered under the requested name."""

    default_stage = "agent"
    default_code = "AGENT_UNAVAILABLE"

    def __init__(self, agent_name: str) -> None:
        self.agent_name = agent_name
        super().__init__(f"Agent not available: {agent_name}")
