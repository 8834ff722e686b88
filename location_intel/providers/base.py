"""GeoDataProvider base class and provider exceptions.

Every upstream geodata provider (TomTom, Google Places, PredictHQ, ...)
is wrapped by a small adapter deriving from ``GeoDataProvider``. The
adapter owns the provider's URL layout and credential; the shared
``RetryingHttpClient`` owns transport and rate-limit handling.

Adapters return the provider's raw JSON payload unchanged. Reconciling
payload shapes into features is the feature synthesizer's job, not the
adapter's.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from location_intel.core.config import require_key
from location_intel.core.exceptions import MalformedPayloadError, PipelineError, TransientError

if TYPE_CHECKING:
    import httpx

    from location_intel.providers.http import RetryingHttpClient


class GeoDataProvider:
    """Base class for provider adapters.

    Subclasses set ``name`` and ``key_setting`` and implement their
    endpoint methods on top of ``_get_json`` / ``_post_json``.

    Attributes:
        name: Provider name used in errors and logs.
        key_setting: Environment variable holding the provider credential.
    """

    name: str = ""
    key_setting: str = ""

    def __init__(self, http: RetryingHttpClient, api_key: str) -> None:
        self._http = http
        self._api_key = api_key

    @property
    def api_key(self) -> str:
        """Return the credential, raising ``ConfigurationError`` if missing."""
        return require_key(self._api_key, self.key_setting)

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self._http.get(url, params=params, headers=headers)
        return _decode_json(self.name, response)

    async def _post_json(
        self,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self._http.post(url, json=json, params=params, headers=headers)
        return _decode_json(self.name, response)


def _decode_json(provider: str, response: httpx.Response) -> Any:
    """Raise for non-2xx, then decode the body as JSON."""
    raise_for_provider_status(provider, response)
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedPayloadError(provider, f"Response body is not JSON: {exc}") from exc


def raise_for_provider_status(provider: str, response: httpx.Response) -> None:
    """Map a non-2xx response to the matching ``ProviderError`` subclass."""
    status = response.status_code
    if 200 <= status < 300:
        return
    body = response.text
    if status in (401, 403):
        raise ProviderAuthError(provider, f"Authentication failed with status {status}: {body}")
    if status == 429:
        raise ProviderRateLimitedError(provider, status_code=status, body=body)
    raise ProviderError(
        provider,
        f"Request failed with status {status}: {body}",
        status_code=status,
        body=body,
    )


# ---------------------------------------------------------------------------
# Provider exceptions
# ---------------------------------------------------------------------------


class ProviderError(PipelineError):
    """Base exception for provider adapter errors.

    Aborts only the specific call: the dispatch batch and the map
    pipeline continue.

    Attributes:
        provider: Name of the provider that raised the error.
        message: Human-readable error description.
        status_code: Last observed HTTP status (0 if none).
        body: Last observed response body (``""`` if none).
        retryable: Whether the caller should retry the operation.
    """

    default_stage = "provider"
    default_code = "PROVIDER_ERROR"

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: int = 0,
        body: str = "",
        retryable: bool = False,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(
            message,
            retryable=retryable,
            code=self.default_code,
            stage=self.default_stage,
        )

    def __str__(self) -> str:
        return f"[{self.provider}] {self.message}"


class ProviderAuthError(ProviderError):
    """Authentication or authorisation failure with the provider API."""

    default_code = "PROVIDER_AUTH_FAILED"

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(provider, message, retryable=False)


class ProviderRateLimitedError(ProviderError, TransientError):
    """HTTP 429 persisted after all retries were exhausted."""

    default_code = "PROVIDER_RATE_LIMITED"

    def __init__(self, provider: str, *, status_code: int = 429, body: str = "", attempts: int = 1) -> None:
        self.attempts = attempts
        super().__init__(
            provider,
            f"Rate limit exceeded after {attempts} attempt(s): {body}",
            status_code=status_code,
            body=body,
            retryable=True,
        )


class ProviderNetworkError(ProviderError, TransientError):
    """Network-level failure persisted after all retries were exhausted."""

    default_code = "PROVIDER_NETWORK_FAILED"

    def __init__(self, provider: str, message: str, *, attempts: int = 1) -> None:
        self.attempts = attempts
        super().__init__(provider, message, retryable=True)
