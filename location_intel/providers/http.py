"""Bounded exponential-backoff HTTP wrapper for rate-limited providers.

Retry policy:
    - HTTP 429 and network-level failures (``httpx.TransportError``) are
      retried.
    - Any other response (2xx or another 4xx/5xx) is returned at once.
    - The delay before retry *n* (0-based) is ``base_delay_s * 2**n``,
      with no jitter. At most ``max_retries`` retries follow the first
      attempt.

Exhaustion raises ``ProviderRateLimitedError`` (carrying the last 429
body) or ``ProviderNetworkError``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from location_intel.providers.base import ProviderNetworkError, ProviderRateLimitedError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from location_intel.core.config import PipelineConfig

logger = logging.getLogger("location_intel.providers.http")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_S = 1.0
DEFAULT_TIMEOUT_S = 30.0

RATE_LIMITED = 429


def backoff_delays(max_retries: int, base_delay_s: float) -> list[float]:
    """Return the delay schedule ``[base, 2*base, 4*base, ...]``."""
    return [base_delay_s * 2**attempt for attempt in range(max_retries)]


class RetryingHttpClient:
    """Async HTTP client with bounded retry on 429 and network errors.

    The client is request-scoped or shared; it holds no per-request
    state beyond the wrapped ``httpx.AsyncClient`` connection pool.

    Args:
        provider: Provider name used in errors and logs.
        max_retries: Retries after the first attempt.
        base_delay_s: Backoff base in seconds.
        timeout_s: Per-request timeout in seconds.
        client: Optional pre-built ``httpx.AsyncClient`` (tests inject one
            with a ``MockTransport``).
        sleep: Awaitable sleep function (tests inject a recorder).
    """

    def __init__(
        self,
        *,
        provider: str = "http",
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_s: float = DEFAULT_BASE_DELAY_S,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            msg = f"max_retries must be >= 0, got {max_retries}"
            raise ValueError(msg)
        self.provider = provider
        self.max_retries = max_retries
        self.base_delay_s = base_delay_s
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_s, follow_redirects=True)
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        *,
        provider: str = "http",
        client: httpx.AsyncClient | None = None,
    ) -> RetryingHttpClient:
        """Build a client using the retry settings of *config*."""
        return cls(
            provider=provider,
            max_retries=config.http_max_retries,
            base_delay_s=config.http_retry_base_delay_s,
            timeout_s=config.http_timeout_s,
            client=client,
        )

    async def __aenter__(self) -> RetryingHttpClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the wrapped client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue *method* *url*, retrying on 429 and transport failures.

        Returns:
            The first non-429 response.

        Raises:
            ProviderRateLimitedError: 429 persisted through every attempt.
            ProviderNetworkError: Network failures persisted through every attempt.
        """
        attempts = self.max_retries + 1
        for attempt in range(attempts):
            is_last = attempt == self.max_retries
            try:
                response = await self._client.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                if is_last:
                    msg = f"Network error after {attempts} attempt(s): {exc}"
                    raise ProviderNetworkError(self.provider, msg, attempts=attempts) from exc
                delay = self.base_delay_s * 2**attempt
                logger.warning(
                    "Network error, retrying | provider=%s | attempt=%d/%d | delay=%.2fs | error=%s",
                    self.provider,
                    attempt + 1,
                    attempts,
                    delay,
                    exc,
                )
                await self._sleep(delay)
                continue

            if response.status_code != RATE_LIMITED:
                return response

            if is_last:
                raise ProviderRateLimitedError(
                    self.provider,
                    status_code=response.status_code,
                    body=response.text,
                    attempts=attempts,
                )
            delay = self.base_delay_s * 2**attempt
            logger.warning(
                "Rate limit hit (429), retrying | provider=%s | attempt=%d/%d | delay=%.2fs",
                self.provider,
                attempt + 1,
                attempts,
                delay,
            )
            await self._sleep(delay)

        # Unreachable: the final attempt always returns or raises.
        msg = "retry loop exited without a result"
        raise RuntimeError(msg)
