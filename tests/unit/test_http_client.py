"""Tests for the bounded-retry HTTP client and provider status mapping."""

from __future__ import annotations

import httpx
import pytest

from location_intel.providers.base import (
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    ProviderRateLimitedError,
    raise_for_provider_status,
)
from location_intel.providers.http import RetryingHttpClient, backoff_delays
from tests.fakes import mock_http


def _sequence_handler(statuses: list[int]):
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        status = statuses[min(len(calls) - 1, len(statuses) - 1)]
        return httpx.Response(status, text=f"status {status}")

    return handler, calls


class TestBackoffSchedule:
    def test_doubles_from_base(self) -> None:
        assert backoff_delays(3, 1.0) == [1.0, 2.0, 4.0]

    def test_zero_retries(self) -> None:
        assert backoff_delays(0, 1.0) == []

    def test_negative_retries_rejected(self) -> None:
        with pytest.raises(ValueError, match="max_retries"):
            RetryingHttpClient(max_retries=-1)


class TestRetryOn429:
    @pytest.mark.asyncio()
    async def test_three_429_then_200(self) -> None:
        handler, calls = _sequence_handler([429, 429, 429, 200])
        http, sleep = mock_http(handler, base_delay_s=0.5)

        response = await http.get("https://api.example.test/search")

        assert response.status_code == 200
        assert len(calls) == 4
        assert sleep.delays == [0.5, 1.0, 2.0]
        await http.aclose()

    @pytest.mark.asyncio()
    async def test_exhausted_429_raises_with_body(self) -> None:
        handler, calls = _sequence_handler([429])
        http, sleep = mock_http(handler, max_retries=2)

        with pytest.raises(ProviderRateLimitedError) as excinfo:
            await http.get("https://api.example.test/search")

        assert len(calls) == 3
        assert sleep.delays == [1.0, 2.0]
        assert excinfo.value.status_code == 429
        assert excinfo.value.body == "status 429"
        assert excinfo.value.attempts == 3

    @pytest.mark.asyncio()
    async def test_zero_retries_single_attempt(self) -> None:
        handler, calls = _sequence_handler([429])
        http, sleep = mock_http(handler, max_retries=0)

        with pytest.raises(ProviderRateLimitedError):
            await http.get("https://api.example.test/search")

        assert len(calls) == 1
        assert sleep.delays == []


class TestNoRetryOnOtherStatus:
    @pytest.mark.asyncio()
    @pytest.mark.parametrize("status", [200, 400, 404, 500, 503])
    async def test_returned_immediately(self, status: int) -> None:
        handler, calls = _sequence_handler([status, 200])
        http, sleep = mock_http(handler)

        response = await http.get("https://api.example.test/search")

        assert response.status_code == status
        assert len(calls) == 1
        assert sleep.delays == []


class TestRetryOnNetworkError:
    @pytest.mark.asyncio()
    async def test_transport_error_then_success(self) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"ok": True})

        http, sleep = mock_http(handler)
        response = await http.post("https://api.example.test/insights", json={})

        assert response.json() == {"ok": True}
        assert len(attempts) == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio()
    async def test_exhausted_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        http, sleep = mock_http(handler, max_retries=1)

        with pytest.raises(ProviderNetworkError) as excinfo:
            await http.get("https://api.example.test/search")

        assert excinfo.value.retryable is True
        assert excinfo.value.attempts == 2
        assert sleep.delays == [1.0]


class TestRaiseForProviderStatus:
    def _response(self, status: int, body: str = "body") -> httpx.Response:
        return httpx.Response(status, text=body, request=httpx.Request("GET", "https://x.test"))

    def test_success_passes(self) -> None:
        raise_for_provider_status("tomtom", self._response(204))

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failure(self, status: int) -> None:
        with pytest.raises(ProviderAuthError):
            raise_for_provider_status("tomtom", self._response(status))

    def test_rate_limited(self) -> None:
        with pytest.raises(ProviderRateLimitedError):
            raise_for_provider_status("tomtom", self._response(429))

    def test_other_status_carries_status_and_body(self) -> None:
        with pytest.raises(ProviderError) as excinfo:
            raise_for_provider_status("tomtom", self._response(502, "bad gateway"))
        assert excinfo.value.status_code == 502
        assert excinfo.value.body == "bad gateway"
        assert excinfo.value.retryable is False
