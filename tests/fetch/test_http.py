"""Tests for fetch/http.py: retries, fatal statuses, per-host queues."""

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from dtdash.core.errors import ErrorCode, FatalError, FetchError, ParseError
from dtdash.fetch.http import HostQueues, HttpClient


URL = "https://registry.example.test/lodash"

Handler = Callable[[httpx.Request], Any]


class TestRetries:
    """Retry behavior for transient failures."""

    @pytest.mark.asyncio
    async def test_given_transient_503_when_get_then_retries_until_success(
        self, make_client: Callable[[Handler], HttpClient]
    ) -> None:
        # Given
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            if len(calls) < 2:
                return httpx.Response(503)
            return httpx.Response(200, json={"ok": True})

        # When
        async with make_client(handler) as http:
            status, payload = await http.get_json(URL)

        # Then
        assert status == 200
        assert payload == {"ok": True}
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_given_persistent_429_when_get_then_raises_fetch_error(
        self, make_client: Callable[[Handler], HttpClient]
    ) -> None:
        # Given
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(429)

        # When
        async with make_client(handler) as http:
            with pytest.raises(FetchError) as exc_info:
                await http.get(URL)

        # Then
        assert exc_info.value.status == 429
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_given_no_retries_when_get_fails_then_single_attempt_raises(
        self, http_config: Any
    ) -> None:
        # Given
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(503)

        config = http_config.model_copy(update={"max_retries": 0})

        # When
        async with HttpClient(config, transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(FetchError) as exc_info:
                await http.get(URL)

        # Then
        assert exc_info.value.status == 503
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_given_404_when_get_then_returned_without_retry(
        self, make_client: Callable[[Handler], HttpClient]
    ) -> None:
        # Given
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(404)

        # When
        async with make_client(handler) as http:
            status, payload = await http.get_json(URL)

        # Then
        assert status == 404
        assert payload is None
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_given_timeouts_when_get_then_raises_timeout_error(
        self, make_client: Callable[[Handler], HttpClient]
    ) -> None:
        # Given
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        # When
        async with make_client(handler) as http:
            with pytest.raises(FetchError) as exc_info:
                await http.get(URL)

        # Then
        assert exc_info.value.code == ErrorCode.FETCH_TIMEOUT
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_given_connection_error_when_get_then_raises_fetch_error(
        self, make_client: Callable[[Handler], HttpClient]
    ) -> None:
        # Given
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        # When
        async with make_client(handler) as http:
            with pytest.raises(FetchError) as exc_info:
                await http.get(URL)

        # Then
        assert exc_info.value.code == ErrorCode.FETCH_FAILED
        assert "connection refused" in exc_info.value.message


class TestFatalStatus:
    """Origin timeouts on the registry abort the run."""

    @pytest.mark.asyncio
    async def test_given_524_with_fatal_statuses_when_get_then_fatal_without_retry(
        self, make_client: Callable[[Handler], HttpClient]
    ) -> None:
        # Given
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(524)

        # When
        async with make_client(handler) as http:
            with pytest.raises(FatalError):
                await http.get(URL, fatal_statuses={524})

        # Then
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_given_524_without_fatal_statuses_when_get_then_ordinary_retry(
        self, make_client: Callable[[Handler], HttpClient]
    ) -> None:
        # Given
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(524)

        # When
        async with make_client(handler) as http:
            with pytest.raises(FetchError) as exc_info:
                await http.get(URL)

        # Then
        assert exc_info.value.status == 524


class TestRequests:
    """Request shape and decoding."""

    @pytest.mark.asyncio
    async def test_given_client_when_get_then_sends_user_agent(
        self, make_client: Callable[[Handler], HttpClient]
    ) -> None:
        # Given
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["User-Agent"])
            return httpx.Response(200, json={})

        # When
        async with make_client(handler) as http:
            await http.get(URL)

        # Then
        assert seen[0].startswith("dtdash/")

    @pytest.mark.asyncio
    async def test_given_invalid_json_when_get_json_then_parse_error(
        self, make_client: Callable[[Handler], HttpClient]
    ) -> None:
        # Given
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>oops</html>")

        # When / Then
        async with make_client(handler) as http:
            with pytest.raises(ParseError):
                await http.get_json(URL)


class TestHostQueues:
    """Per-hostname concurrency limits."""

    def test_given_same_host_when_for_host_then_same_semaphore(self) -> None:
        # Given
        queues = HostQueues(3)

        # When
        first = queues.for_host("registry.npmjs.org")
        second = queues.for_host("registry.npmjs.org")
        other = queues.for_host("data.jsdelivr.com")

        # Then
        assert first is second
        assert first is not other
        assert queues.hosts() == ["data.jsdelivr.com", "registry.npmjs.org"]

    @pytest.mark.asyncio
    async def test_given_many_requests_when_in_flight_then_capped_per_host(
        self, make_client: Callable[[Handler], HttpClient]
    ) -> None:
        # Given
        in_flight: dict[str, int] = {}
        peak: dict[str, int] = {}

        async def handler(request: httpx.Request) -> httpx.Response:
            host = request.url.host
            in_flight[host] = in_flight.get(host, 0) + 1
            peak[host] = max(peak.get(host, 0), in_flight[host])
            await asyncio.sleep(0.01)
            in_flight[host] -= 1
            return httpx.Response(200, json={})

        # When
        async with make_client(handler) as http:
            await asyncio.gather(
                *(http.get(f"https://a.example.test/{i}") for i in range(6)),
                *(http.get(f"https://b.example.test/{i}") for i in range(6)),
            )

        # Then
        assert peak == {"a.example.test": 2, "b.example.test": 2}
