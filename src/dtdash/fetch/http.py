"""Polite async HTTP: per-host concurrency, retries with jittered backoff, timeouts.

Every upstream request in a run goes through one ``HttpClient``. Requests
to the same hostname share a bounded ``asyncio.Semaphore`` from
``HostQueues``, so load on any single provider is capped no matter how many
packages are in flight. The slot is released while backing off.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Collection
from types import TracebackType
from typing import Any

import httpx
import structlog

from dtdash.config.constants import RETRYABLE_STATUS_CODES
from dtdash.config.models import HttpConfig
from dtdash.core.errors import FatalError, FetchError, ParseError

log = structlog.get_logger(__name__)


class HostQueues:
    """Lazily created per-hostname concurrency limits, shared across a run."""

    def __init__(self, concurrency: int) -> None:
        self._concurrency = concurrency
        self._semaphores: dict[str, asyncio.Semaphore] = {}

    @property
    def concurrency(self) -> int:
        return self._concurrency

    def for_host(self, host: str) -> asyncio.Semaphore:
        semaphore = self._semaphores.get(host)
        if semaphore is None:
            semaphore = asyncio.Semaphore(self._concurrency)
            self._semaphores[host] = semaphore
            log.debug("http.host_queue_created", host=host, concurrency=self._concurrency)
        return semaphore

    def hosts(self) -> list[str]:
        return sorted(self._semaphores)


def _is_retryable_status(status: int) -> bool:
    return status in RETRYABLE_STATUS_CODES or status >= 500


class HttpClient:
    """Async JSON-over-HTTP client used by every fetcher.

    Usage::

        async with HttpClient(config.http) as http:
            response = await http.get("https://registry.npmjs.org/lodash")
    """

    def __init__(
        self,
        config: HttpConfig,
        *,
        queues: HostQueues | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._queues = queues or HostQueues(config.host_concurrency)
        self._client = httpx.AsyncClient(
            headers={"User-Agent": config.user_agent, "Accept": "application/json"},
            timeout=httpx.Timeout(config.timeout_sec),
            follow_redirects=True,
            transport=transport,
        )

    @property
    def queues(self) -> HostQueues:
        return self._queues

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def get(
        self,
        url: str,
        *,
        fatal_statuses: Collection[int] = (),
    ) -> httpx.Response:
        """GET with retries. Returns any non-retryable response, including 4xx.

        Raises:
            FatalError: The response status is in ``fatal_statuses``. Not retried.
            FetchError: Retries exhausted on timeouts, transport errors, 429 or 5xx.
        """
        host = httpx.URL(url).host
        attempts = self._config.max_retries + 1
        attempt = 0

        while True:
            async with self._queues.for_host(host):
                try:
                    response = await self._client.get(url)
                except httpx.TimeoutException:
                    error = FetchError.timeout(url, self._config.timeout_sec)
                except httpx.TransportError as e:
                    error = FetchError.transport(url, str(e) or type(e).__name__)
                else:
                    status = response.status_code
                    if status in fatal_statuses:
                        log.error("http.fatal_status", url=url, status=status)
                        raise FatalError.registry_unreachable(url, status)
                    if not _is_retryable_status(status):
                        return response
                    error = FetchError.http_status(url, status, response.reason_phrase)

            attempt += 1
            if attempt >= attempts:
                log.debug("http.gave_up", url=url, attempts=attempts, error=error.message)
                raise error

            delay = self._backoff_delay(attempt - 1)
            log.debug(
                "http.retry",
                url=url,
                attempt=attempt,
                max_attempts=attempts,
                delay_s=round(delay, 2),
                error=error.message,
            )
            await asyncio.sleep(delay)

    async def get_json(
        self,
        url: str,
        *,
        fatal_statuses: Collection[int] = (),
    ) -> tuple[int, Any]:
        """GET and decode JSON. Returns ``(status, payload)``; payload is None unless 2xx."""
        response = await self.get(url, fatal_statuses=fatal_statuses)
        if not response.is_success:
            return response.status_code, None
        try:
            return response.status_code, response.json()
        except ValueError as e:
            raise ParseError.invalid_document(url, f"invalid JSON: {e}") from e

    def _backoff_delay(self, attempt: int) -> float:
        base = self._config.retry_base_delay_sec
        capped = min(base * (2**attempt), self._config.retry_max_delay_sec)
        return capped + random.uniform(0, base)


def expect_success(url: str, status: int) -> None:
    """Raise ``FetchError`` for any non-2xx status the caller did not handle."""
    if not 200 <= status < 300:
        raise FetchError.http_status(url, status)

