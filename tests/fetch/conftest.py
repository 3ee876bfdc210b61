"""Shared fixtures for fetcher tests."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from dtdash.config.models import HttpConfig
from dtdash.fetch.http import HttpClient

Handler = Callable[[httpx.Request], Any]


@pytest.fixture
def http_config() -> HttpConfig:
    """Fast retries: no backoff sleep, two retries after the first attempt."""
    return HttpConfig(
        max_retries=2,
        retry_base_delay_sec=0.0,
        retry_max_delay_sec=0.0,
        timeout_sec=5.0,
        host_concurrency=2,
    )


@pytest.fixture
def make_client(http_config: HttpConfig) -> Callable[[Handler], HttpClient]:
    def factory(handler: Handler) -> HttpClient:
        return HttpClient(http_config, transport=httpx.MockTransport(handler))

    return factory
