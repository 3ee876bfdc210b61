"""Tests for config/models.py validators and defaults."""

import pytest
from pydantic import ValidationError

from dtdash import __version__
from dtdash.config.models import EndpointsConfig, HttpConfig, LogOutputConfig


class TestHttpConfig:
    """HttpConfig validation tests."""

    def test_defaults_identify_client(self) -> None:
        """The default User-Agent names the tool and its version."""
        config = HttpConfig()

        assert config.user_agent.startswith(f"dtdash/{__version__}")
        assert config.max_retries == 3

    @pytest.mark.parametrize("concurrency", [0, -1])
    def test_rejects_non_positive_host_concurrency(self, concurrency: int) -> None:
        with pytest.raises(ValidationError):
            HttpConfig(host_concurrency=concurrency)

    def test_rejects_negative_retries(self) -> None:
        with pytest.raises(ValidationError):
            HttpConfig(max_retries=-1)

    def test_zero_retries_allowed(self) -> None:
        assert HttpConfig(max_retries=0).max_retries == 0


class TestEndpointsConfig:
    """EndpointsConfig validation tests."""

    def test_strips_trailing_slash(self) -> None:
        config = EndpointsConfig(registry_url="https://registry.example.test/")

        assert config.registry_url == "https://registry.example.test"

    def test_rejects_non_http_url(self) -> None:
        with pytest.raises(ValidationError):
            EndpointsConfig(unpkg_url="ftp://unpkg.example.test")


class TestLogOutputConfig:
    """LogOutputConfig validation tests."""

    def test_relative_file_destination_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/run.log")

    def test_console_destinations_accepted(self) -> None:
        assert LogOutputConfig(destination="stdout").destination == "stdout"
