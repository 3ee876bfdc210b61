"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from dtdash.config.loader import _deep_merge, _load_yaml, load_config
from dtdash.config.models import HttpConfig
from dtdash.core.errors import ConfigError, ErrorCode


@pytest.fixture
def no_global_config(tmp_path: Path) -> Any:
    with patch("dtdash.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
        yield


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("http:\n  host_concurrency: 4\n")

        assert _load_yaml(yaml_file) == {"http": {"host_concurrency": 4}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        """Returns empty dict for empty file."""
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        """A top-level list is not a config."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"http": {"timeout_sec": 10, "max_retries": 2}}
        override = {"http": {"max_retries": 5}}
        assert _deep_merge(base, override) == {"http": {"timeout_sec": 10, "max_retries": 5}}

    def test_override_replaces_non_dict(self) -> None:
        """Non-dict override replaces dict base."""
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}
        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        """Base dict is not mutated."""
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


@pytest.mark.usefixtures("no_global_config")
class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_defaults_when_no_files(self) -> None:
        """Returns default config when no config files exist."""
        config = load_config()

        assert config.logging.level == "INFO"
        assert config.http.host_concurrency == 8
        assert config.endpoints.registry_url == "https://registry.npmjs.org"

    def test_loads_explicit_file(self, tmp_path: Path) -> None:
        """Values from an explicit --config file are applied."""
        config_file = tmp_path / "dtdash.yaml"
        config_file.write_text("http:\n  max_retries: 7\n")

        config = load_config(config_file)

        assert config.http.max_retries == 7

    def test_explicit_file_overrides_global(self, tmp_path: Path) -> None:
        """The explicit file wins over the global file."""
        global_file = tmp_path / "global.yaml"
        global_file.write_text("http:\n  max_retries: 1\n  timeout_sec: 5\n")
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("http:\n  max_retries: 9\n")

        with patch("dtdash.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(explicit)

        assert config.http.max_retries == 9
        assert config.http.timeout_sec == 5

    def test_missing_explicit_file_raises(self, tmp_path: Path) -> None:
        """A --config path that does not exist is an error, not a silent default."""
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path / "missing.yaml")
        assert exc_info.value.code == ErrorCode.CONFIG_FILE_NOT_FOUND

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        """Environment variables override YAML config."""
        config_file = tmp_path / "dtdash.yaml"
        config_file.write_text("http:\n  host_concurrency: 2\n")

        with patch.dict(os.environ, {"DTDASH__HTTP__HOST_CONCURRENCY": "16"}):
            config = load_config(config_file)

        assert config.http.host_concurrency == 16

    def test_kwargs_override_all(self) -> None:
        """Keyword arguments override everything."""
        with patch.dict(os.environ, {"DTDASH__HTTP__MAX_RETRIES": "4"}):
            config = load_config(http=HttpConfig(max_retries=0))

        assert config.http.max_retries == 0

    def test_invalid_value_raises_config_error(self, tmp_path: Path) -> None:
        """Validation failures surface as ConfigError."""
        config_file = tmp_path / "dtdash.yaml"
        config_file.write_text("http:\n  host_concurrency: 0\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(config_file)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
