"""Fakes for the reconciliation engine's upstream collaborators."""

from collections.abc import Callable
from typing import Any

import pytest

from dtdash.check.models import TypingsDescriptor
from dtdash.fetch.models import Manifest
from dtdash.fetch.registry import ResolvedManifest


class FakeRegistry:
    """Returns canned manifests (or raises canned errors) per package name."""

    def __init__(self) -> None:
        self.results: dict[str, ResolvedManifest | BaseException] = {}
        self.calls: list[tuple[str, str]] = []
        self.closed = 0

    def publish(self, name: str, version: str, *, deprecated: bool = False, **fields: Any) -> None:
        manifest = Manifest.model_validate({"name": name, "version": version, **fields})
        self.results[name] = ResolvedManifest(manifest=manifest, is_deprecated=deprecated)

    def fail(self, name: str, error: BaseException) -> None:
        self.results[name] = error

    async def resolve_for_typings(
        self, name: str, specifier: str, declared_major: int, declared_minor: int
    ) -> ResolvedManifest:
        self.calls.append((name, specifier))
        result = self.results[name]
        if isinstance(result, BaseException):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed += 1


class FakeFiles:
    """Returns canned file listings and records every request."""

    def __init__(self) -> None:
        self.listings: dict[str, list[str] | BaseException] = {}
        self.calls: list[tuple[str, str]] = []

    async def list_files(self, name: str, version: str) -> list[str]:
        self.calls.append((name, version))
        result = self.listings.get(name, [])
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def files() -> FakeFiles:
    return FakeFiles()


@pytest.fixture
def make_descriptor() -> Callable[..., TypingsDescriptor]:
    def factory(
        name: str = "lodash",
        major: int = 4,
        minor: int = 14,
        *,
        is_latest: bool = True,
        sub_directory_path: str | None = None,
        **fields: Any,
    ) -> TypingsDescriptor:
        mangled = name.removeprefix("@").replace("/", "__")
        return TypingsDescriptor(
            unescaped_name=name,
            full_npm_name=f"@types/{mangled}",
            sub_directory_path=sub_directory_path or mangled,
            major=major,
            minor=minor,
            is_latest=is_latest,
            **fields,
        )

    return factory
