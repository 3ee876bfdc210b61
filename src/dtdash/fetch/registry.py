"""npm registry client: packuments, specifier resolution, deprecation.

Manifests are resolved locally from the package's full registry document
(packument), which is fetched once per package name per run and shared by
every DT variant of that package.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from urllib.parse import quote

import structlog

from dtdash.config.constants import FATAL_STATUS_CODES
from dtdash.core.errors import DashboardError, NoMatchingVersionError, PackageNotFoundError
from dtdash.fetch.http import HttpClient, expect_success
from dtdash.fetch.models import Manifest, Packument, parse_document
from dtdash.versions.semver import Version, VersionRange

log = structlog.get_logger(__name__)

LATEST_TAG = "latest"


@dataclass(frozen=True)
class ResolvedManifest:
    """The manifest chosen for a DT package, plus tip-of-package deprecation."""

    manifest: Manifest
    is_deprecated: bool


def pick_version(name: str, packument: Packument, specifier: str) -> str:
    """Choose the registry version key a specifier selects.

    Dist-tags and exact keys win outright. For ranges the ``latest`` tag is
    preferred when it satisfies, otherwise the highest satisfying release.

    Raises:
        NoMatchingVersionError: Nothing matches; ``has_any_versions`` tells
            an unpublished package apart from an unmatched specifier.
    """
    if not packument.versions:
        raise NoMatchingVersionError.for_specifier(name, specifier, has_any_versions=False)

    tagged = packument.dist_tags.get(specifier)
    if tagged is not None and tagged in packument.versions:
        return tagged
    if specifier in packument.versions:
        return specifier

    spec_range = VersionRange.parse(specifier)
    if spec_range is not None:
        available = packument.parsed_versions()
        latest = Version.try_parse(packument.dist_tags.get(LATEST_TAG, ""))
        if latest is not None and latest in available and spec_range.satisfied_by(latest):
            return available[latest]
        best = spec_range.max_satisfying(available)
        if best is not None:
            return available[best]

    raise NoMatchingVersionError.for_specifier(name, specifier, has_any_versions=True)


class RegistryClient:
    """Resolves manifests against an npm-compatible registry."""

    def __init__(self, http: HttpClient, *, registry_url: str = "https://registry.npmjs.org"):
        self._http = http
        self._registry_url = registry_url.rstrip("/")
        self._packuments: dict[str, asyncio.Task[Packument]] = {}

    def packument_url(self, name: str) -> str:
        # Scoped names keep their @ but encode the slash: @scope%2Fname
        return f"{self._registry_url}/{quote(name, safe='@')}"

    async def packument(self, name: str) -> Packument:
        """Read-through, per-run cache. Concurrent callers share one request."""
        task = self._packuments.get(name)
        if task is None:
            task = asyncio.create_task(self._fetch_packument(name))
            self._packuments[name] = task
        try:
            return await asyncio.shield(task)
        except DashboardError:
            # Failures are not cached; a later lookup in the same run retries
            if self._packuments.get(name) is task:
                del self._packuments[name]
            raise

    async def aclose(self) -> None:
        """Cancel packument fetches still in flight and drop the per-run cache.

        Safe to call more than once. Cancelled fetches stop retrying at once.
        """
        pending = [task for task in self._packuments.values() if not task.done()]
        for task in pending:
            task.cancel()
        # Retrieve every outcome, including failures nobody is awaiting any more
        await asyncio.gather(*self._packuments.values(), return_exceptions=True)
        if pending:
            log.debug("registry.fetches_cancelled", pending=len(pending))
        self._packuments.clear()

    async def _fetch_packument(self, name: str) -> Packument:
        url = self.packument_url(name)
        status, payload = await self._http.get_json(url, fatal_statuses=FATAL_STATUS_CODES)
        if status == 404:
            raise PackageNotFoundError.for_package(name)
        expect_success(url, status)
        return parse_document(Packument, payload, f"{name} packument")

    async def resolve_manifest(self, name: str, specifier: str) -> Manifest:
        """Resolve ``latest``, an exact version, ``major``, ``major.minor`` or a caret range."""
        packument = await self.packument(name)
        return packument.manifest(pick_version(name, packument, specifier))

    async def resolve_for_typings(
        self,
        name: str,
        specifier: str,
        declared_major: int,
        declared_minor: int,
    ) -> ResolvedManifest:
        """Resolve the manifest a DT package should be compared against.

        When ``latest`` lags the declared types (a prerelease line, or a
        ``latest`` tag that was never moved forward), the highest version on
        the declared ``^major.minor`` line is used instead, if one exists.
        """
        manifest = await self.resolve_manifest(name, specifier)
        if specifier == LATEST_TAG:
            manifest = await self._prefer_declared_line(
                name, manifest, declared_major, declared_minor
            )
        latest_deprecated = await self._latest_is_deprecated(name, manifest)
        return ResolvedManifest(
            manifest=manifest,
            is_deprecated=manifest.is_deprecated or latest_deprecated,
        )

    async def _prefer_declared_line(
        self,
        name: str,
        manifest: Manifest,
        declared_major: int,
        declared_minor: int,
    ) -> Manifest:
        current = Version.parse(manifest.version)
        if (current.major, current.minor) >= (declared_major, declared_minor):
            return manifest

        packument = await self.packument(name)
        available = packument.parsed_versions()
        declared_line = VersionRange.caret(declared_major, declared_minor, include_prerelease=True)
        best = declared_line.max_satisfying(available)
        if best is None:
            log.debug(
                "registry.declared_line_missing",
                name=name,
                latest=manifest.version,
                declared=f"{declared_major}.{declared_minor}",
            )
            return manifest

        log.debug(
            "registry.latest_behind_declared",
            name=name,
            latest=manifest.version,
            selected=available[best],
        )
        return await self.resolve_manifest(name, available[best])

    async def _latest_is_deprecated(self, name: str, manifest: Manifest) -> bool:
        packument = await self.packument(name)
        latest_key = packument.dist_tags.get(LATEST_TAG)
        if latest_key is None or latest_key not in packument.versions:
            return False
        if latest_key == manifest.version:
            return manifest.is_deprecated
        return packument.manifest(latest_key).is_deprecated
