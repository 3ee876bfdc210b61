"""Per-package reconciliation: one DT descriptor against its npm counterpart.

``reconcile`` is a pure function of the descriptor, the previously cached
status, and two upstream collaborators. Expected upstream failures become
``Status`` variants; only ``FatalError`` escapes.
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog

from dtdash.check.models import (
    ConflictStatus,
    ErrorStatus,
    FoundStatus,
    HasTypes,
    MissingVersionStatus,
    NonNpmStatus,
    NotInRegistryStatus,
    Status,
    TypingsDescriptor,
    UnpublishedStatus,
)
from dtdash.check.typed import is_typed_via_files, is_typed_via_manifest
from dtdash.config.constants import CONFLICT_MARKER, DEFAULT_MODULE_TYPE
from dtdash.core.errors import (
    FetchError,
    NoMatchingVersionError,
    PackageNotFoundError,
    ParseError,
)
from dtdash.fetch.registry import ResolvedManifest
from dtdash.versions.drift import out_of_date
from dtdash.versions.semver import Version

log = structlog.get_logger(__name__)


class ManifestSource(Protocol):
    async def resolve_for_typings(
        self,
        name: str,
        specifier: str,
        declared_major: int,
        declared_minor: int,
    ) -> ResolvedManifest: ...

    async def aclose(self) -> None: ...


class FileSource(Protocol):
    async def list_files(self, name: str, version: str) -> list[str]: ...


def specifier_for(descriptor: TypingsDescriptor) -> str:
    """``latest`` for the current variant; ``major.minor`` on 0.x; else ``major``."""
    if descriptor.is_latest:
        return "latest"
    if descriptor.major == 0:
        return f"{descriptor.major}.{descriptor.minor}"
    return str(descriptor.major)


def _js_typeof(value: Any) -> str:
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, int | float):
        return "number"
    return "object"


def exports_similar(declared: Any, upstream: Any) -> bool:
    """Same kind of value; two maps must also share the same top-level keys."""
    if _js_typeof(declared) != _js_typeof(upstream):
        return False
    if isinstance(declared, dict) and isinstance(upstream, dict):
        return declared.keys() == upstream.keys()
    return True


async def reconcile(
    descriptor: TypingsDescriptor,
    prior: Status | None,
    *,
    registry: ManifestSource,
    files: FileSource,
) -> Status:
    """Classify one descriptor.

    Args:
        descriptor: The DT package variant.
        prior: Status from a schema-compatible cached record, if any. Returned
            as-is when the upstream version and deprecation are unchanged.
        registry: Resolves manifests (``RegistryClient`` in production).
        files: Lists published files (``FileLister`` in production).

    Raises:
        FatalError: Upstream is globally unreachable.
    """
    status = await _classify(descriptor, prior, registry=registry, files=files)
    if isinstance(status, FoundStatus):
        log.info(
            "reconcile.classified",
            kind=status.kind,
            current=status.current,
            out_of_date=status.out_of_date,
            has_types=status.has_types,
            deprecated=status.is_deprecated,
        )
    elif isinstance(status, ErrorStatus):
        log.info("reconcile.classified", kind=status.kind, error=status.message)
    else:
        log.info("reconcile.classified", kind=status.kind)
    return status


async def _classify(
    descriptor: TypingsDescriptor,
    prior: Status | None,
    *,
    registry: ManifestSource,
    files: FileSource,
) -> Status:
    if descriptor.non_npm == CONFLICT_MARKER:
        return ConflictStatus()
    if descriptor.non_npm:
        return NonNpmStatus()

    try:
        return await _reconcile_upstream(descriptor, prior, registry=registry, files=files)
    except PackageNotFoundError:
        return NotInRegistryStatus()
    except NoMatchingVersionError as e:
        return MissingVersionStatus() if e.has_any_versions else UnpublishedStatus()
    except (FetchError, ParseError) as e:
        return ErrorStatus(message=e.message)


async def _reconcile_upstream(
    descriptor: TypingsDescriptor,
    prior: Status | None,
    *,
    registry: ManifestSource,
    files: FileSource,
) -> Status:
    name = descriptor.unescaped_name
    resolved = await registry.resolve_for_typings(
        name, specifier_for(descriptor), descriptor.major, descriptor.minor
    )
    manifest = resolved.manifest

    if (
        isinstance(prior, FoundStatus)
        and prior.current == manifest.version
        and prior.is_deprecated == resolved.is_deprecated
    ):
        log.debug("reconcile.unchanged", current=manifest.version)
        return prior

    current = Version.parse(manifest.version)
    has_types: HasTypes | None
    if is_typed_via_manifest(manifest):
        has_types = "package.json"
    else:
        listing = await files.list_files(name, manifest.version)
        has_types = is_typed_via_files(listing, manifest)

    declared_type = descriptor.package_json_type or DEFAULT_MODULE_TYPE
    upstream_type = manifest.module_type or DEFAULT_MODULE_TYPE

    return FoundStatus(
        current=manifest.version,
        out_of_date=out_of_date(
            descriptor.major, descriptor.minor, current, is_latest=descriptor.is_latest
        ),
        has_types=has_types,
        package_json_type_matches=declared_type == upstream_type,
        exports_similar=exports_similar(descriptor.exports, manifest.exports),
        is_deprecated=resolved.is_deprecated,
    )
