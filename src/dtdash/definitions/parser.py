"""Enumerate the package variants of a local DefinitelyTyped checkout.

Layout::

    types/<name>/                 current variant (subDirectoryPath "<name>")
    types/<name>/v<M>[.<m>]/      older variants  ("<name>/v<M>[.<m>]")
    types/<name>/ts<X.Y>/         TypeScript-version redirects, not variants

Scoped packages are mangled: ``@foo/bar`` lives in ``types/foo__bar``.
Each variant's ``package.json`` is authoritative; older checkouts without one
fall back to the ``index.d.ts`` header.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field

from dtdash.check.models import NonNpm, TypingsDescriptor
from dtdash.config.constants import SCOPE_SEPARATOR, TYPES_SCOPE
from dtdash.core.errors import ConfigError, DashboardError, ParseError
from dtdash.fetch.models import parse_document
from dtdash.versions.semver import Version

log = structlog.get_logger(__name__)

_VERSION_DIR = re.compile(r"^v(\d+)(?:\.(\d+))?$")
_HEADER = re.compile(
    r"^//\s*Type definitions for (?P<non_npm>non-npm package )?(?P<name>.+?)"
    r"\s+v?(?P<major>\d+)\.(?P<minor>\d+)(?:\.\w+)?\s*$",
    re.MULTILINE,
)


def unmangle_scoped_name(name: str) -> str:
    """``foo__bar`` (or ``@types/foo__bar``) -> ``@foo/bar``; unscoped names unchanged."""
    name = name.removeprefix(f"{TYPES_SCOPE}/")
    if SCOPE_SEPARATOR not in name:
        return name
    scope, rest = name.split(SCOPE_SEPARATOR, 1)
    return f"@{scope}/{rest}"


@dataclass(frozen=True)
class Header:
    name: str
    major: int
    minor: int
    non_npm: bool


def parse_header(text: str) -> Header:
    """Read the ``// Type definitions for [non-npm package ]<name> <M>.<m>`` line."""
    match = _HEADER.search(text)
    if match is None:
        raise ParseError.invalid_document("declaration header", "no 'Type definitions for' line")
    return Header(
        name=match["name"],
        major=int(match["major"]),
        minor=int(match["minor"]),
        non_npm=match["non_npm"] is not None,
    )


class DefinitionManifest(BaseModel):
    """The fields of a DT package's own package.json that describe the typings."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    version: str
    non_npm: bool | Literal["conflict"] | None = Field(default=None, alias="nonNpm")
    module_type: str | None = Field(default=None, alias="type")
    exports: Any = None


def _read_manifest(directory: Path) -> DefinitionManifest | None:
    path = directory / "package.json"
    if not path.is_file():
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ParseError.invalid_document(str(path), str(e)) from e
    return parse_document(DefinitionManifest, payload, str(path))


def _read_header(directory: Path) -> Header | None:
    path = directory / "index.d.ts"
    if not path.is_file():
        return None
    try:
        return parse_header(path.read_text(encoding="utf-8"))
    except ParseError:
        return None


def read_variant(
    directory: Path,
    *,
    mangled_name: str,
    sub_directory_path: str,
    is_latest: bool,
) -> TypingsDescriptor:
    """Build the descriptor for one variant directory.

    Raises:
        ParseError: Neither a usable package.json nor a header was found.
    """
    manifest = _read_manifest(directory)
    header = _read_header(directory) if manifest is None or manifest.non_npm is None else None

    if manifest is not None:
        version = Version.parse(manifest.version)
        major, minor = version.major, version.minor
    elif header is not None:
        major, minor = header.major, header.minor
    else:
        raise ParseError.invalid_document(str(directory), "no package.json or header")

    non_npm: NonNpm = False
    if manifest is not None and manifest.non_npm is not None:
        non_npm = manifest.non_npm
    elif header is not None:
        non_npm = header.non_npm

    return TypingsDescriptor(
        unescaped_name=unmangle_scoped_name(mangled_name),
        full_npm_name=f"{TYPES_SCOPE}/{mangled_name}",
        sub_directory_path=sub_directory_path,
        major=major,
        minor=minor,
        is_latest=is_latest,
        non_npm=non_npm,
        package_json_type=manifest.module_type if manifest is not None else None,
        exports=manifest.exports if manifest is not None else None,
    )


def read_definitions(dt_path: Path) -> list[TypingsDescriptor]:
    """Every package variant under ``<dt_path>/types``.

    A variant that cannot be read is logged and skipped; it does not stop
    enumeration of the rest of the checkout.

    Raises:
        ConfigError: ``dt_path`` has no ``types`` directory.
    """
    types_root = dt_path / "types"
    if not types_root.is_dir():
        raise ConfigError.invalid_value(
            "definitely_typed_path", str(dt_path), "not a DefinitelyTyped checkout (no types/)"
        )

    descriptors: list[TypingsDescriptor] = []
    skipped = 0
    for package_dir in sorted(types_root.iterdir()):
        if not package_dir.is_dir():
            continue
        name = package_dir.name
        variants = [(package_dir, name, True)]
        variants.extend(
            (child, f"{name}/{child.name}", False)
            for child in sorted(package_dir.iterdir())
            if child.is_dir() and _VERSION_DIR.match(child.name)
        )
        for directory, sub_directory_path, is_latest in variants:
            try:
                descriptors.append(
                    read_variant(
                        directory,
                        mangled_name=name,
                        sub_directory_path=sub_directory_path,
                        is_latest=is_latest,
                    )
                )
            except DashboardError as e:
                skipped += 1
                log.warning("definitions.skipped", path=sub_directory_path, error=e.message)

    log.info("definitions.read", packages=len(descriptors), skipped=skipped)
    return descriptors
