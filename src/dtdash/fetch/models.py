"""Validated shapes of the documents fetched from upstream providers.

Only the fields the dashboard reads are declared; everything else is
ignored. A document that does not fit is a ``ParseError``, never a silent
pass-through.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dtdash.core.errors import ParseError
from dtdash.versions.semver import Version


class Manifest(BaseModel):
    """One published version's package.json, as served by the registry."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str | None = None
    version: str
    main: str | None = None
    types: Any = None
    typings: Any = None
    exports: Any = None
    module_type: str | None = Field(default=None, alias="type")
    deprecated: str | bool | None = None

    @property
    def is_deprecated(self) -> bool:
        # npm stores the deprecation message; an empty string means un-deprecated
        return bool(self.deprecated)


# Keys of a version manifest that survive in the per-run packument cache
_MANIFEST_KEYS = frozenset(field.alias or name for name, field in Manifest.model_fields.items())


class Packument(BaseModel):
    """A package's full registry document: dist-tags plus every published version."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str | None = None
    dist_tags: dict[str, str] = Field(default_factory=dict, alias="dist-tags")
    # Validated lazily, one manifest at a time, so a single odd historical
    # version cannot poison the whole document
    versions: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @field_validator("versions", mode="before")
    @classmethod
    def _keep_manifest_fields(cls, value: Any) -> Any:
        """Drop readmes, dependency maps and the like from every version."""
        if not isinstance(value, dict):
            return value
        return {
            key: (
                {k: v for k, v in manifest.items() if k in _MANIFEST_KEYS}
                if isinstance(manifest, dict)
                else manifest
            )
            for key, manifest in value.items()
        }

    def parsed_versions(self) -> dict[Version, str]:
        """Map parsed versions to their registry keys, skipping unparseable keys."""
        parsed: dict[Version, str] = {}
        for key in self.versions:
            version = Version.try_parse(key)
            if version is not None:
                parsed[version] = key
        return parsed

    def manifest(self, version: str) -> Manifest:
        source = f"{self.name or 'package'}@{version} manifest"
        try:
            return Manifest.model_validate(self.versions[version])
        except KeyError as e:
            raise ParseError.invalid_document(source, "version missing from packument") from e
        except ValidationError as e:
            raise ParseError.invalid_document(source, first_error(e)) from e


class FileEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["file"]
    name: str | None = None
    path: str | None = None


class DirectoryEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["directory"]
    name: str | None = None
    path: str | None = None
    files: list[TreeEntry] | None = None


TreeEntry = Annotated[FileEntry | DirectoryEntry, Field(discriminator="type")]

DirectoryEntry.model_rebuild()


class FileTree(BaseModel):
    """Root of a file listing.

    jsDelivr roots are ``{type: "npm", name, version, files}``; unpkg roots are
    the ``/`` directory itself. Only ``files`` is shared, and only it is read.
    """

    model_config = ConfigDict(extra="ignore")

    files: list[TreeEntry] | None = None


M = TypeVar("M", bound=BaseModel)


def parse_document(model: type[M], payload: Any, source: str) -> M:
    """Validate a decoded JSON payload, mapping failures to ``ParseError``."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ParseError.invalid_document(source, first_error(e)) from e


def first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(loc) for loc in first["loc"]) or "<root>"
    return f"{location}: {first['msg']}"
