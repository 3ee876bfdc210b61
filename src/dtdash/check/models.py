"""Descriptors in, cached status records out.

``CachedRecord`` is the persisted document format read by the report
generator. Its JSON keys are camelCase; ``None`` values serialize as
``null``. Any change to the ``Status`` shapes must bump ``SCHEMA_VERSION``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from dtdash.config.constants import SCHEMA_VERSION
from dtdash.versions.drift import OutOfDate

HasTypes = Literal["package.json", "entrypoint", "other"]
NonNpm = bool | Literal["conflict"]


@dataclass(frozen=True)
class TypingsDescriptor:
    """One DefinitelyTyped package variant (``types/<name>`` or ``types/<name>/v<N>``)."""

    unescaped_name: str
    full_npm_name: str
    sub_directory_path: str
    major: int
    minor: int
    is_latest: bool
    non_npm: NonNpm = False
    package_json_type: str | None = None
    exports: Any = None

    @property
    def types_version(self) -> str:
        return f"{self.major}.{self.minor}"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class FoundStatus(_CamelModel):
    kind: Literal["found"] = "found"
    current: str
    out_of_date: OutOfDate | None = None
    has_types: HasTypes | None = None
    package_json_type_matches: bool
    exports_similar: bool
    is_deprecated: bool


class NotInRegistryStatus(_CamelModel):
    kind: Literal["not-in-registry"] = "not-in-registry"


class UnpublishedStatus(_CamelModel):
    kind: Literal["unpublished"] = "unpublished"


class MissingVersionStatus(_CamelModel):
    kind: Literal["missing-version"] = "missing-version"


class NonNpmStatus(_CamelModel):
    kind: Literal["non-npm"] = "non-npm"


class ConflictStatus(_CamelModel):
    kind: Literal["conflict"] = "conflict"


class ErrorStatus(_CamelModel):
    kind: Literal["error"] = "error"
    message: str


Status = Annotated[
    FoundStatus
    | NotInRegistryStatus
    | UnpublishedStatus
    | MissingVersionStatus
    | NonNpmStatus
    | ConflictStatus
    | ErrorStatus,
    Field(discriminator="kind"),
]


class CachedRecord(_CamelModel):
    """The persisted status of one descriptor."""

    schema_version: int
    full_npm_name: str
    sub_directory_path: str
    unescaped_name: str
    types_version: str
    status: Status

    @classmethod
    def for_descriptor(cls, descriptor: TypingsDescriptor, status: Status) -> CachedRecord:
        return cls(
            schema_version=SCHEMA_VERSION,
            full_npm_name=descriptor.full_npm_name,
            sub_directory_path=descriptor.sub_directory_path,
            unescaped_name=descriptor.unescaped_name,
            types_version=descriptor.types_version,
            status=status,
        )

    def to_json(self) -> str:
        """Pretty-printed for diffable cache directories."""
        return self.model_dump_json(by_alias=True, indent=4) + "\n"
