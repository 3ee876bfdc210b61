"""Render cached status records as a markdown dashboard."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from pydantic import ValidationError

from dtdash.check.models import CachedRecord, FoundStatus
from dtdash.config.constants import SCHEMA_VERSION
from dtdash.core.errors import ParseError, ReportError
from dtdash.fetch.models import first_error

log = structlog.get_logger(__name__)

DT_TREE_URL = "https://github.com/DefinitelyTyped/DefinitelyTyped/tree/master/types"
NPM_PACKAGE_URL = "https://www.npmjs.com/package"
REGISTRY_URL = "https://registry.npmjs.org"

UNKNOWN = "❓"
OK = "✅"
BAD = "❌"
WARN = "⚠️"
AHEAD = "⏩"

_DIGITS = re.compile(r"(\d+)")


def natural_key(text: str) -> tuple[tuple[int, int | str], ...]:
    """Sort ``react/v16`` before ``react/v100`` and ignore case."""
    return tuple(
        (0, int(part)) if part.isdigit() else (1, part.casefold())
        for part in _DIGITS.split(text)
        if part
    )


def load_records(input_dir: Path) -> list[CachedRecord]:
    """Read every ``*.json`` record under ``input_dir``.

    Raises:
        ParseError: A file is not a current-schema record.
        ReportError: No records were found.
    """
    records: list[CachedRecord] = []
    for path in sorted(input_dir.rglob("*.json")):
        try:
            record = CachedRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ParseError.invalid_document(str(path), first_error(e)) from e
        if record.schema_version != SCHEMA_VERSION:
            raise ParseError.invalid_document(
                str(path), f"schemaVersion {record.schema_version}, expected {SCHEMA_VERSION}"
            )
        records.append(record)

    if not records:
        raise ReportError.no_data(str(input_dir))
    log.debug("report.loaded", records=len(records), input=str(input_dir))
    return records


Row = list[str]


@dataclass
class _Sections:
    errors: list[Row] = field(default_factory=list)
    not_in_registry: list[Row] = field(default_factory=list)
    unpublished: list[Row] = field(default_factory=list)
    missing_version: list[Row] = field(default_factory=list)
    removable: list[Row] = field(default_factory=list)
    out_of_date: list[Row] = field(default_factory=list)
    minor_out_of_date: list[Row] = field(default_factory=list)
    too_new: list[Row] = field(default_factory=list)
    deprecated: list[Row] = field(default_factory=list)
    non_npm: int = 0
    conflicts: int = 0


def _types_link(record: CachedRecord) -> str:
    label = f"{record.full_npm_name}@{record.types_version}"
    return f"[{label}]({DT_TREE_URL}/{record.sub_directory_path})"


def _current_link(record: CachedRecord, status: FoundStatus) -> str:
    name, version = record.unescaped_name, status.current
    return f"[{name}@{version}]({NPM_PACKAGE_URL}/{name}/v/{version})"


def _found_row(record: CachedRecord, status: FoundStatus, sections: _Sections) -> None:
    row = [_types_link(record), _current_link(record, status), OK, OK]

    if status.out_of_date == "major":
        row[2] = BAD
        sections.out_of_date.append(row)
    elif status.out_of_date == "minor":
        row[2] = WARN
        sections.minor_out_of_date.append(row)
    elif status.out_of_date == "too-new":
        row[2] = AHEAD
        sections.too_new.append(row)

    if status.has_types is not None:
        row[3] = WARN if status.has_types == "other" else BAD
        sections.removable.append(row)
    if status.is_deprecated:
        sections.deprecated.append(row)


def _classify(records: Iterable[CachedRecord]) -> _Sections:
    sections = _Sections()
    for record in records:
        status = record.status
        if isinstance(status, FoundStatus):
            _found_row(record, status, sections)
            continue

        unknown_row = [_types_link(record), UNKNOWN, UNKNOWN, UNKNOWN]
        match status.kind:
            case "error":
                sections.errors.append(unknown_row)
            case "not-in-registry":
                sections.not_in_registry.append(unknown_row)
            case "unpublished":
                name = record.unescaped_name
                unknown_row[1] = f"[{name}]({REGISTRY_URL}/{name}/)"
                sections.unpublished.append(unknown_row)
            case "missing-version":
                name = record.unescaped_name
                unknown_row[1] = f"[{name}]({NPM_PACKAGE_URL}/{name})"
                sections.missing_version.append(unknown_row)
            case "non-npm":
                sections.non_npm += 1
            case "conflict":
                sections.conflicts += 1
    return sections


def _section(lines: list[str], title: str, rows: Sequence[Row]) -> None:
    lines += [f"# {title}", "", "<details><summary>Expand...</summary>", ""]
    lines += ["| Types | Current | Outdated? | DT Needed? |", "| --- | --- | --- | --- |"]
    lines += [f"| {' | '.join(row)} |" for row in rows]
    lines += ["", "</details>", "", "<br>", ""]


def render_site(records: Sequence[CachedRecord]) -> str:
    """Render the dashboard README for a set of records."""
    ordered = sorted(records, key=lambda r: natural_key(r.sub_directory_path))
    s = _classify(ordered)

    total = len(ordered)
    remaining = total - s.non_npm - s.conflicts
    lines = [
        f"There are currently {total} packages in DefinitelyTyped.",
        "",
        f"Of them, {s.non_npm} are non-npm packages and {s.conflicts} intentionally "
        "conflict with an unrelated npm package.",
        "",
        f"Of the remaining {remaining} packages:",
        "",
        f"- {len(s.errors)} had errors while fetching info.",
        f"- {len(s.not_in_registry)} are missing from the npm registry and may need to be "
        "marked as non-npm.",
        f"- {len(s.unpublished)} appear to contain types for a package that has been unpublished.",
        f"- {len(s.missing_version)} appear to contain types for a version that does not match "
        "any on npm.",
        f"- {len(s.removable)} appear to be typed upstream and may be removable.",
        f"- {len(s.out_of_date)} are out of date (major version or 0.x mismatch).",
        f"- {len(s.minor_out_of_date)} are out of date minorly (excluding 0.x packages).",
        f"- {len(s.too_new)} declare a version newer than the latest on npm.",
        f"- {len(s.deprecated)} are deprecated upstream.",
        "",
    ]

    _section(lines, "Errors", s.errors)
    _section(lines, "Missing from registry", s.not_in_registry)
    _section(lines, "Unpublished", s.unpublished)
    _section(lines, "Missing versions", s.missing_version)
    _section(lines, "Potentially removable", s.removable)
    _section(lines, "Out of date", s.out_of_date)
    _section(lines, "Out of date minorly", s.minor_out_of_date)
    _section(lines, "Newer than latest", s.too_new)
    _section(lines, "Deprecated upstream", s.deprecated)
    return "\n".join(lines)


def write_site(records: Sequence[CachedRecord], output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / "README.md"
    path.write_text(render_site(records), encoding="utf-8")
    log.info("report.written", path=str(path), records=len(records))
    return path
