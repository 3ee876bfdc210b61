"""dtdash error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Registry / fetch
- 4xxx: Data / parse
- 5xxx: Report
- 9xxx: Fatal

Everything except ``FatalError`` is folded into a per-package ``error``
status by the reconciliation engine. ``FatalError`` aborts the whole run.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Registry / fetch (3xxx)
    PACKAGE_NOT_FOUND = 3001
    NO_MATCHING_VERSION = 3002
    FETCH_FAILED = 3003
    FETCH_TIMEOUT = 3004

    # Data / parse (4xxx)
    PARSE_ERROR = 4001
    MALFORMED_VERSION = 4002

    # Report (5xxx)
    REPORT_NO_DATA = 5001

    # Fatal (9xxx)
    REGISTRY_UNREACHABLE = 9101


@dataclass(frozen=True, slots=True)
class DashboardError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'PACKAGE_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(DashboardError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class PackageNotFoundError(DashboardError):
    """The package name has no registry entry."""

    @classmethod
    def for_package(cls, name: str) -> "PackageNotFoundError":
        return cls(
            code=ErrorCode.PACKAGE_NOT_FOUND,
            message=f"{name} not found in registry",
            details={"package": name},
        )


class NoMatchingVersionError(DashboardError):
    """The package exists but no version satisfies the specifier."""

    @property
    def has_any_versions(self) -> bool:
        return bool(self.details.get("has_any_versions", False))

    @classmethod
    def for_specifier(
        cls, name: str, specifier: str, *, has_any_versions: bool
    ) -> "NoMatchingVersionError":
        if has_any_versions:
            message = f"{name} has no version matching {specifier}"
        else:
            message = f"{name} has no published versions"
        return cls(
            code=ErrorCode.NO_MATCHING_VERSION,
            message=message,
            details={
                "package": name,
                "specifier": specifier,
                "has_any_versions": has_any_versions,
            },
        )


class FetchError(DashboardError):
    """Network or HTTP failure. Retryable on the next run."""

    @property
    def status(self) -> int | None:
        status = self.details.get("status")
        return status if isinstance(status, int) else None

    @classmethod
    def http_status(cls, url: str, status: int, reason: str = "") -> "FetchError":
        suffix = f" {reason}" if reason else ""
        return cls(
            code=ErrorCode.FETCH_FAILED,
            message=f"GET {url} failed: {status}{suffix}",
            retryable=True,
            details={"url": url, "status": status},
        )

    @classmethod
    def transport(cls, url: str, reason: str) -> "FetchError":
        return cls(
            code=ErrorCode.FETCH_FAILED,
            message=f"GET {url} failed: {reason}",
            retryable=True,
            details={"url": url},
        )

    @classmethod
    def timeout(cls, url: str, timeout_sec: float) -> "FetchError":
        return cls(
            code=ErrorCode.FETCH_TIMEOUT,
            message=f"GET {url} timed out after {timeout_sec:g}s",
            retryable=True,
            details={"url": url, "timeout_sec": timeout_sec},
        )


class ParseError(DashboardError):
    """Malformed upstream or on-disk document."""

    @classmethod
    def invalid_document(cls, source: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_ERROR,
            message=f"failed to parse {source}: {reason}",
            details={"source": source, "reason": reason},
        )


class MalformedVersionError(ParseError):
    """A version string that cannot be read even loosely."""

    @classmethod
    def for_text(cls, text: str) -> "MalformedVersionError":
        return cls(
            code=ErrorCode.MALFORMED_VERSION,
            message=f"invalid version: {text!r}",
            details={"version": text},
        )


class FatalError(DashboardError):
    """Registry-wide failure. Aborts the entire run."""

    @classmethod
    def registry_unreachable(cls, url: str, status: int) -> "FatalError":
        return cls(
            code=ErrorCode.REGISTRY_UNREACHABLE,
            message=f"GET {url} returned {status}; registry appears unreachable",
            details={"url": url, "status": status},
        )


class ReportError(DashboardError):
    """Report generation errors."""

    @classmethod
    def no_data(cls, path: str) -> "ReportError":
        return cls(
            code=ErrorCode.REPORT_NO_DATA,
            message=f"No data found in {path}",
            details={"path": path},
        )


def exit_code_for_exception(exc: BaseException) -> int:
    """Resolve a deterministic process exit code for an exception."""
    if isinstance(exc, FatalError):
        return 3
    if isinstance(exc, ConfigError):
        return 2
    return 1
