"""Core module exports."""

from dtdash.core.errors import (
    ConfigError,
    DashboardError,
    ErrorCode,
    FatalError,
    FetchError,
    MalformedVersionError,
    NoMatchingVersionError,
    PackageNotFoundError,
    ParseError,
    ReportError,
    exit_code_for_exception,
)
from dtdash.core.logging import (
    bind_package,
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from dtdash.core.progress import counter, pluralize, status

__all__ = [
    # Errors
    "ConfigError",
    "DashboardError",
    "ErrorCode",
    "FatalError",
    "FetchError",
    "MalformedVersionError",
    "NoMatchingVersionError",
    "PackageNotFoundError",
    "ParseError",
    "ReportError",
    "exit_code_for_exception",
    # Logging
    "bind_package",
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "counter",
    "pluralize",
    "status",
]
