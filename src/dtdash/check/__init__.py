"""Per-package reconciliation, status cache and run orchestration."""

from dtdash.check.cache import StatusCache, record_filename, record_path
from dtdash.check.models import (
    CachedRecord,
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
from dtdash.check.orchestrator import CheckSummary, check_one, run_check
from dtdash.check.reconcile import exports_similar, reconcile, specifier_for
from dtdash.check.typed import (
    entrypoint_declarations,
    is_typed_via_files,
    is_typed_via_manifest,
)

__all__ = [
    # Models
    "CachedRecord",
    "ConflictStatus",
    "ErrorStatus",
    "FoundStatus",
    "HasTypes",
    "MissingVersionStatus",
    "NonNpmStatus",
    "NotInRegistryStatus",
    "Status",
    "TypingsDescriptor",
    "UnpublishedStatus",
    # Typed-ness
    "entrypoint_declarations",
    "is_typed_via_files",
    "is_typed_via_manifest",
    # Reconciliation
    "exports_similar",
    "reconcile",
    "specifier_for",
    # Cache
    "StatusCache",
    "record_filename",
    "record_path",
    # Orchestration
    "CheckSummary",
    "check_one",
    "run_check",
]
