"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
For configurable values, see models.py (HttpConfig, EndpointsConfig, etc.).
"""

# =============================================================================
# Cached Record Schema
# =============================================================================

SCHEMA_VERSION = 6
"""Bump whenever the Status shape changes. Mismatched records are recomputed."""

# =============================================================================
# HTTP Status Handling
# =============================================================================

FATAL_STATUS_CODES: frozenset[int] = frozenset({524})
"""Origin timeout on the registry: upstream is globally unreachable."""

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 425, 429})
"""Transient 4xx statuses retried with backoff. Every 5xx except the fatal ones is too."""

# =============================================================================
# Declaration Files
# =============================================================================

DECLARATION_PATTERNS: tuple[str, ...] = ("*.d.ts", "*.d.cts", "*.d.mts")
"""Basename globs identifying TypeScript declaration files."""

ENTRYPOINT_DECLARATION_SUFFIXES: dict[str, str] = {
    ".js": ".d.ts",
    ".mjs": ".d.mts",
    ".cjs": ".d.cts",
}
"""JS entrypoint extension -> declaration extension."""

VENDORED_SEGMENT = "node_modules"
"""Path segment whose contents never count as the package's own files."""

# =============================================================================
# DefinitelyTyped Layout
# =============================================================================

TYPES_SCOPE = "@types"
SCOPE_SEPARATOR = "__"
CONFLICT_MARKER = "conflict"
DEFAULT_MODULE_TYPE = "commonjs"
