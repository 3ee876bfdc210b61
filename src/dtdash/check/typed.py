"""Does an upstream package already ship its own type declarations?"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Iterator
from fnmatch import fnmatchcase
from typing import Any

from dtdash.check.models import HasTypes
from dtdash.config.constants import (
    DECLARATION_PATTERNS,
    ENTRYPOINT_DECLARATION_SUFFIXES,
    VENDORED_SEGMENT,
)
from dtdash.fetch.models import Manifest


def is_typed_via_manifest(manifest: Manifest) -> bool:
    """``types``/``typings`` is set, or some conditional map in ``exports`` has ``types``."""
    if manifest.types or manifest.typings:
        return True
    return _declares_types_condition(manifest.exports)


def _declares_types_condition(node: Any) -> bool:
    if isinstance(node, dict):
        if node.get("types"):
            return True
        return any(_declares_types_condition(value) for value in node.values())
    if isinstance(node, list):
        return any(_declares_types_condition(value) for value in node)
    return False


def _string_leaves(node: Any) -> Iterator[str]:
    if isinstance(node, str):
        yield node
    elif isinstance(node, dict):
        for value in node.values():
            yield from _string_leaves(value)
    elif isinstance(node, list):
        for value in node:
            yield from _string_leaves(value)


def _absolute(path: str) -> str:
    return posixpath.normpath(posixpath.join("/", path))


def _declaration_candidates(target: str) -> Iterator[str]:
    stem, ext = posixpath.splitext(target)
    suffix = ENTRYPOINT_DECLARATION_SUFFIXES.get(ext)
    if suffix is not None:
        yield _absolute(stem + suffix)
    else:
        yield _absolute(target + ".d.ts")
        yield _absolute(posixpath.join(target, "index.d.ts"))


def entrypoint_declarations(manifest: Manifest) -> set[str]:
    """Absolute paths that would declare types for the package's JS entrypoints.

    Entrypoints come from the string leaves of ``exports`` when present,
    otherwise from ``main`` (default ``index.js``) plus ``index.d.ts``.
    """
    candidates: set[str] = set()
    if manifest.exports is not None:
        targets = list(_string_leaves(manifest.exports))
    else:
        targets = [manifest.main or "index.js"]
        candidates.add("/index.d.ts")

    for target in targets:
        candidates.update(_declaration_candidates(target))
    return candidates


def _is_declaration(path: str) -> bool:
    basename = posixpath.basename(path)
    return any(fnmatchcase(basename, pattern) for pattern in DECLARATION_PATTERNS)


def is_typed_via_files(files: Iterable[str], manifest: Manifest) -> HasTypes | None:
    """Classify from the published file list. Entrypoint declarations win over any other."""
    own = [path for path in files if VENDORED_SEGMENT not in path.split("/")]

    candidates = entrypoint_declarations(manifest)
    if any(path in candidates for path in own):
        return "entrypoint"
    if any(_is_declaration(path) for path in own):
        return "other"
    return None
