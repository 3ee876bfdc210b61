"""Published file listings from CDN package-explorer APIs.

jsDelivr is asked first; unpkg serves the same recursive tree shape and is
used whenever jsDelivr fails or returns something unusable.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable

import structlog

from dtdash.config.constants import VENDORED_SEGMENT
from dtdash.core.errors import FetchError, ParseError
from dtdash.fetch.http import HttpClient, expect_success
from dtdash.fetch.models import DirectoryEntry, FileTree, TreeEntry, parse_document

log = structlog.get_logger(__name__)


def flatten_tree(tree: FileTree) -> list[str]:
    """Flatten a file tree into absolute POSIX paths of its files.

    Entries are joined onto their parent by ``name`` (jsDelivr) or ``path``
    (unpkg, already absolute). Anything under ``node_modules`` is dropped.

    Raises:
        ParseError: An entry carries neither ``name`` nor ``path``.
    """
    out: list[str] = []
    _walk(tree.files or [], "/", out)
    return out


def _walk(entries: Iterable[TreeEntry], parent: str, out: list[str]) -> None:
    for entry in entries:
        segment = entry.name if entry.name is not None else entry.path
        if not segment:
            raise ParseError.invalid_document(
                "file listing", f"{entry.type} entry under {parent} has no name or path"
            )
        full = posixpath.normpath(posixpath.join(parent, segment))
        if not full.startswith("/"):
            full = "/" + full
        if VENDORED_SEGMENT in full.split("/"):
            continue
        if isinstance(entry, DirectoryEntry):
            _walk(entry.files or [], full, out)
        else:
            out.append(full)


class FileLister:
    """Lists a published package version's files, with provider fallback."""

    def __init__(
        self,
        http: HttpClient,
        *,
        jsdelivr_url: str = "https://data.jsdelivr.com/v1/packages/npm",
        unpkg_url: str = "https://unpkg.com",
    ) -> None:
        self._http = http
        self._jsdelivr_url = jsdelivr_url.rstrip("/")
        self._unpkg_url = unpkg_url.rstrip("/")

    async def list_files(self, name: str, version: str) -> list[str]:
        try:
            return await self._list_from(f"{self._jsdelivr_url}/{name}@{version}")
        except (FetchError, ParseError) as e:
            log.debug(
                "files.fallback",
                name=name,
                version=version,
                provider="unpkg",
                reason=e.message,
            )
        return await self._list_from(f"{self._unpkg_url}/{name}@{version}/?meta")

    async def _list_from(self, url: str) -> list[str]:
        status, payload = await self._http.get_json(url)
        expect_success(url, status)
        return flatten_tree(parse_document(FileTree, payload, url))
