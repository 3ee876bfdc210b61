"""On-disk status cache, one JSON record per descriptor.

Records are read from the input cache directory and written to the output
cache directory; the two may be the same. A record that cannot be used for
any reason is a cache miss, never an error.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

import structlog
from pydantic import ValidationError

from dtdash.check.models import CachedRecord, TypingsDescriptor
from dtdash.config.constants import SCHEMA_VERSION

log = structlog.get_logger(__name__)

_SEPARATORS = re.compile(r"[/\\]")


def record_filename(sub_directory_path: str) -> str:
    return _SEPARATORS.sub("@", sub_directory_path) + ".json"


def record_path(root: Path, sub_directory_path: str) -> Path:
    """``<root>/<first path segment>/<path with separators replaced by @>.json``."""
    shard = _SEPARATORS.split(sub_directory_path, maxsplit=1)[0]
    return root / shard / record_filename(sub_directory_path)


class StatusCache:
    """Loads prior records and stores fresh ones.

    Usage::

        cache = StatusCache(Path("data/in"), Path("data/out"))
        prior = await cache.load(descriptor)
        ...
        await cache.store(CachedRecord.for_descriptor(descriptor, status))
    """

    def __init__(self, load_root: Path, store_root: Path) -> None:
        self.load_root = load_root
        self.store_root = store_root

    async def load(self, descriptor: TypingsDescriptor) -> CachedRecord | None:
        path = record_path(self.load_root, descriptor.sub_directory_path)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            log.debug("cache.unreadable", path=str(path), error=str(e))
            return None

        try:
            record = CachedRecord.model_validate_json(text)
        except ValidationError as e:
            log.debug("cache.discarded", path=str(path), reason="invalid", errors=e.error_count())
            return None

        if record.schema_version != SCHEMA_VERSION:
            log.debug(
                "cache.discarded",
                path=str(path),
                reason="schema_version",
                found=record.schema_version,
                expected=SCHEMA_VERSION,
            )
            return None
        if record.types_version != descriptor.types_version:
            log.debug(
                "cache.discarded",
                path=str(path),
                reason="types_version",
                found=record.types_version,
                expected=descriptor.types_version,
            )
            return None
        return record

    async def store(self, record: CachedRecord) -> Path:
        path = record_path(self.store_root, record.sub_directory_path)
        await asyncio.to_thread(self._write, path, record.to_json())
        return path

    @staticmethod
    def _write(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
