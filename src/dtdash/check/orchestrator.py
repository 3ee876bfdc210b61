"""Fan reconciliation out over every descriptor.

All packages are launched at once; the HTTP client's per-host queues are the
only throttle. A ``FatalError`` from any package cancels the rest, along with
every registry fetch still in flight, and propagates. Records already written
stay on disk for the next run.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import structlog

from dtdash.check.cache import StatusCache
from dtdash.check.models import CachedRecord, ErrorStatus, Status, TypingsDescriptor
from dtdash.check.reconcile import FileSource, ManifestSource, reconcile
from dtdash.core.errors import FatalError
from dtdash.core.logging import bind_package

log = structlog.get_logger(__name__)


@dataclass
class CheckSummary:
    """Outcome counts for one run."""

    total: int
    completed: int = 0
    by_kind: Counter[str] = field(default_factory=Counter)

    def record(self, status: Status) -> None:
        self.completed += 1
        self.by_kind[status.kind] += 1


async def check_one(
    descriptor: TypingsDescriptor,
    *,
    cache: StatusCache,
    registry: ManifestSource,
    files: FileSource,
) -> CachedRecord:
    """Load, reconcile and store one descriptor. Only ``FatalError`` escapes."""
    prior_record = await cache.load(descriptor)
    prior = prior_record.status if prior_record is not None else None
    try:
        status = await reconcile(descriptor, prior, registry=registry, files=files)
    except FatalError:
        raise
    except Exception as e:
        log.exception("check.package_failed", error=str(e))
        status = ErrorStatus(message=f"{type(e).__name__}: {e}")

    record = CachedRecord.for_descriptor(descriptor, status)
    await cache.store(record)
    return record


async def run_check(
    descriptors: Iterable[TypingsDescriptor],
    *,
    cache: StatusCache,
    registry: ManifestSource,
    files: FileSource,
    on_progress: Callable[[str], None] | None = None,
) -> CheckSummary:
    """Reconcile every descriptor concurrently.

    Args:
        descriptors: DT package variants; processed in ``sub_directory_path`` order.
        cache: Prior-record source and output sink.
        registry: Manifest resolver shared by all packages. Closed when the run ends.
        files: File lister shared by all packages.
        on_progress: Called with the package path after each completion.

    Raises:
        FatalError: Upstream became unreachable. In-flight work is cancelled.
    """
    ordered = sorted(descriptors, key=lambda d: d.sub_directory_path)
    summary = CheckSummary(total=len(ordered))

    async def run_descriptor(descriptor: TypingsDescriptor) -> CachedRecord:
        with bind_package(descriptor.sub_directory_path):
            return await check_one(descriptor, cache=cache, registry=registry, files=files)

    all_tasks = [
        asyncio.create_task(run_descriptor(d), name=d.sub_directory_path) for d in ordered
    ]
    log.info("check.started", packages=len(all_tasks))

    try:
        for coro in asyncio.as_completed(all_tasks):
            record = await coro
            summary.record(record.status)
            if on_progress is not None:
                on_progress(record.sub_directory_path)
    except BaseException:
        for t in all_tasks:
            t.cancel()
        # Let cancelled tasks unwind before the error propagates
        await asyncio.gather(*all_tasks, return_exceptions=True)
        raise
    finally:
        # Shared upstream fetches outlive the package tasks that started them
        await registry.aclose()

    log.info("check.finished", packages=summary.completed, **dict(summary.by_kind))
    return summary
