"""User-facing progress feedback for CLI operations.

Design principles:
- Single line updates, no spam
- Graceful degradation in non-TTY (CI, pipes)
- Suppress structlog console output while a live display is active

Usage::

    from dtdash.core.progress import counter, status

    status("Reading definitions...")

    with counter(total, desc="Checking") as advance:
        for name in names:
            advance(name)  # 17/9000 lodash

    status("Done", style="success")  # ✓ Done
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

# Console for output
_console = Console(stderr=True)

# Non-TTY: print a plain line every N completions
_PLAIN_REPORT_EVERY = 500

# Style prefixes
_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

_suppress_console_logs = threading.local()


def is_console_suppressed() -> bool:
    """Check if console logging is currently suppressed."""
    return getattr(_suppress_console_logs, "active", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Suppress structlog console output for the duration of the block.

    Logs are still written to file handlers.
    """
    _suppress_console_logs.active = True
    try:
        yield
    finally:
        _suppress_console_logs.active = False


def _get_logger() -> BoundLogger:
    """Get logger lazily to respect runtime config."""
    from dtdash.core.logging import get_logger

    return get_logger("progress")


def _is_tty() -> bool:
    """Check if stderr is a TTY."""
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    padding = " " * indent
    _console.print(f"{padding}{prefix}{message}", highlight=False)

    _get_logger().debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Args:
        count: The number of items
        singular: Singular form (e.g., "package")
        plural: Plural form (default: singular + "s")

    Returns:
        Formatted string like "1 package" or "3 packages"
    """
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


@contextmanager
def counter(
    total: int,
    *,
    desc: str = "Checking",
    enabled: bool = True,
) -> Iterator[Callable[[str], None]]:
    """Running ``completed/total label`` counter.

    Yields an ``advance(label)`` callback. Completions may arrive in any
    order; the count only ever goes up. On a TTY this is a transient Rich
    live line with console logs suppressed; elsewhere a plain line is
    printed every few hundred completions. With ``enabled=False`` the
    callback is a no-op (verbose mode logs each package instead).
    """
    if not enabled:
        yield lambda _label: None
        return

    if _is_tty():
        with (
            suppress_console_logs(),
            Progress(
                SpinnerColumn(),
                TextColumn("{task.description}"),
                BarColumn(bar_width=25, style="cyan", complete_style="cyan"),
                TaskProgressColumn(),
                TextColumn("{task.completed}/{task.total} {task.fields[label]}"),
                console=_console,
                transient=True,
            ) as pbar,
        ):
            task_id = pbar.add_task(desc, total=total, label="")

            def advance(label: str) -> None:
                pbar.update(task_id, advance=1, label=label)

            yield advance
        return

    completed = 0

    def advance_plain(label: str) -> None:
        nonlocal completed
        completed += 1
        if completed % _PLAIN_REPORT_EVERY == 0 or completed == total:
            _console.print(f"{desc}: {completed}/{total} {label}", highlight=False)

    yield advance_plain
