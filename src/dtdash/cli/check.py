"""dtdash check command - reconcile every DT package against npm."""

import asyncio
from pathlib import Path

import click
import structlog

from dtdash.check.cache import StatusCache
from dtdash.check.models import TypingsDescriptor
from dtdash.check.orchestrator import CheckSummary, run_check
from dtdash.cli.utils import configure_cli_logging, to_click_exception
from dtdash.config.models import DashboardConfig
from dtdash.core.errors import DashboardError
from dtdash.core.logging import clear_run_id, set_run_id
from dtdash.core.progress import counter, pluralize, status
from dtdash.definitions.parser import read_definitions
from dtdash.fetch.files import FileLister
from dtdash.fetch.http import HttpClient
from dtdash.fetch.registry import RegistryClient

log = structlog.get_logger(__name__)


async def _run(
    descriptors: list[TypingsDescriptor],
    config: DashboardConfig,
    cache: StatusCache,
    *,
    verbose: bool,
) -> CheckSummary:
    async with HttpClient(config.http) as http:
        registry = RegistryClient(http, registry_url=config.endpoints.registry_url)
        files = FileLister(
            http,
            jsdelivr_url=config.endpoints.jsdelivr_url,
            unpkg_url=config.endpoints.unpkg_url,
        )
        with counter(len(descriptors), enabled=not verbose) as advance:
            return await run_check(
                descriptors,
                cache=cache,
                registry=registry,
                files=files,
                on_progress=advance,
            )


@click.command()
@click.argument(
    "definitely_typed_path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--input",
    "input_dir",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Cache directory to read prior records from",
)
@click.option(
    "--output",
    "output_dir",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Cache directory to write records to (may equal --input)",
)
@click.option("--verbose", is_flag=True, help="Log every classification decision")
@click.pass_context
def check_command(
    ctx: click.Context,
    definitely_typed_path: Path,
    input_dir: Path,
    output_dir: Path,
    verbose: bool,
) -> None:
    """Check every package in a DefinitelyTyped checkout.

    DEFINITELY_TYPED_PATH is the root of a local DefinitelyTyped clone.
    """
    config: DashboardConfig = ctx.obj["config"]
    verbose = verbose or ctx.obj["verbose"]
    if verbose:
        configure_cli_logging(config, verbose=True)

    run_id = set_run_id()
    try:
        descriptors = read_definitions(definitely_typed_path)
        log.info("check.run", run_id=run_id, packages=len(descriptors), output=str(output_dir))
        summary = asyncio.run(
            _run(descriptors, config, StatusCache(input_dir, output_dir), verbose=verbose)
        )
    except DashboardError as e:
        log.error("check.aborted", error=e.message, code=e.error_name)
        raise to_click_exception(e) from e
    finally:
        clear_run_id()

    errors = summary.by_kind.get("error", 0)
    status(
        f"Checked {pluralize(summary.completed, 'package')} "
        f"({pluralize(errors, 'error')})",
        style="warning" if errors else "success",
    )
