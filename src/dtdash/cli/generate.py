"""dtdash generate-site command - render the markdown dashboard."""

from pathlib import Path

import click

from dtdash.cli.utils import to_click_exception
from dtdash.core.errors import DashboardError
from dtdash.core.progress import pluralize, status
from dtdash.report.site import load_records, write_site


@click.command()
@click.option(
    "--input",
    "input_dir",
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Cache directory written by 'dtdash check'",
)
@click.option(
    "--output",
    "output_dir",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to write README.md into",
)
def generate_site_command(input_dir: Path, output_dir: Path) -> None:
    """Render cached status records as a markdown report."""
    try:
        records = load_records(input_dir)
        path = write_site(records, output_dir)
    except DashboardError as e:
        raise to_click_exception(e) from e

    status(f"Wrote {path} from {pluralize(len(records), 'record')}", style="success")
