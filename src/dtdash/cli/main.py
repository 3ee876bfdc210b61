"""DefinitelyTyped dashboard CLI - dtdash command."""

from pathlib import Path

import click

from dtdash import __version__
from dtdash.cli.check import check_command
from dtdash.cli.generate import generate_site_command
from dtdash.cli.utils import configure_cli_logging, to_click_exception
from dtdash.config.loader import load_config
from dtdash.core.errors import ConfigError


@click.group()
@click.version_option(version=__version__, prog_name="dtdash")
@click.option("-v", "--verbose", is_flag=True, help="Log every classification decision")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file (overrides ~/.config/dtdash/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """dtdash - audit DefinitelyTyped against the npm registry."""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise to_click_exception(e) from e
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config
    configure_cli_logging(config, verbose=verbose)


cli.add_command(check_command, name="check")
cli.add_command(generate_site_command, name="generate-site")
cli.add_command(generate_site_command, name="generate")


if __name__ == "__main__":
    cli()
