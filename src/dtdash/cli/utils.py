"""CLI utilities."""

import click

from dtdash.config.models import DashboardConfig, LoggingConfig
from dtdash.core.errors import DashboardError, exit_code_for_exception
from dtdash.core.logging import configure_logging

_CONSOLE_DESTINATIONS = ("stderr", "stdout")


def cli_logging_config(config: LoggingConfig, *, verbose: bool) -> LoggingConfig:
    """Verbose runs log everything at DEBUG.

    Otherwise console outputs without an explicit level are raised to
    WARNING so the progress counter is the only routine output. File
    outputs keep their configured level.
    """
    if verbose:
        return config.model_copy(update={"level": "DEBUG"})
    outputs = [
        output.model_copy(update={"level": "WARNING"})
        if output.level is None and output.destination in _CONSOLE_DESTINATIONS
        else output
        for output in config.outputs
    ]
    return config.model_copy(update={"outputs": outputs})


def configure_cli_logging(config: DashboardConfig, *, verbose: bool) -> None:
    configure_logging(config=cli_logging_config(config.logging, verbose=verbose))


def to_click_exception(exc: DashboardError) -> click.ClickException:
    """Wrap a dashboard error so click prints it and exits with its exit code."""
    error = click.ClickException(exc.message)
    error.exit_code = exit_code_for_exception(exc)
    return error
