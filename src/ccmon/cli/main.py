# src/ccmon/cli/main.py
"""
Entry point of the ccmon CLI. Registers the run and validate commands.
"""

import logging
from typing import Optional

import typer

from .. import __version__
from ..core.config import config
from . import run, validate

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

logging.basicConfig(level=config.LOG_LEVEL.upper(), format=LOG_FORMAT)
logger = logging.getLogger(__name__)


app = typer.Typer(
    name="ccmon",
    help="Drive a cluster autoscaler through a scripted scenario and measure its cost and pending pod time.",
    add_completion=False,
)


def _print_version():
    typer.echo(f"ccmon version: {__version__}")


def version_callback(value: bool):
    if value:
        _print_version()
        raise typer.Exit()


@app.command()
def version():
    """
    Show the version of ccmon.
    """
    _print_version()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Override LOG_LEVEL for this invocation (DEBUG, INFO, WARNING, ERROR).",
    ),
):
    """
    Measure how much a cluster autoscaler spends while following a scenario.
    """
    if log_level:
        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            raise typer.BadParameter(f"unknown log level {log_level!r}", param_hint="--log-level")
        logging.getLogger().setLevel(level)
        logger.debug("Log level set to %s", log_level.upper())


app.command(name="run")(run.run)
app.command(name="validate")(validate.validate)


if __name__ == "__main__":
    app()
