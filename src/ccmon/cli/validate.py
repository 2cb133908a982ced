# src/ccmon/cli/validate.py
"""
Validate command: load a scenario, print it with repeats expanded, and exit.
"""

import logging
from pathlib import Path

import typer
from typing_extensions import Annotated

from ..core.exceptions import ScenarioError
from ..models.scenario import load_scenario
from ..reporters.console_reporter import ConsoleReporter

logger = logging.getLogger(__name__)


def validate(
    scenario_file: Annotated[Path, typer.Argument(help="Path to the scenario YAML file.")],
) -> None:
    """
    Check a scenario file and show the events it would fire.
    """
    try:
        scenario = load_scenario(scenario_file)
    except ScenarioError as e:
        logger.error("reading %s, %s", scenario_file, e)
        raise typer.Exit(code=1)

    ConsoleReporter().report_scenario(scenario)
    typer.echo(f"Scenario '{scenario.name}' is valid.")
