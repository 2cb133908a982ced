# src/ccmon/cli/run.py
"""
Run command for the ccmon CLI.

Loads a scenario, connects to the cluster and drives the scenario while the
cost monitor records its telemetry. SIGINT/SIGTERM end the run early; the
created workloads are still cleaned up.
"""

import asyncio
import logging
import signal
import traceback
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from ..core.config import config
from ..core.exceptions import CcmonError
from ..core.runner import run_scenario
from ..models.metrics import AccumulatorState
from ..models.scenario import Scenario, load_scenario
from ..reporters.console_reporter import ConsoleReporter

logger = logging.getLogger(__name__)


async def _async_run(scenario: Scenario, kubeconfig: Optional[str], output_dir: Optional[str]) -> AccumulatorState:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def signal_handler(signum):
        sig_name = "SIGTERM" if signum == signal.SIGTERM else "SIGINT"
        logger.info(f"Received {sig_name}, stopping scenario...")
        stop_event.set()

    installed = []
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, signal_handler, signum)
            installed.append(signum)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform/thread; Ctrl+C then cancels the run.
            pass

    try:
        return await run_scenario(scenario, kubeconfig=kubeconfig, output_dir=output_dir, stop_event=stop_event)
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)


def run(
    scenario_file: Annotated[Path, typer.Argument(help="Path to the scenario YAML file.")],
    kubeconfig: Annotated[
        Optional[str],
        typer.Option("--kubeconfig", help="Path to the kubeconfig file."),
    ] = config.KUBECONFIG,
    output_dir: Annotated[
        Optional[str],
        typer.Option("--output-dir", help="Directory for the telemetry CSV file."),
    ] = None,
) -> None:
    """
    Run a scenario against the current cluster and record cost telemetry.
    """
    try:
        scenario = load_scenario(scenario_file)
    except CcmonError as e:
        logger.error("reading %s, %s", scenario_file, e)
        raise typer.Exit(code=1)

    reporter = ConsoleReporter()
    reporter.report_scenario(scenario)

    try:
        state = asyncio.run(_async_run(scenario, kubeconfig, output_dir))
    except CcmonError as e:
        logger.error("executing scenario, %s", e)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        raise typer.Exit(code=130)
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}")
        logger.debug("Run failed: %s", traceback.format_exc())
        raise typer.Exit(code=1)

    reporter.report_result(state)
