# src/ccmon/reporters/console_reporter.py
"""
Console output for scenarios and run results, rendered with 'rich'.
"""

from typing import Optional

from rich.console import Console
from rich.table import Table

from ..models.metrics import AccumulatorState
from ..models.scenario import Scenario
from ..utils.date_utils import format_duration

GIB = 1024**3


class ConsoleReporter:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def report_scenario(self, scenario: Scenario) -> None:
        """Prints the scenario's settings, workloads and expanded event list."""
        self.console.print(f"[bold]Name:[/bold] {scenario.name}")
        self.console.print(f"[bold]Duration:[/bold] {format_duration(scenario.duration)}")
        if scenario.repeat_after is not None:
            self.console.print(f"[bold]Repeat after:[/bold] {format_duration(scenario.repeat_after)}")
        if scenario.node_selector:
            self.console.print(f"[bold]Node selector:[/bold] {scenario.node_selector}")

        workloads = Table(title="Deployments", header_style="bold magenta")
        workloads.add_column("Name", style="cyan")
        workloads.add_column("Kubernetes Name", style="dim")
        workloads.add_column("CPU", style="blue", justify="right")
        workloads.add_column("Memory", style="blue", justify="right")
        workloads.add_column("Peak Replicas", style="green", justify="right")
        workloads.add_column("Peak CPU (cores)", style="green", justify="right")
        workloads.add_column("Peak Memory (GiB)", style="green", justify="right")
        peaks = scenario.peak_replicas()
        for workload in scenario.deployments:
            replicas = peaks.get(workload.name, 0)
            workloads.add_row(
                workload.name,
                workload.k8s_name,
                workload.cpu,
                workload.memory,
                str(replicas),
                f"{replicas * workload.millicores / 1000:.2f}",
                f"{replicas * workload.memory_bytes / GIB:.2f}",
            )
        self.console.print(workloads)

        events = Table(title="Events", header_style="bold magenta")
        events.add_column("Time", style="yellow", justify="right")
        events.add_column("Deployment", style="cyan")
        events.add_column("Replicas", style="green", justify="right")
        for event in scenario.expanded_events():
            events.add_row(format_duration(event.time), event.deployment, str(event.replicas))
        self.console.print(events)

    def report_result(self, state: AccumulatorState) -> None:
        table = Table(title="Run Summary", header_style="bold magenta")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")
        table.add_row("Cumulative cost ($)", f"{state.cumulative_cost:.6f}")
        table.add_row("Last per hour cost ($)", f"{state.hourly_cost:.4f}")
        table.add_row("Pending pod seconds", f"{state.pending_pod_seconds:.2f}")
        self.console.print(table)
