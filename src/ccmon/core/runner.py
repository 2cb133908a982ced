# src/ccmon/core/runner.py
"""
Runs a scenario end to end: create workloads, start monitoring and the event
scheduler, wait for the scenario to finish or be interrupted, then clean up.
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional

from kubernetes_asyncio import client

from ..models.metrics import AccumulatorState
from ..models.scenario import Scenario, Workload
from ..pricing import get_pricing_provider
from ..pricing.base import PricingProvider
from .config import config
from .events import EventScheduler
from .exceptions import ClusterConnectionError
from .k8s_client import get_api_client
from .monitor import CostMonitor
from .workloads import WorkloadManager

logger = logging.getLogger(__name__)


class ScenarioRunner:
    def __init__(
        self,
        workloads: WorkloadManager,
        monitor: CostMonitor,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.workloads = workloads
        self.monitor = monitor
        self._clock = clock
        self._start: Optional[float] = None

    def _log(self, message: str, *args) -> None:
        elapsed = 0.0 if self._start is None else self._clock() - self._start
        logger.info("[%.3fs] " + message, elapsed, *args)

    async def execute(self, scenario: Scenario, stop_event: Optional[asyncio.Event] = None) -> AccumulatorState:
        """
        Runs ``scenario`` until its duration elapses or ``stop_event`` is set.

        Created workloads are always deleted and the monitor always stopped,
        whether the run completes, is interrupted or fails to start.

        Raises:
            WorkloadError: If a workload cannot be created.
        """
        stop_event = stop_event or asyncio.Event()
        events = EventScheduler(self.workloads, scenario.workloads_by_name, clock=self._clock)
        created: List[Workload] = []
        try:
            logger.info("creating deployments")
            for workload in scenario.deployments:
                await self.workloads.create(workload)
                created.append(workload)

            self._start = self._clock()
            await self.monitor.start(self._start)
            events.start(scenario.expanded_events(), self._start)
            self._log("starting scenario")

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=scenario.duration.total_seconds())
                self._log("interrupted, exiting")
            except asyncio.TimeoutError:
                self._log("scenario complete")
        finally:
            await events.stop()
            await self.cleanup(created)
            state = await self.monitor.stop()
        return state

    async def cleanup(self, workloads: List[Workload]) -> None:
        """Best-effort deletion of the scenario's workloads."""
        if not workloads:
            return
        deleted = await self.workloads.delete_all(workloads)
        if deleted != len(workloads):
            self._log("deleted %d of %d deployments", deleted, len(workloads))


async def run_scenario(
    scenario: Scenario,
    kubeconfig: Optional[str] = None,
    output_dir: Optional[str] = None,
    stop_event: Optional[asyncio.Event] = None,
    pricing: Optional[PricingProvider] = None,
) -> AccumulatorState:
    """
    Connects to the cluster, refreshes pricing and runs ``scenario``.

    Raises:
        ClusterConnectionError: If no Kubernetes configuration can be loaded.
        PricingError: If the initial pricing refresh fails.
        WorkloadError: If a workload cannot be created.
    """
    api_client = await get_api_client(kubeconfig)
    if api_client is None:
        raise ClusterConnectionError("creating kubernetes client, no usable configuration found")

    try:
        core_api = client.CoreV1Api(api_client)
        apps_api = client.AppsV1Api(api_client)
        monitor = await CostMonitor.create(
            scenario.name,
            core_api,
            pricing or get_pricing_provider(),
            node_selector=scenario.node_selector,
            namespace=config.NAMESPACE,
            output_dir=output_dir,
        )
        runner = ScenarioRunner(WorkloadManager(apps_api), monitor)
        return await runner.execute(scenario, stop_event)
    finally:
        await api_client.close()
