# src/ccmon/core/monitor.py
"""
The cost monitor wires the tracker, the accumulator and the telemetry sink
together and owns their background tasks for the duration of a run.
"""

import asyncio
import logging
from typing import List, Optional

from ..exporters.base_exporter import BaseSink
from ..exporters.csv_exporter import CSVTelemetrySink
from ..models.metrics import AccumulatorState
from ..pricing.base import PricingProvider
from .accumulator import CostAccumulator
from .config import config
from .exceptions import PricingError
from .scheduler import Scheduler
from .tracker import ChangeFeed, ClusterStateTracker, node_feed, pod_feed

logger = logging.getLogger(__name__)


class CostMonitor:
    def __init__(
        self,
        tracker: ClusterStateTracker,
        accumulator: CostAccumulator,
        sink: BaseSink,
        nodes: ChangeFeed,
        pods: ChangeFeed,
    ):
        self.tracker = tracker
        self.accumulator = accumulator
        self.sink = sink
        self._node_feed = nodes
        self._pod_feed = pods
        self._scheduler = Scheduler()
        self._watch_tasks: List[asyncio.Task] = []
        self._started = False
        self._stopped = False

    @classmethod
    async def create(
        cls,
        name: str,
        core_api,
        pricing: PricingProvider,
        node_selector: Optional[str] = None,
        namespace: Optional[str] = None,
        output_dir: Optional[str] = None,
    ) -> "CostMonitor":
        """
        Refreshes pricing and builds a monitor for the scenario called ``name``.

        Raises:
            PricingError: If the initial pricing refresh fails.
        """
        try:
            await pricing.refresh()
        except PricingError:
            raise
        except Exception as e:
            raise PricingError(f"refreshing pricing, {e}") from e

        tracker = ClusterStateTracker(pricing)
        sink = CSVTelemetrySink.for_scenario(name, output_dir or config.OUTPUT_DIR)
        accumulator = CostAccumulator(
            tracker,
            sink,
            pending_interval=config.pending_sample_seconds,
            cost_interval=config.cost_sample_seconds,
            progress_interval=config.progress_log_seconds,
        )
        return cls(
            tracker,
            accumulator,
            sink,
            nodes=node_feed(core_api, node_selector),
            pods=pod_feed(core_api, namespace or config.NAMESPACE),
        )

    async def start(self, start: Optional[float] = None) -> None:
        """Opens the sink and starts the watches and both samplers."""
        if self._started:
            return
        self._started = True
        open_sink = getattr(self.sink, "open", None)
        if open_sink is not None:
            await open_sink()
        self.accumulator.start(start)
        self._watch_tasks = [
            asyncio.create_task(self.tracker.watch_nodes(self._node_feed)),
            asyncio.create_task(self.tracker.watch_pods(self._pod_feed)),
        ]
        self._scheduler.add_job(self.accumulator.sample_pending, self.accumulator.pending_interval)
        self._scheduler.add_job(self.accumulator.sample_cost, self.accumulator.cost_interval)

    async def stop(self) -> AccumulatorState:
        """Stops all tasks, closes the sink and logs the total cost."""
        state = await self.accumulator.state()
        if self._stopped:
            return state
        self._stopped = True

        await self._scheduler.stop()
        for task in self._watch_tasks:
            task.cancel()
        if self._watch_tasks:
            await asyncio.gather(*self._watch_tasks, return_exceptions=True)
        self._watch_tasks.clear()

        try:
            await self.sink.close()
        except Exception as e:
            logger.error("closing telemetry sink, %s", e)

        state = await self.accumulator.state()
        logger.info("total cost: %f", state.cumulative_cost)
        return state
