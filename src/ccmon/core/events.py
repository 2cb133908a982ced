# src/ccmon/core/events.py
"""
Fires scenario scaling events at their offsets from the scenario start.

Each event gets its own task that sleeps until its deadline and then scales
the target workload. Events are independent: there is no ordering between
events with equal offsets, and a failing event never affects the others.
Two events scaling the same workload at the same moment race; the last write
wins.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

from ..models.scenario import ScalingEvent, Workload
from .workloads import WorkloadManager

logger = logging.getLogger(__name__)


class EventScheduler:
    def __init__(
        self,
        workloads: WorkloadManager,
        workloads_by_name: Dict[str, Workload],
        clock: Callable[[], float] = time.monotonic,
    ):
        self._workloads = workloads
        self._by_name = workloads_by_name
        self._clock = clock
        self._start: Optional[float] = None
        self.tasks: List[asyncio.Task] = []

    def _log(self, message: str, *args) -> None:
        elapsed = 0.0 if self._start is None else self._clock() - self._start
        logger.info("[%.3fs] " + message, elapsed, *args)

    def start(self, events: List[ScalingEvent], start: Optional[float] = None) -> List[asyncio.Task]:
        """Spawns one waiter per event, with deadlines relative to ``start``."""
        self._start = self._clock() if start is None else start
        for event in events:
            task = asyncio.create_task(self._wait_and_fire(event))
            self.tasks.append(task)
        logger.debug("Scheduled %d scaling events.", len(events))
        return self.tasks

    async def _wait_and_fire(self, event: ScalingEvent) -> bool:
        deadline = self._start + event.time.total_seconds()
        delay = deadline - self._clock()
        if delay > 0:
            await asyncio.sleep(delay)
        return await self.fire(event)

    async def fire(self, event: ScalingEvent) -> bool:
        """Applies ``event`` now. Errors are logged and reported as False."""
        workload = self._by_name.get(event.deployment)
        if workload is None:
            logger.error("event references unknown deployment %s", event.deployment)
            return False

        self._log("scaling %s to %d replicas", event.deployment, event.replicas)
        try:
            return await self._workloads.scale(workload, event.replicas)
        except Exception as e:
            self._log("unable to scale %s, %s", event.deployment, e)
            return False

    async def stop(self) -> None:
        """Cancels events that have not fired yet."""
        for task in self.tasks:
            task.cancel()
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()
