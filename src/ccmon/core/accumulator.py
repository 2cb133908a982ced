# src/ccmon/core/accumulator.py
"""
Integrates the tracker's view of the cluster into cost and latency totals.

Two samplers run on independent fixed intervals:

- the pending sampler counts pending pods and adds
  ``pending_count * interval`` to the pending pod seconds (left Riemann sum);
- the cost sampler sums the hourly prices of the tracked nodes and adds
  ``burn_rate * interval / 3600`` to the cumulative cost, then forwards a
  full sample to the telemetry sink.

Both use the nominal interval, not the measured elapsed time, so a delayed
tick under-counts by at most the scheduling jitter.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from ..exporters.base_exporter import BaseSink
from ..models.metrics import AccumulatorState, CostSample
from .tracker import ClusterStateTracker

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600.0


class CostAccumulator:
    """
    Owns the ``AccumulatorState``. Only the two samplers mutate it; the
    dedicated lock serializes them against each other and against readers of
    ``state()``.
    """

    def __init__(
        self,
        tracker: ClusterStateTracker,
        sink: Optional[BaseSink] = None,
        pending_interval: float = 0.25,
        cost_interval: float = 1.0,
        progress_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if pending_interval <= 0 or cost_interval <= 0:
            raise ValueError("sampling intervals must be greater than zero")
        self.tracker = tracker
        self.sink = sink
        self.pending_interval = pending_interval
        self.cost_interval = cost_interval
        self.progress_interval = progress_interval
        self._clock = clock
        self._lock = asyncio.Lock()
        self._state = AccumulatorState()
        self._start: Optional[float] = None
        self._last_reported: Optional[float] = None

    def start(self, start: Optional[float] = None) -> None:
        """Records the scenario start instant used for sample timestamps."""
        self._start = self._clock() if start is None else start
        self._last_reported = self._start

    @property
    def elapsed(self) -> float:
        if self._start is None:
            return 0.0
        return self._clock() - self._start

    async def state(self) -> AccumulatorState:
        async with self._lock:
            return self._state.model_copy()

    async def sample_pending(self) -> int:
        """One fast tick: refresh the pending count and integrate it."""
        pending = await self.tracker.pending_pod_count()
        async with self._lock:
            self._state.pending_pods = pending
            self._state.pending_pod_seconds += pending * self.pending_interval
        return pending

    async def sample_cost(self) -> CostSample:
        """One slow tick: integrate the burn rate and emit a telemetry sample."""
        snapshot = await self.tracker.snapshot()
        hourly_cost = snapshot.hourly_cost
        async with self._lock:
            self._state.hourly_cost = hourly_cost
            self._state.cumulative_cost += hourly_cost * self.cost_interval / SECONDS_PER_HOUR
            sample = CostSample(
                time=self.elapsed,
                nodes=len(snapshot.nodes),
                hourly_cost=hourly_cost,
                cumulative_cost=self._state.cumulative_cost,
                pods=len(snapshot.pods),
                pending_pods=self._state.pending_pods,
                pending_pod_seconds=self._state.pending_pod_seconds,
            )

        if self.sink is not None:
            await self.sink.record(sample)
            await self.sink.flush()

        self._report_progress(sample)
        return sample

    def _report_progress(self, sample: CostSample) -> None:
        now = self._clock()
        if self._last_reported is None:
            self._last_reported = now
        if now - self._last_reported > self.progress_interval:
            logger.info(
                "nodes: %d, per hour cost: %f, cumulative cost: %f pending pod seconds: %f",
                sample.nodes,
                sample.hourly_cost,
                sample.cumulative_cost,
                sample.pending_pod_seconds,
            )
            self._last_reported = now
