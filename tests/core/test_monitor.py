# tests/core/test_monitor.py

import asyncio
from unittest.mock import MagicMock

import pytest

from ccmon.core.accumulator import CostAccumulator
from ccmon.core.exceptions import PricingError
from ccmon.core.monitor import CostMonitor
from ccmon.core.tracker import ClusterStateTracker
from ccmon.exporters.base_exporter import BaseSink
from ccmon.exporters.csv_exporter import CSVTelemetrySink


class ListSink(BaseSink):
    def __init__(self):
        self.samples = []
        self.opened = False
        self.closed = False

    async def open(self):
        self.opened = True

    async def record(self, sample):
        self.samples.append(sample)

    async def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_monitor_tracks_samples_and_stops(pricing, feed, node, pod):
    tracker = ClusterStateTracker(pricing)
    sink = ListSink()
    accumulator = CostAccumulator(tracker, sink, pending_interval=0.01, cost_interval=0.02)
    nodes = feed([[("ADDED", node("n1", "m5.large"))]])
    pods = feed([[("ADDED", pod("a", "Pending"))]])
    monitor = CostMonitor(tracker, accumulator, sink, nodes=nodes, pods=pods)

    await monitor.start()
    await asyncio.wait_for(nodes.exhausted.wait(), timeout=2)
    await asyncio.wait_for(pods.exhausted.wait(), timeout=2)
    await asyncio.sleep(0.15)
    state = await monitor.stop()

    assert sink.opened and sink.closed
    assert sink.samples
    assert state.cumulative_cost > 0
    assert state.pending_pod_seconds > 0
    assert sink.samples[-1].nodes == 1

    recorded = len(sink.samples)
    await asyncio.sleep(0.05)
    assert len(sink.samples) == recorded

    # stopping twice is harmless
    assert (await monitor.stop()).cumulative_cost == state.cumulative_cost


@pytest.mark.asyncio
async def test_create_refreshes_pricing_and_builds_feeds(fake_pricing, tmp_path):
    pricing = fake_pricing({"m5.large": 0.096})
    core_api = MagicMock()

    monitor = await CostMonitor.create(
        "burst", core_api, pricing, node_selector="pool=bench", namespace="bench", output_dir=str(tmp_path)
    )

    assert pricing.refreshes == 1
    assert pricing.spot_refreshes == 1
    assert isinstance(monitor.sink, CSVTelemetrySink)
    assert monitor.sink.path.startswith(str(tmp_path))
    assert monitor.accumulator.pending_interval == 0.25
    assert monitor.accumulator.cost_interval == 1.0
    assert monitor._node_feed._kwargs == {"label_selector": "pool=bench"}
    assert monitor._pod_feed._kwargs == {"namespace": "bench"}


@pytest.mark.asyncio
async def test_create_fails_fast_on_pricing_error(fake_pricing, tmp_path):
    with pytest.raises(PricingError, match="pricing API unavailable"):
        await CostMonitor.create("burst", MagicMock(), fake_pricing(fail=True), output_dir=str(tmp_path))
