# tests/core/test_runner.py

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from kubernetes_asyncio.client.rest import ApiException

from ccmon.core.exceptions import ClusterConnectionError, PricingError, WorkloadError
from ccmon.core.runner import ScenarioRunner, run_scenario
from ccmon.core.workloads import WorkloadManager
from ccmon.models.metrics import AccumulatorState
from ccmon.models.scenario import Scenario


def make_scenario(duration="50ms", events=None):
    return Scenario.model_validate(
        {
            "name": "burst",
            "duration": duration,
            "deployments": [
                {"name": "web", "cpu": "1", "memory": "1Gi"},
                {"name": "batch", "cpu": "2", "memory": "2Gi"},
            ],
            "events": events or [{"time": "0s", "deployment": "web", "replicas": 3}],
        }
    )


def make_monitor():
    monitor = MagicMock()
    monitor.start = AsyncMock()
    monitor.stop = AsyncMock(return_value=AccumulatorState(cumulative_cost=1.5))
    return monitor


def make_manager():
    manager = MagicMock(spec=WorkloadManager)
    manager.create = AsyncMock()
    manager.delete_all = AsyncMock(side_effect=lambda workloads: len(workloads))
    manager.scale = AsyncMock(return_value=True)
    return manager


@pytest.mark.asyncio
async def test_execute_runs_full_lifecycle():
    manager = make_manager()
    monitor = make_monitor()
    runner = ScenarioRunner(manager, monitor)

    state = await runner.execute(make_scenario())

    assert state.cumulative_cost == 1.5
    assert [c.args[0].name for c in manager.create.await_args_list] == ["web", "batch"]
    monitor.start.assert_awaited_once()
    manager.scale.assert_awaited_once()
    assert manager.scale.await_args.args[1] == 3
    [deleted] = manager.delete_all.await_args.args
    assert [w.name for w in deleted] == ["web", "batch"]
    monitor.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_execute_stops_early_on_cancellation(caplog):
    manager = make_manager()
    monitor = make_monitor()
    runner = ScenarioRunner(manager, monitor)
    scenario = make_scenario(duration="1h", events=[{"time": "30m", "deployment": "web", "replicas": 3}])
    stop_event = asyncio.Event()

    async def interrupt():
        await asyncio.sleep(0.05)
        stop_event.set()

    with caplog.at_level(logging.INFO):
        interrupter = asyncio.create_task(interrupt())
        await asyncio.wait_for(runner.execute(scenario, stop_event), timeout=2)
        await interrupter

    assert "interrupted, exiting" in caplog.text
    manager.scale.assert_not_awaited()
    manager.delete_all.assert_awaited_once()
    monitor.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_execute_cleans_up_when_creation_fails():
    manager = make_manager()
    manager.create.side_effect = [None, WorkloadError("creating deployment batch, Conflict")]
    monitor = make_monitor()
    runner = ScenarioRunner(manager, monitor)

    with pytest.raises(WorkloadError):
        await runner.execute(make_scenario())

    monitor.start.assert_not_awaited()
    [deleted] = manager.delete_all.await_args.args
    assert [w.name for w in deleted] == ["web"]
    monitor.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_deletion_failures_do_not_escalate():
    api = MagicMock()
    api.create_namespaced_deployment = AsyncMock()
    api.delete_namespaced_deployment = AsyncMock(side_effect=ApiException(status=500, reason="boom"))
    api.read_namespaced_deployment_scale = AsyncMock(side_effect=ApiException(status=404, reason="NotFound"))
    monitor = make_monitor()
    runner = ScenarioRunner(WorkloadManager(api, namespace="default"), monitor)

    state = await runner.execute(make_scenario())

    assert state.cumulative_cost == 1.5
    assert api.delete_namespaced_deployment.await_count == 2


@pytest.mark.asyncio
async def test_run_scenario_requires_cluster_config():
    with patch("ccmon.core.runner.get_api_client", new=AsyncMock(return_value=None)):
        with pytest.raises(ClusterConnectionError):
            await run_scenario(make_scenario())


@pytest.mark.asyncio
async def test_run_scenario_pricing_failure_creates_nothing(fake_pricing, tmp_path):
    api_client = MagicMock()
    api_client.close = AsyncMock()
    apps_api = MagicMock()
    apps_api.create_namespaced_deployment = AsyncMock()

    with (
        patch("ccmon.core.runner.get_api_client", new=AsyncMock(return_value=api_client)),
        patch("ccmon.core.runner.client.CoreV1Api"),
        patch("ccmon.core.runner.client.AppsV1Api", return_value=apps_api),
    ):
        with pytest.raises(PricingError):
            await run_scenario(make_scenario(), output_dir=str(tmp_path), pricing=fake_pricing(fail=True))

    apps_api.create_namespaced_deployment.assert_not_awaited()
    api_client.close.assert_awaited_once()
