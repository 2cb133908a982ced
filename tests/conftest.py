# tests/conftest.py

import asyncio
from typing import Dict, List, Optional

import pytest
from kubernetes_asyncio import client

from ccmon.core.tracker import ChangeFeed
from ccmon.pricing.base import PricingProvider


class FakePricingProvider(PricingProvider):
    """Pricing provider serving a fixed table from construction, counting refreshes."""

    def __init__(self, on_demand: Optional[Dict[str, float]] = None, fail: bool = False):
        super().__init__()
        self._table = dict(on_demand or {})
        self._on_demand = dict(self._table)
        self._fail = fail
        self.refreshes = 0
        self.spot_refreshes = 0

    async def refresh_on_demand_pricing(self) -> None:
        self.refreshes += 1
        if self._fail:
            raise RuntimeError("pricing API unavailable")
        self._on_demand = dict(self._table)

    async def refresh_spot_pricing(self) -> None:
        self.spot_refreshes += 1
        self._spot = {}


class FakeFeed(ChangeFeed):
    """
    Replays scripted subscriptions. Each session is a list of (type, object)
    events, or an exception raised when the session opens. Once all sessions
    are used up the feed blocks until cancelled.
    """

    def __init__(self, sessions: Optional[List] = None):
        self.sessions = list(sessions or [])
        self.opened = 0
        self.exhausted = asyncio.Event()

    async def stream(self):
        self.opened += 1
        if not self.sessions:
            self.exhausted.set()
            await asyncio.Event().wait()
            return
        session = self.sessions.pop(0)
        if isinstance(session, Exception):
            raise session
        for event in session:
            yield event


def make_node(name: str, instance_type: Optional[str] = None, label: str = "node.kubernetes.io/instance-type"):
    labels = {label: instance_type} if instance_type else {}
    return client.V1Node(metadata=client.V1ObjectMeta(name=name, labels=labels))


def make_pod(uid: str, phase: Optional[str] = "Pending", name: Optional[str] = None):
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name or f"pod-{uid}", uid=uid),
        status=client.V1PodStatus(phase=phase) if phase else None,
    )


@pytest.fixture
def pricing():
    return FakePricingProvider({"m5.large": 0.096, "m5.xlarge": 0.192, "c5.large": 0.085})


@pytest.fixture(autouse=True)
def mock_settings_env_vars(monkeypatch):
    """
    Keeps configuration predictable regardless of the developer's environment.
    """
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("PRICING_SOURCE", "static")
    monkeypatch.setenv("CCMON_NAMESPACE", "default")


@pytest.fixture
def feed():
    """Factory for scripted change feeds: ``feed([[("ADDED", obj)], RuntimeError()])``."""
    return FakeFeed


@pytest.fixture
def node():
    return make_node


@pytest.fixture
def pod():
    return make_pod


@pytest.fixture
def fake_pricing():
    return FakePricingProvider
