# src/ccmon/core/tracker.py
"""
Keeps an in-memory mirror of the cluster's nodes and pods current through
long-lived watch streams.

The tracker owns the node, pod and node price maps. They are only mutated by
the two watch loops through the locked ``add_or_update_*``, ``remove_*`` and
``replace_*`` methods. Everything else reads them through ``snapshot()``.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

from kubernetes_asyncio import watch

from ..models.cluster import ClusterSnapshot, PodPhase, TrackedNode, TrackedPod
from ..pricing.base import PricingProvider

logger = logging.getLogger(__name__)

INSTANCE_TYPE_LABELS = ("node.kubernetes.io/instance-type", "beta.kubernetes.io/instance-type")

ADDED = "ADDED"
MODIFIED = "MODIFIED"
DELETED = "DELETED"
ERROR = "ERROR"
# Synthetic event carrying the full object list at the start of a subscription.
RESYNC = "RESYNC"


class ChangeFeed(ABC):
    """A source of (event type, object) change notifications."""

    @abstractmethod
    def stream(self) -> AsyncIterator[Tuple[str, Any]]:
        """
        Opens a fresh subscription and yields change events until the server
        closes it. Each call starts a new subscription. A RESYNC event, whose
        object is the list of every current object, replaces the tracked set.
        """
        pass


class KubernetesChangeFeed(ChangeFeed):
    """
    Change feed backed by a list call such as ``list_node``.

    Each subscription lists the current objects, yields them as one RESYNC
    event, then watches from the resourceVersion of that list.
    """

    def __init__(self, list_func: Callable, **kwargs):
        self._list_func = list_func
        self._kwargs = kwargs

    async def stream(self) -> AsyncIterator[Tuple[str, Any]]:
        listing = await self._list_func(**self._kwargs)
        yield RESYNC, listing.items or []
        resource_version = listing.metadata.resource_version if listing.metadata else None
        async with watch.Watch() as w:
            async for event in w.stream(self._list_func, resource_version=resource_version, **self._kwargs):
                yield event["type"], event["object"]


def node_feed(core_api, label_selector: Optional[str] = None) -> KubernetesChangeFeed:
    kwargs = {"label_selector": label_selector} if label_selector else {}
    return KubernetesChangeFeed(core_api.list_node, **kwargs)


def pod_feed(core_api, namespace: str) -> KubernetesChangeFeed:
    return KubernetesChangeFeed(core_api.list_namespaced_pod, namespace=namespace)


def _instance_type(labels: Dict[str, str]) -> Optional[str]:
    for label in INSTANCE_TYPE_LABELS:
        if labels.get(label):
            return labels[label]
    return None


def node_from_k8s(node) -> TrackedNode:
    """Converts a V1Node into a TrackedNode (without price)."""
    labels = node.metadata.labels or {}
    return TrackedNode(name=node.metadata.name, instance_type=_instance_type(labels))


def pod_from_k8s(pod) -> TrackedPod:
    """Converts a V1Pod into a TrackedPod."""
    phase = pod.status.phase if pod.status else None
    return TrackedPod(uid=pod.metadata.uid, name=pod.metadata.name, phase=PodPhase.from_k8s(phase))


class ClusterStateTracker:
    """
    Concurrency-safe store of tracked nodes and pods.

    Writers and readers share one ``asyncio.Lock``; no critical section awaits,
    so holding it never blocks the event loop.
    """

    def __init__(self, pricing: PricingProvider):
        self._pricing = pricing
        self._lock = asyncio.Lock()
        self._nodes: Dict[str, TrackedNode] = {}
        self._pods: Dict[str, TrackedPod] = {}
        self._node_prices: Dict[str, float] = {}

    async def add_or_update_node(self, node: TrackedNode) -> TrackedNode:
        """
        Tracks ``node`` and resolves its hourly price. A pricing miss is logged
        and leaves the node without a price, so it contributes nothing to cost.
        """
        price = self._pricing.on_demand_price(node.instance_type)
        node = node.model_copy(update={"hourly_price": price})
        async with self._lock:
            self._nodes[node.name] = node
            if price is not None:
                self._node_prices[node.name] = price
            else:
                self._node_prices.pop(node.name, None)
        if price is None:
            logger.warning("unable to find node price for %s/%s", node.name, node.instance_type)
        return node

    async def remove_node(self, name: str) -> None:
        async with self._lock:
            self._nodes.pop(name, None)
            self._node_prices.pop(name, None)

    async def replace_nodes(self, nodes: List[TrackedNode]) -> None:
        """Replaces every tracked node with ``nodes``, dropping nodes that are gone."""
        priced = []
        for node in nodes:
            price = self._pricing.on_demand_price(node.instance_type)
            if price is None:
                logger.warning("unable to find node price for %s/%s", node.name, node.instance_type)
            priced.append(node.model_copy(update={"hourly_price": price}))
        async with self._lock:
            self._nodes = {node.name: node for node in priced}
            self._node_prices = {node.name: node.hourly_price for node in priced if node.hourly_price is not None}

    async def replace_pods(self, pods: List[TrackedPod]) -> None:
        async with self._lock:
            self._pods = {pod.uid: pod for pod in pods}

    async def add_or_update_pod(self, pod: TrackedPod) -> None:
        async with self._lock:
            self._pods[pod.uid] = pod

    async def remove_pod(self, uid: str) -> None:
        async with self._lock:
            self._pods.pop(uid, None)

    async def snapshot(self) -> ClusterSnapshot:
        """Copies nodes, pods, prices and the pending count under one lock acquisition."""
        async with self._lock:
            nodes = dict(self._nodes)
            pods = dict(self._pods)
            prices = dict(self._node_prices)
        pending = sum(1 for pod in pods.values() if pod.phase is PodPhase.PENDING)
        return ClusterSnapshot(nodes=nodes, pods=pods, node_prices=prices, pending_pods=pending)

    async def pending_pod_count(self) -> int:
        async with self._lock:
            return sum(1 for pod in self._pods.values() if pod.phase is PodPhase.PENDING)

    async def _apply_node_event(self, event_type: str, obj) -> None:
        if event_type == RESYNC:
            await self.replace_nodes([node_from_k8s(item) for item in obj])
        elif event_type in (ADDED, MODIFIED):
            await self.add_or_update_node(node_from_k8s(obj))
        elif event_type == DELETED:
            await self.remove_node(obj.metadata.name)

    async def _apply_pod_event(self, event_type: str, obj) -> None:
        if event_type == RESYNC:
            await self.replace_pods([pod_from_k8s(item) for item in obj])
        elif event_type in (ADDED, MODIFIED):
            await self.add_or_update_pod(pod_from_k8s(obj))
        elif event_type == DELETED:
            await self.remove_pod(obj.metadata.uid)

    async def watch_nodes(self, feed: ChangeFeed) -> None:
        """Mirrors the node feed until cancelled."""
        await self._watch("node", feed, self._apply_node_event)

    async def watch_pods(self, feed: ChangeFeed) -> None:
        """Mirrors the pod feed until cancelled."""
        await self._watch("pod", feed, self._apply_pod_event)

    async def _watch(self, kind: str, feed: ChangeFeed, apply: Callable) -> None:
        # Reopen the subscription whenever it ends, for as long as the task lives.
        try:
            while True:
                logger.info("starting %s watch", kind)
                events = feed.stream()
                try:
                    async for event_type, obj in events:
                        if event_type == ERROR:
                            logger.warning("%s watch reported an error: %s", kind, obj)
                            break
                        await apply(event_type, obj)
                    logger.info("restarting %s watch", kind)
                except Exception as e:
                    logger.error("watching %ss, %s", kind, e)
                finally:
                    aclose = getattr(events, "aclose", None)
                    if aclose is not None:
                        await aclose()
                # Let other tasks run even if the feed fails immediately.
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            logger.info("%s watch cancelled.", kind.capitalize())
            raise
