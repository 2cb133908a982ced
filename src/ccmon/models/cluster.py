# src/ccmon/models/cluster.py
"""
Pydantic models for the monitor's local mirror of cluster nodes and pods.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PodPhase(str, Enum):
    """Scheduling phase of a tracked pod. Only Pending matters for accounting."""

    PENDING = "Pending"
    RUNNING = "Running"
    OTHER = "Other"

    @classmethod
    def from_k8s(cls, phase: Optional[str]) -> "PodPhase":
        if phase == "Pending":
            return cls.PENDING
        if phase == "Running":
            return cls.RUNNING
        return cls.OTHER


class TrackedNode(BaseModel):
    """
    A cluster node as seen through the node watch.

    Attributes:
        name: Node name, unique key.
        instance_type: Value of the instance-type label, if any.
        hourly_price: On-demand hourly price; None when the pricing lookup missed.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Node name")
    instance_type: Optional[str] = Field(None, description="Instance type label")
    hourly_price: Optional[float] = Field(None, description="Hourly on-demand price")


class TrackedPod(BaseModel):
    """A pod in the watched namespace, keyed by its UID."""

    model_config = ConfigDict(frozen=True)

    uid: str = Field(..., description="Pod UID")
    name: Optional[str] = Field(None, description="Pod name")
    phase: PodPhase = Field(PodPhase.OTHER, description="Scheduling phase")


class ClusterSnapshot(BaseModel):
    """
    A consistent copy of the tracker's state taken under a single lock
    acquisition. Mutating it never affects the tracker.
    """

    nodes: Dict[str, TrackedNode] = Field(default_factory=dict)
    pods: Dict[str, TrackedPod] = Field(default_factory=dict)
    node_prices: Dict[str, float] = Field(default_factory=dict)
    pending_pods: int = 0

    @property
    def hourly_cost(self) -> float:
        """Burn rate: the sum of hourly prices of all tracked nodes."""
        return sum(self.node_prices.get(name, 0.0) for name in self.nodes)
