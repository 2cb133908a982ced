# src/ccmon/models/metrics.py
"""
Data models for the cost/latency time series produced during a scenario run.
"""

from pydantic import BaseModel, Field


class AccumulatorState(BaseModel):
    """
    Running totals integrated by the cost accumulator.

    ``cumulative_cost`` and ``pending_pod_seconds`` never decrease during a run.
    """

    cumulative_cost: float = Field(0.0, description="Integrated cost in currency units.")
    pending_pod_seconds: float = Field(0.0, description="Integral of the pending pod count over time.")
    pending_pods: int = Field(0, description="Pending pod count at the last fast tick.")
    hourly_cost: float = Field(0.0, description="Burn rate at the last slow tick.")


class CostSample(BaseModel):
    """One row of the telemetry record, taken on a slow-timer tick."""

    time: float = Field(..., description="Seconds since scenario start.")
    nodes: int = Field(..., description="Number of tracked nodes.")
    hourly_cost: float = Field(..., description="Per-hour cost of the tracked nodes.")
    cumulative_cost: float = Field(..., description="Cost accrued since start.")
    pods: int = Field(..., description="Number of tracked pods.")
    pending_pods: int = Field(..., description="Number of pending pods.")
    pending_pod_seconds: float = Field(..., description="Pending pod seconds since start.")

    def to_row(self) -> list:
        return [
            _format_float(self.time),
            str(self.nodes),
            _format_float(self.hourly_cost),
            _format_float(self.cumulative_cost),
            str(self.pods),
            str(self.pending_pods),
            _format_float(self.pending_pod_seconds),
        ]


CSV_HEADER = [
    "time",
    "nodes",
    "per hour cost",
    "cumulative cost",
    "pods",
    "pending pods",
    "pending pod seconds",
]


def _format_float(value: float) -> str:
    # Shortest round-tripping representation, without a trailing ".0".
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text
