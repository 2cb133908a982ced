# src/ccmon/models/scenario.py
"""
Scenario description: the workloads to create, the timed scaling events to
apply to them and the total run duration.

Scenarios are written in YAML:

    name: burst
    duration: 10m
    nodeSelector: karpenter.sh/provisioner-name=default
    deployments:
      - name: web
        cpu: 1
        memory: 256Mi
    events:
      - time: 0s
        deployment: web
        replicas: 10
    repeatAfter: 2m
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import IO, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..core.exceptions import ScenarioError
from ..utils.date_utils import parse_duration
from ..utils.k8s_utils import parse_cpu_request, parse_label_selector, parse_memory_request, parse_quantity

logger = logging.getLogger(__name__)

WORKLOAD_PREFIX = "ccmon"


class Workload(BaseModel):
    """A placeholder deployment requesting a fixed amount of CPU and memory per replica."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Workload name, unique within the scenario.")
    cpu: str = Field(..., description="CPU request per replica, as a Kubernetes quantity.")
    memory: str = Field(..., description="Memory request per replica, as a Kubernetes quantity.")

    @field_validator("cpu", "memory", mode="before")
    @classmethod
    def _validate_quantity(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        parse_quantity(value, strict=True)
        return value

    @property
    def k8s_name(self) -> str:
        """Name of the Deployment created for this workload."""
        return f"{WORKLOAD_PREFIX}-{self.name}".replace(" ", "-")

    @property
    def millicores(self) -> int:
        return parse_cpu_request(self.cpu)

    @property
    def memory_bytes(self) -> int:
        return parse_memory_request(self.memory)


class ScalingEvent(BaseModel):
    """Scale ``deployment`` to ``replicas`` once ``time`` has elapsed since scenario start."""

    model_config = ConfigDict(frozen=True)

    time: timedelta = Field(..., description="Offset from scenario start.")
    deployment: str = Field(..., description="Name of the workload to scale.")
    replicas: int = Field(..., ge=0, description="Desired replica count.")

    @field_validator("time", mode="before")
    @classmethod
    def _parse_time(cls, value):
        return parse_duration(value)

    @field_validator("time")
    @classmethod
    def _non_negative(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("event time must not be negative")
        return value


class Scenario(BaseModel):
    """A validated scenario. Events are kept sorted by time offset."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Scenario name, used to name the telemetry file.")
    duration: timedelta = Field(..., description="Total run time.")
    deployments: List[Workload] = Field(default_factory=list)
    events: List[ScalingEvent] = Field(default_factory=list)
    repeat_after: Optional[timedelta] = Field(None, alias="repeatAfter")
    node_selector: Optional[str] = Field(None, alias="nodeSelector")

    @field_validator("duration", "repeat_after", mode="before")
    @classmethod
    def _parse_durations(cls, value):
        if value is None:
            return value
        return parse_duration(value)

    @model_validator(mode="after")
    def _validate(self) -> "Scenario":
        if not self.name:
            raise ValueError("scenario has no name")
        if self.duration <= timedelta(0):
            raise ValueError("scenario has zero length duration")
        if not self.events:
            raise ValueError("scenario has no events")

        if self.node_selector is not None:
            try:
                parse_label_selector(self.node_selector)
            except ValueError as e:
                raise ValueError(f"invalid node selector {self.node_selector!r}, {e}") from e

        names = {workload.name for workload in self.deployments}
        if len(names) != len(self.deployments):
            raise ValueError("duplicate deployment names")

        for event in self.events:
            if event.deployment not in names:
                raise ValueError(f"unknown deployment {event.deployment}")

        if self.repeat_after is not None and self.repeat_after <= timedelta(0):
            raise ValueError("repeatAfter must be greater than zero")

        self.events = sorted(self.events, key=lambda ev: ev.time)
        return self

    def peak_replicas(self) -> Dict[str, int]:
        """Highest replica count each workload reaches over the whole run."""
        peaks = {workload.name: 0 for workload in self.deployments}
        for event in self.expanded_events():
            peaks[event.deployment] = max(peaks[event.deployment], event.replicas)
        return peaks

    @property
    def workloads_by_name(self) -> Dict[str, Workload]:
        return {workload.name: workload for workload in self.deployments}

    def expanded_events(self) -> List[ScalingEvent]:
        """
        Returns the events to schedule, with ``repeatAfter`` replays appended.

        Replay k (k >= 1) starts at ``last + k * repeatAfter`` where ``last`` is
        the largest original offset, and contains every original event shifted
        by that start. Only replayed events that fall strictly before the end
        of the scenario are kept. The result is stably sorted by offset.
        """
        return expand_repeats(self.events, self.duration, self.repeat_after)


def expand_repeats(
    events: List[ScalingEvent], duration: timedelta, repeat_after: Optional[timedelta]
) -> List[ScalingEvent]:
    expanded = list(events)
    if repeat_after is not None and events:
        last = max(ev.time for ev in events)
        start = last + repeat_after
        while start < duration:
            for ev in events:
                shifted = start + ev.time
                if shifted < duration:
                    expanded.append(ev.model_copy(update={"time": shifted}))
            start += repeat_after
    return sorted(expanded, key=lambda ev: ev.time)


def open_scenario(stream: Union[str, IO]) -> Scenario:
    """
    Decodes and validates a scenario from YAML text or a file-like object.

    Raises:
        ScenarioError: If the document cannot be decoded or is invalid.
    """
    yaml = YAML(typ="safe")
    try:
        data = yaml.load(stream)
    except YAMLError as e:
        raise ScenarioError(f"decoding scenario, {e}") from e

    if data is None:
        raise ScenarioError("decoding scenario, empty document")
    if not isinstance(data, dict):
        raise ScenarioError("decoding scenario, expected a mapping at the top level")

    try:
        return Scenario.model_validate(data)
    except ValidationError as e:
        raise ScenarioError(f"validating scenario, {_describe(e)}") from e


def load_scenario(path: Union[str, Path]) -> Scenario:
    """Reads and validates the scenario file at ``path``."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            scenario = open_scenario(f)
    except OSError as e:
        raise ScenarioError(f"opening {path}, {e}") from e
    logger.debug("Loaded scenario '%s' from %s", scenario.name, path)
    return scenario


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item.get("loc", ()))
        message = item.get("msg", "")
        # model-level errors arrive as "Value error, <message>"
        message = message.removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)
