from __future__ import annotations

from abc import ABC, abstractmethod

from ..models.metrics import CostSample


class BaseSink(ABC):
    """Abstract base class for telemetry sinks.

    A sink receives one sample per slow-timer tick, must not grow without bound
    between flushes, and becomes unusable once closed.
    """

    @abstractmethod
    async def record(self, sample: CostSample) -> None:
        """Append one sample to the record."""
        raise NotImplementedError()

    async def flush(self) -> None:
        """Persist buffered samples."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Flush and release the underlying resource."""
        raise NotImplementedError()
