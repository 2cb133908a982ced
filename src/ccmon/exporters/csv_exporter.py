import csv
import io
import logging
import os
from datetime import datetime

import aiofiles

from ..core.exceptions import SinkClosedError
from ..models.metrics import CSV_HEADER, CostSample
from .base_exporter import BaseSink

logger = logging.getLogger(__name__)


class CSVTelemetrySink(BaseSink):
    """
    Appends cost samples to a CSV file.

    Rows are buffered in memory and written out on every ``flush()``; the
    monitor flushes after each sample so the buffer holds at most one row.
    """

    def __init__(self, path: str):
        self.path = path
        self._buffer = io.StringIO()
        self._writer = csv.writer(self._buffer)
        self._fh = None
        self._closed = False

    @classmethod
    def for_scenario(cls, name: str, output_dir: str = ".", now: datetime | None = None) -> "CSVTelemetrySink":
        """Builds a sink writing to ``<output_dir>/<name>-cost-<timestamp>.csv``."""
        stamp = (now or datetime.now()).strftime("%Y_%m_%d_%H_%M_%S")
        filename = f"{name}-cost-{stamp}.csv".replace(" ", "-")
        return cls(os.path.join(output_dir, filename))

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> None:
        """Creates the file and writes the header row."""
        if self._closed:
            raise SinkClosedError(f"telemetry sink {self.path} is closed")
        if self._fh is not None:
            return
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._fh = await aiofiles.open(self.path, "w", encoding="utf-8", newline="")
        self._writer.writerow(CSV_HEADER)
        await self.flush()
        logger.info("logging to %s", self.path)

    async def record(self, sample: CostSample) -> None:
        if self._closed:
            raise SinkClosedError(f"telemetry sink {self.path} is closed")
        if self._fh is None:
            await self.open()
        self._writer.writerow(sample.to_row())

    async def flush(self) -> None:
        if self._fh is None:
            return
        pending = self._buffer.getvalue()
        # rows leave the buffer before the write is awaited
        self._buffer.seek(0)
        self._buffer.truncate(0)
        if pending:
            await self._fh.write(pending)
        await self._fh.flush()

    async def close(self) -> None:
        if self._closed:
            return
        try:
            await self.flush()
        finally:
            if self._fh is not None:
                await self._fh.close()
                self._fh = None
            self._closed = True
