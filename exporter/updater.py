"""Background loop that feeds sample data into the example instruments."""
import asyncio
import logging
import time
from contextlib import suppress
from typing import Callable, Optional

from exporter.metrics import ExampleMetrics

logger = logging.getLogger("exporter.updater")


class MetricsUpdater:
    """Every ``interval`` seconds: bump the counter and observe ``clock()``.

    The observed value is wall-clock time, which is sample data and not a
    real duration.
    """

    def __init__(self, metrics: ExampleMetrics, *, interval: float = 5.0,
                 clock: Callable[[], float] = time.time):
        self.metrics = metrics
        self.interval = interval
        self.clock = clock
        self.cycles = 0
        self._task: Optional[asyncio.Task] = None

    def tick(self) -> float:
        value = self.clock()
        self.metrics.requests_total.inc()
        self.metrics.request_duration.observe(value)
        self.cycles += 1
        return value

    async def run(self):
        while True:
            try:
                value = self.tick()
                logger.debug("cycle %d observed %.3f", self.cycles, value)
            except Exception:
                logger.exception("update cycle failed; continuing")
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._task is not None:
            raise RuntimeError("updater already started")
        logger.info("updating metrics every %.1fs", self.interval)
        self._task = asyncio.create_task(self.run(), name="metrics-updater")
        return self._task

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        logger.info("updater stopped after %d cycles", self.cycles)
