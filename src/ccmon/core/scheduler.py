import asyncio
import logging
from typing import Callable, Coroutine, List

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Runs async jobs on fixed intervals, like a ticker.

    The first run happens one interval after the job is added. Deadlines are
    kept on the interval grid, so a slow run does not shift later ones; ticks
    missed while a run overran are dropped rather than replayed. A failing run
    is logged without stopping later ones.
    """

    def __init__(self):
        self.tasks: List[asyncio.Task] = []

    async def _run_periodically(self, interval_seconds: float, job_func: Callable[[], Coroutine]):
        loop = asyncio.get_running_loop()
        name = job_func.__name__
        deadline = loop.time() + interval_seconds
        try:
            while True:
                await asyncio.sleep(max(0.0, deadline - loop.time()))
                try:
                    await job_func()
                except Exception as e:
                    logger.error("Error in scheduled job '%s': %s", name, e, exc_info=True)

                deadline += interval_seconds
                now = loop.time()
                if deadline < now:
                    missed = int((now - deadline) // interval_seconds) + 1
                    logger.debug("Job '%s' fell behind, dropping %d tick(s).", name, missed)
                    deadline += missed * interval_seconds
        except asyncio.CancelledError:
            logger.debug("Job '%s' cancelled.", name)
            raise

    def add_job(self, job_func: Callable[[], Coroutine], interval_seconds: float) -> asyncio.Task:
        if interval_seconds <= 0:
            raise ValueError(f"Invalid interval for job '{job_func.__name__}': {interval_seconds}")

        task = asyncio.create_task(self._run_periodically(interval_seconds, job_func))
        self.tasks.append(task)
        logger.debug("Scheduled job '%s' to run every %ss.", job_func.__name__, interval_seconds)
        return task

    async def stop(self):
        """Cancels all scheduled jobs and waits for them to finish."""
        for task in self.tasks:
            task.cancel()
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()
