import asyncio
import logging
import time
from typing import Awaitable, Callable, List

from ..utils.date_utils import parse_duration

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


class Scheduler:
    """
    Ticks async jobs on a fixed period, like the price recorder's cycle.

    A job's period is measured from the start of one run to the start of the
    next, so a slow Prometheus round trip does not drift the schedule. A run
    that overruns its period is followed immediately by the next one.
    """

    def __init__(self):
        self.tasks: List[asyncio.Task] = []

    @staticmethod
    def _name(job: Job) -> str:
        return getattr(job, "__qualname__", repr(job))

    async def _tick(self, period: float, job: Job):
        name = self._name(job)
        try:
            while True:
                started = time.monotonic()
                try:
                    await job()
                except Exception as e:
                    # One failed cycle must not stop the ticker.
                    logger.error(f"Scheduled job '{name}' failed: {e}", exc_info=True)
                await asyncio.sleep(max(0.0, period - (time.monotonic() - started)))
        except asyncio.CancelledError:
            logger.info(f"Scheduled job '{name}' cancelled.")
            raise

    def add_job(self, job: Job, interval_seconds: float) -> asyncio.Task:
        """Start ticking ``job`` every ``interval_seconds``; the first run is immediate."""
        if interval_seconds <= 0:
            raise ValueError(f"Interval must be positive, got {interval_seconds}.")
        task = asyncio.create_task(self._tick(interval_seconds, job), name=self._name(job))
        self.tasks.append(task)
        logger.info(f"Job '{self._name(job)}' runs every {interval_seconds:g}s.")
        return task

    def add_job_from_string(self, job: Job, interval: str) -> asyncio.Task:
        """Same as :meth:`add_job` with a duration such as ``1m`` or ``2h``."""
        try:
            seconds = parse_duration(interval).total_seconds()
        except ValueError as e:
            raise ValueError(f"Invalid interval '{interval}': expected <int>[smhd].") from e
        return self.add_job(job, seconds)

    async def stop(self):
        """Cancel every job and wait for the cancellations to land."""
        pending, self.tasks = self.tasks, []
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info(f"Scheduler stopped ({len(pending)} job(s)).")
