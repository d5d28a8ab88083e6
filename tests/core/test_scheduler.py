# tests/core/test_scheduler.py

import asyncio
from unittest.mock import MagicMock

import pytest

from costkube.core.scheduler import Scheduler


@pytest.mark.asyncio
async def test_add_job_schedules_correctly():
    """
    Tests that the Scheduler's add_job method correctly adds a task to the asyncio loop.
    """
    scheduler = Scheduler()
    mock_job = MagicMock()

    async def async_job():
        mock_job()

    scheduler.add_job(async_job, interval_seconds=3600)
    await asyncio.sleep(0)

    assert len(scheduler.tasks) == 1
    assert not scheduler.tasks[0].done()
    mock_job.assert_called_once()

    await scheduler.stop()


@pytest.mark.asyncio
async def test_add_job_from_string_schedules_correctly():
    scheduler = Scheduler()

    async def async_job():
        pass

    scheduler.add_job_from_string(async_job, "1m")

    assert len(scheduler.tasks) == 1
    await scheduler.stop()
    assert scheduler.tasks == []


@pytest.mark.asyncio
async def test_add_job_from_string_rejects_bad_interval():
    scheduler = Scheduler()

    async def async_job():
        pass

    with pytest.raises(ValueError):
        scheduler.add_job_from_string(async_job, "every minute")
    with pytest.raises(ValueError):
        scheduler.add_job(async_job, 0)


@pytest.mark.asyncio
async def test_failing_job_keeps_running():
    scheduler = Scheduler()
    calls = []

    async def flaky_job():
        calls.append(1)
        raise RuntimeError("boom")

    scheduler.add_job(flaky_job, interval_seconds=0.01)
    await asyncio.sleep(0.05)
    await scheduler.stop()

    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_stop_cancels_tasks():
    scheduler = Scheduler()

    async def async_job():
        pass

    task = scheduler.add_job(async_job, interval_seconds=3600)
    await scheduler.stop()

    assert task.cancelled()
