import asyncio
from unittest.mock import MagicMock

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from hunter.jobs.cleanup import PURGE_JOB_ID, CleanupService


@pytest.mark.asyncio
async def test_cleanup_service_registers_jobs() -> None:
    """CleanupService should register its recurring jobs."""
    scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
    service = CleanupService(resolver=MagicMock(), scheduler=scheduler, interval_minutes=5)

    service.start()
    scheduler.start()

    job = scheduler.get_job(PURGE_JOB_ID)
    assert job is not None
    assert job.trigger.interval.total_seconds() == 300

    scheduler.shutdown(wait=False)


@pytest.mark.asyncio
async def test_purge_job_purges_resolver_cache() -> None:
    resolver = MagicMock()
    resolver.purge_cache.return_value = 3
    service = CleanupService(resolver=resolver, scheduler=MagicMock())

    await service._purge_resolver_cache()

    resolver.purge_cache.assert_called_once_with()


@pytest.mark.asyncio
async def test_purge_job_survives_errors() -> None:
    resolver = MagicMock()
    resolver.purge_cache.side_effect = RuntimeError("boom")
    service = CleanupService(resolver=resolver, scheduler=MagicMock())

    await service._purge_resolver_cache()
