"""Scheduled cleanup jobs."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from hunter.resolver import Resolver
from hunter.utils.logging import get_logger

logger = get_logger(__name__)

PURGE_JOB_ID = "purge_resolver_cache"


class CleanupService:
    """Periodic purge of expired resolver cache entries."""

    def __init__(
        self,
        resolver: Resolver,
        scheduler: AsyncIOScheduler,
        interval_minutes: int = 60,
    ):
        self.resolver = resolver
        self.scheduler = scheduler
        self.interval_minutes = interval_minutes

    def start(self) -> None:
        """Register cleanup jobs with the scheduler."""
        # Reads already evict lazily; this only bounds memory for idle symbols.
        self.scheduler.add_job(
            self._purge_resolver_cache,
            trigger="interval",
            minutes=self.interval_minutes,
            id=PURGE_JOB_ID,
            replace_existing=True,
        )
        logger.info(
            "cleanup_jobs_started",
            jobs=[PURGE_JOB_ID],
            interval_minutes=self.interval_minutes,
        )

    async def _purge_resolver_cache(self) -> None:
        """Remove expired symbol resolutions."""
        try:
            removed = self.resolver.purge_cache()
            logger.info("purge_resolver_cache_success", removed=removed)
        except Exception as exc:
            logger.error("purge_resolver_cache_failed", error=str(exc))


__all__ = ["CleanupService", "PURGE_JOB_ID"]
