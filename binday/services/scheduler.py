import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from binday.config import settings
from binday.services.lookup import CollectionService

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def local_today() -> date:
    return datetime.now(ZoneInfo(settings.timezone)).date()


def start_scheduler(service: CollectionService):
    """Start the nightly stale-schedule sweep."""
    hour, minute = settings.refresh_schedule.split(":")
    scheduler.add_job(
        _run_refresh_job,
        "cron",
        args=[service],
        hour=int(hour),
        minute=int(minute),
        timezone=settings.timezone,
        id="nightly_refresh",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started: stale refresh at %s", settings.refresh_schedule)


def stop_scheduler():
    """Shut down the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


async def _run_refresh_job(service: CollectionService):
    logger.info("Scheduled stale refresh starting")
    count = await service.refresh_stale(local_today())
    logger.info("Scheduled stale refresh complete: %d properties refreshed", count)
