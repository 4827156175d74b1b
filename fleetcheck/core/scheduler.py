"""Background job scheduler for re-sending failed answer writes."""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from fleetcheck.core.config import settings
from fleetcheck.core.services import get_services

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def pending_sync_job():
    """Re-send answer writes that failed since the last run, then drop idle checks."""
    try:
        checklist = get_services().checklist
        resent = checklist.retry_pending_writes()
        if resent:
            logger.info(f"Pending sync re-sent {resent} checks")
        checklist.release_idle()
    except Exception as e:
        logger.error(f"Pending sync failed: {e}")


def start_scheduler():
    """Start the background scheduler."""
    scheduler.add_job(
        pending_sync_job,
        trigger=IntervalTrigger(minutes=settings.pending_sync_interval_minutes),
        id="pending_answer_sync",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, re-sending pending answers every "
        f"{settings.pending_sync_interval_minutes} minutes"
    )


def shutdown_scheduler():
    """Graceful shutdown."""
    scheduler.shutdown(wait=False)
    logger.info("Scheduler shut down")
