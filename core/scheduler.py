import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import settings
from core.database import get_db
from core.notifications import clear_old_notifications
from core.time_utils import get_current_time

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

async def run_housekeeping(db=None):
    """
    Periodic cleanup:
    1. Delete notifications older than the retention window.
    """
    db = db if db is not None else get_db()
    started = get_current_time()
    logger.info("Housekeeping started at %s", started)
    try:
        removed = await clear_old_notifications(db, settings.NOTIFICATION_RETENTION_DAYS)
    except Exception:
        logger.exception("Housekeeping failed")
        raise
    logger.info("Housekeeping completed: %d notifications removed", removed)
    return removed

def start_scheduler():
    scheduler.add_job(
        run_housekeeping,
        IntervalTrigger(hours=settings.HOUSEKEEPING_INTERVAL_HOURS),
        id="housekeeping",
        replace_existing=True
    )
    scheduler.start()
    logger.info("Scheduler started (every %dh)", settings.HOUSEKEEPING_INTERVAL_HOURS)

def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
