"""Business Event Scheduler - periodic snapshot polling for the event watcher.

Every ``WATCHER_INTERVAL_SECONDS`` the job loads fresh collections from the
database and hands them to the :class:`BusinessEventWatcher`, which raises
notifications for new orders, status changes, low stock, overdue invoices and
upcoming maintenance.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from bizpulse.database import async_session_maker
from bizpulse.notifications.watcher import BusinessEventWatcher
from bizpulse.services.snapshot_loader import load_business_snapshot

logger = logging.getLogger(__name__)

JOB_ID = "business_event_check"

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the scheduler instance."""
    global scheduler
    if scheduler is None:
        scheduler = AsyncIOScheduler()
    return scheduler


async def check_business_events(watcher: BusinessEventWatcher, session_maker=async_session_maker) -> List[str]:
    """
    Main job: load a snapshot and run one watcher tick.

    Returns:
        Ids of the notifications emitted
    """
    logger.info("Starting business event check...")
    try:
        async with session_maker() as db:
            snapshot = await load_business_snapshot(db)
    except Exception as e:
        logger.error(f"Fatal error loading business snapshot: {e}", exc_info=True)
        return []

    return await watcher.process(snapshot)


def start_business_event_scheduler(watcher: BusinessEventWatcher, interval_seconds: int) -> AsyncIOScheduler:
    """Start polling with the first tick running immediately."""
    scheduler = get_scheduler()

    scheduler.add_job(
        check_business_events,
        IntervalTrigger(seconds=interval_seconds),
        args=[watcher],
        id=JOB_ID,
        name="Check business events",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(timezone.utc),
    )

    if not scheduler.running:
        scheduler.start()
        logger.info(f"Business event scheduler started (every {interval_seconds}s)")

    return scheduler


def stop_business_event_scheduler():
    """Stop the business event scheduler."""
    global scheduler

    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Business event scheduler stopped")
    scheduler = None
