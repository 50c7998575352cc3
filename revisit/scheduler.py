"""
In-process trigger: periodically runs the due-reminder processor.
"""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from revisit.config import get_settings
from revisit.errors import ReminderError
from revisit.services import processor

logger = logging.getLogger("revisit.scheduler")

# Global scheduler instance
_scheduler: Optional[AsyncIOScheduler] = None


async def check_reminders_job():
    """Scheduler job body. Errors are logged so the job keeps firing."""
    try:
        result = await processor.process_due()
    except ReminderError as e:
        logger.error("Scheduled reminder check failed: %s", e.message)
        return
    except Exception as e:
        logger.exception("Unexpected error in scheduled reminder check: %s", e)
        return

    if result.processed:
        logger.info("Scheduled check processed %d reminder(s)", result.processed)


async def start_reminder_scheduler():
    """Start the background reminder scheduler."""
    global _scheduler

    if _scheduler is not None:
        logger.warning("Scheduler already running")
        return

    settings = get_settings()

    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        check_reminders_job,
        trigger=IntervalTrigger(minutes=settings.reminder_check_interval_minutes),
        id="reminder_checker",
        name="Deliver due reminders",
        replace_existing=True,
        max_instances=1,  # Prevent overlapping runs
        coalesce=True,
    )

    _scheduler.start()
    logger.info("Reminder scheduler started (checking every %d minutes)", settings.reminder_check_interval_minutes)


async def stop_reminder_scheduler():
    """Stop the background reminder scheduler."""
    global _scheduler

    if _scheduler is None:
        logger.warning("Scheduler not running")
        return

    _scheduler.shutdown(wait=False)
    _scheduler = None
    logger.info("Reminder scheduler stopped")


def is_scheduler_running() -> bool:
    return _scheduler is not None and _scheduler.running
