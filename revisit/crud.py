import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update

from revisit.database import AsyncSessionLocal
from revisit.models import Reminder, ReminderState
from revisit.timeutils import ensure_utc

logger = logging.getLogger("revisit.crud")


# --- Generic DB helpers ------------------------------------------------------

async def _commit_refresh(session, obj):
    await session.commit()
    await session.refresh(obj)
    return obj


# --- Reminder Operations -----------------------------------------------------

async def create_reminder(
    *,
    email: str,
    problem_url: str,
    scheduled_for: datetime,
    timezone_name: str,
    problem_title: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Reminder:
    async with AsyncSessionLocal() as dbs:
        reminder = Reminder(
            email=email,
            problem_url=problem_url,
            problem_title=problem_title,
            scheduled_for=ensure_utc(scheduled_for),
            timezone=timezone_name,
            state=ReminderState.pending.value,
            created_at=ensure_utc(created_at or datetime.now(timezone.utc)),
        )
        dbs.add(reminder)
        await _commit_refresh(dbs, reminder)
        logger.info("Created reminder %s for %s due %s", reminder.id, email, reminder.scheduled_for)
        return reminder


async def get_due_reminders(now: Optional[datetime] = None) -> List[Reminder]:
    """Pending reminders whose scheduled_for is at or before `now`."""
    cutoff = ensure_utc(now or datetime.now(timezone.utc))
    async with AsyncSessionLocal() as dbs:
        stmt = (
            select(Reminder)
            .where(Reminder.state == ReminderState.pending.value)
            .where(Reminder.scheduled_for <= cutoff)
        )
        result = await dbs.execute(stmt)
        reminders = list(result.scalars())
        logger.info("Found %d due reminder(s)", len(reminders))
        return reminders


async def claim_reminder(reminder_id: str, now: Optional[datetime] = None) -> bool:
    """
    Conditionally move a reminder from pending to sent.

    Returns True only for the caller whose update changed the row; any
    concurrent or later claim on the same reminder gets False.
    """
    async with AsyncSessionLocal() as dbs:
        stmt = (
            update(Reminder)
            .where(Reminder.id == reminder_id)
            .where(Reminder.state == ReminderState.pending.value)
            .values(state=ReminderState.sent.value, sent_at=ensure_utc(now or datetime.now(timezone.utc)))
            .execution_options(synchronize_session=False)
        )
        result = await dbs.execute(stmt)
        await dbs.commit()
        claimed = result.rowcount == 1
        if not claimed:
            logger.info("Reminder %s already claimed, skipping", reminder_id)
        return claimed


async def record_delivery_error(reminder_id: str, error: str) -> bool:
    async with AsyncSessionLocal() as dbs:
        stmt = (
            update(Reminder)
            .where(Reminder.id == reminder_id)
            .values(delivery_error=error)
            .execution_options(synchronize_session=False)
        )
        result = await dbs.execute(stmt)
        await dbs.commit()
        return result.rowcount == 1
