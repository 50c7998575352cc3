"""
Due-reminder processor.

Each due reminder is claimed (pending -> sent) before its email goes out, so a
reminder is attempted at most once no matter how many triggers overlap. A
failed delivery is reported and stored on the record; it is never retried.
"""
import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from revisit import crud
from revisit.errors import AuthorizationError, PersistenceError
from revisit.models import Reminder
from revisit.services import mailer
from revisit.timeutils import format_for_display

logger = logging.getLogger("revisit.processor")

CLAIM_FAILED_ERROR = "Failed to update reminder state; delivery skipped"


@dataclass
class ReminderOutcome:
    reminder_id: str
    email: str
    scheduled_for: str
    email_sent: bool
    error: Optional[str] = None


@dataclass
class ProcessResult:
    results: List[ReminderOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.results)


def verify_trigger_token(token: Optional[str], secret: str) -> None:
    if not token or not secret or not hmac.compare_digest(token.encode(), secret.encode()):
        raise AuthorizationError()


async def _process_one(reminder: Reminder, now: datetime) -> Optional[ReminderOutcome]:
    display = format_for_display(reminder.scheduled_for, reminder.timezone)

    try:
        claimed = await crud.claim_reminder(reminder.id, now)
    except SQLAlchemyError as e:
        logger.error("Failed to claim reminder %s: %s", reminder.id, e)
        return ReminderOutcome(reminder.id, reminder.email, display, False, CLAIM_FAILED_ERROR)

    if not claimed:
        return None

    delivery = await mailer.send_email(
        reminder.email,
        mailer.reminder_template(reminder.problem_title, reminder.problem_url),
    )

    if not delivery.success:
        try:
            await crud.record_delivery_error(reminder.id, delivery.error or "unknown error")
        except SQLAlchemyError as e:
            logger.error("Failed to record delivery error for reminder %s: %s", reminder.id, e)

    return ReminderOutcome(reminder.id, reminder.email, display, delivery.success, delivery.error)


async def process_due(now: Optional[datetime] = None) -> ProcessResult:
    """Deliver every pending reminder that is due at `now`."""
    now = now or datetime.now(timezone.utc)

    try:
        due = await crud.get_due_reminders(now)
    except SQLAlchemyError as e:
        logger.exception("Error processing reminders: %s", e)
        raise PersistenceError("Failed to process reminders") from e

    result = ProcessResult()
    for reminder in due:
        outcome = await _process_one(reminder, now)
        if outcome is not None:
            result.results.append(outcome)

    failed = sum(1 for o in result.results if not o.email_sent)
    if result.processed:
        logger.info("Processed %d reminder(s), %d failed", result.processed, failed)
    return result


async def run_due_check(token: Optional[str], secret: str, now: Optional[datetime] = None) -> ProcessResult:
    """Authorised entry point for external triggers."""
    verify_trigger_token(token, secret)
    return await process_due(now)
