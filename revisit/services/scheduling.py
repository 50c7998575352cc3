"""
Scheduling service: validate a reminder request, work out when it is due,
store it as pending and send the confirmation email.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from revisit import crud
from revisit.errors import InvalidDurationError, PersistenceError, ValidationError
from revisit.models import Reminder
from revisit.schemas import ReminderCreate
from revisit.services import mailer
from revisit.timeutils import (
    compute_due_instant,
    format_for_display,
    is_known_timezone,
    parse_duration,
    resolve_timezone,
)

logger = logging.getLogger("revisit.scheduling")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class ScheduleResult:
    reminder: Reminder
    scheduled_for: str
    timezone: str
    email_error: Optional[str] = None

    @property
    def confirmation_sent(self) -> bool:
        return self.email_error is None


def validate_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def _is_missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def pick_timezone(requested: Optional[str], hint: Optional[str]) -> str:
    """First recognised zone among the request value and the header hint, else the default."""
    for candidate in (requested, hint):
        if is_known_timezone(candidate):
            return resolve_timezone(candidate)
    return resolve_timezone(None)


async def schedule(
    request: ReminderCreate,
    timezone_hint: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ScheduleResult:
    # A null or blank reminderMinutes is present, so it is judged by parse_duration below.
    duration_absent = "reminder_minutes" not in request.model_fields_set
    if duration_absent or any(_is_missing(v) for v in (request.email, request.problem_url)):
        raise ValidationError("Missing required fields")

    if not validate_email(request.email):
        raise ValidationError("Invalid email format")

    minutes = parse_duration(request.reminder_minutes)
    if minutes is None:
        raise InvalidDurationError()

    tz_name = pick_timezone(request.timezone, timezone_hint)
    created_at = now or datetime.now(timezone.utc)
    scheduled_for = compute_due_instant(minutes, tz_name, now=created_at)
    display = format_for_display(scheduled_for, tz_name)

    try:
        reminder = await crud.create_reminder(
            email=request.email,
            problem_url=request.problem_url,
            problem_title=request.problem_title or None,
            scheduled_for=scheduled_for,
            timezone_name=tz_name,
            created_at=created_at,
        )
    except SQLAlchemyError as e:
        logger.exception("Error setting reminder for %s: %s", request.email, e)
        raise PersistenceError("Failed to set reminder. Please try again later.") from e

    delivery = await mailer.send_email(
        request.email,
        mailer.confirmation_template(request.problem_title, request.problem_url, display),
    )
    if not delivery.success:
        logger.warning("Reminder %s stored but confirmation failed: %s", reminder.id, delivery.error)

    return ScheduleResult(
        reminder=reminder,
        scheduled_for=display,
        timezone=tz_name,
        email_error=delivery.error,
    )
