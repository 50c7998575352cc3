"""
Tests for the scheduling service
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from revisit import crud
from revisit.config import get_settings
from revisit.database import AsyncSessionLocal
from revisit.errors import InvalidDurationError, PersistenceError, ValidationError
from revisit.models import Reminder, ReminderState
from revisit.schemas import ReminderCreate
from revisit.services import scheduling
from revisit.timeutils import ensure_utc
from tests.helpers import get_reminder, list_reminders


def _request(drop=(), **overrides):
    data = {"email": "a@b.com", "problemUrl": "https://x", "reminderMinutes": "30m"}
    data.update(overrides)
    for key in drop:
        data.pop(key)
    return ReminderCreate(**data)


@pytest.mark.asyncio
async def test_schedule_persists_pending_reminder(outbox):
    now = datetime(2026, 10, 18, 15, 35, tzinfo=timezone.utc)
    result = await scheduling.schedule(_request(problemTitle="Two Sum"), now=now)

    assert result.timezone == "Asia/Kolkata"
    assert result.scheduled_for == "Oct 18, 2026 9:35 PM IST"
    assert result.email_error is None

    stored = await get_reminder(result.reminder.id)
    assert stored is not None
    assert stored.state == ReminderState.pending.value
    assert ensure_utc(stored.scheduled_for) == now + timedelta(minutes=30)
    assert ensure_utc(stored.scheduled_for) >= ensure_utc(stored.created_at)
    assert stored.problem_title == "Two Sum"

    assert len(outbox.sent) == 1
    assert outbox.sent[0]["to"] == "a@b.com"
    assert outbox.sent[0]["subject"] == "LeetCode Reminder Confirmation"
    assert "Oct 18, 2026 9:35 PM IST" in outbox.sent[0]["html"]
    assert "Two Sum" in outbox.sent[0]["html"]


@pytest.mark.asyncio
async def test_schedule_units():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    two_hours = await scheduling.schedule(_request(reminderMinutes="2h"), now=now)
    one_day = await scheduling.schedule(_request(reminderMinutes="1d"), now=now)
    assert ensure_utc(two_hours.reminder.scheduled_for) == now + timedelta(minutes=120)
    assert ensure_utc(one_day.reminder.scheduled_for) == now + timedelta(minutes=1440)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [{"email": None}, {"problemUrl": None}, {"drop": ("reminderMinutes",)}, {"drop": ("email",)}, {"email": "   "}],
)
async def test_missing_fields_rejected(overrides, outbox):
    with pytest.raises(ValidationError) as exc:
        await scheduling.schedule(_request(**overrides))
    assert exc.value.message == "Missing required fields"
    assert outbox.sent == []
    assert await list_reminders() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["not-an-email", "a@b", "a b@c.com", "@b.com"])
async def test_invalid_email_rejected(email):
    with pytest.raises(ValidationError) as exc:
        await scheduling.schedule(_request(email=email))
    assert exc.value.message == "Invalid email format"
    assert await list_reminders() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("duration", ["0", "-5", "abc", 0, -1])
async def test_invalid_duration_rejected(duration, outbox):
    with pytest.raises(InvalidDurationError) as exc:
        await scheduling.schedule(_request(reminderMinutes=duration))
    assert "positive whole number" in exc.value.message
    assert outbox.sent == []
    assert await list_reminders() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("duration", [None, "", "   "])
async def test_present_but_empty_duration_is_invalid_not_missing(duration, outbox):
    with pytest.raises(InvalidDurationError):
        await scheduling.schedule(_request(reminderMinutes=duration))
    assert outbox.sent == []
    assert await list_reminders() == []


@pytest.mark.asyncio
async def test_timezone_precedence():
    explicit = await scheduling.schedule(_request(timezone="Europe/Berlin"), timezone_hint="America/New_York")
    assert explicit.timezone == "Europe/Berlin"

    hinted = await scheduling.schedule(_request(timezone="Bogus/Zone"), timezone_hint="America/New_York")
    assert hinted.timezone == "America/New_York"

    fallback = await scheduling.schedule(_request(timezone="Bogus/Zone"), timezone_hint="Also/Bogus")
    assert fallback.timezone == "Asia/Kolkata"
    assert fallback.reminder.timezone == "Asia/Kolkata"


@pytest.mark.asyncio
async def test_confirmation_failure_is_not_fatal(outbox):
    outbox.fail_with = ConnectionRefusedError("smtp down")
    result = await scheduling.schedule(_request())

    assert result.email_error is not None
    assert result.email_error.startswith("Failed to send email:")
    assert not result.confirmation_sent
    stored = await get_reminder(result.reminder.id)
    assert stored.state == ReminderState.pending.value


@pytest.mark.asyncio
async def test_persistence_failure_is_fatal(monkeypatch, outbox):
    async def broken_create(**kwargs):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(crud, "create_reminder", broken_create)

    with pytest.raises(PersistenceError) as exc:
        await scheduling.schedule(_request())
    assert "disk" not in exc.value.message
    assert outbox.sent == []


def test_validate_email():
    assert scheduling.validate_email("someone@example.org")
    assert not scheduling.validate_email("someone@example")
    assert not scheduling.validate_email("")


@pytest.mark.asyncio
async def test_stored_timezone_defaults_to_configured_zone():
    async with AsyncSessionLocal() as dbs:
        reminder = Reminder(email="a@b.com", problem_url="https://x", scheduled_for=datetime.now(timezone.utc))
        dbs.add(reminder)
        await dbs.commit()
        await dbs.refresh(reminder)
    assert reminder.timezone == get_settings().default_timezone == "Asia/Kolkata"
