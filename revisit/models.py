from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

from revisit.config import get_settings

Base = declarative_base()


class ReminderState(str, Enum):
    pending = "pending"
    sent = "sent"


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _default_timezone() -> str:
    return get_settings().default_timezone


class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (Index("ix_reminders_state_scheduled_for", "state", "scheduled_for"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(320))
    problem_url: Mapped[str] = mapped_column(Text)
    problem_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    scheduled_for: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    timezone: Mapped[str] = mapped_column(String(64), default=_default_timezone)
    # pending -> sent, once, by the due-reminder processor only
    state: Mapped[str] = mapped_column(String(20), default=ReminderState.pending.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    delivery_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Reminder id={self.id} email={self.email} state={self.state} scheduled_for={self.scheduled_for}>"
