"""Read-side queries the app never needs, used to inspect stored reminders."""
from typing import List, Optional

from sqlalchemy import select

from revisit.database import AsyncSessionLocal
from revisit.models import Reminder


async def get_reminder(reminder_id: str) -> Optional[Reminder]:
    async with AsyncSessionLocal() as dbs:
        return await dbs.get(Reminder, reminder_id)


async def list_reminders(*, state: Optional[str] = None) -> List[Reminder]:
    async with AsyncSessionLocal() as dbs:
        stmt = select(Reminder).order_by(Reminder.created_at)
        if state:
            stmt = stmt.where(Reminder.state == state)
        result = await dbs.execute(stmt)
        return list(result.scalars())
