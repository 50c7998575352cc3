import asyncio
import os
import sys

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path when pytest runs from a different CWD.
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# Configure the app for tests before anything under revisit/ is imported:
# a throwaway SQLite file, a known trigger secret, no rate limiting, no scheduler.
TEST_DB_PATH = os.path.join(project_root, "test.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["DEFAULT_TIMEZONE"] = "Asia/Kolkata"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REMINDER_SCHEDULER_ENABLED"] = "false"
os.environ["DELIVERY_TIMEOUT_SECONDS"] = "2"

from sqlalchemy import create_engine, delete  # noqa: E402

from revisit.models import Base, Reminder  # noqa: E402
from revisit.services import mailer  # noqa: E402

CRON_SECRET = os.environ["CRON_SECRET"]


# Schema is created once per session with a plain sync engine, so no event
# loop is involved outside the tests themselves.
@pytest.fixture(scope="session", autouse=True)
def _init_db_once():
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)
    engine = create_engine(f"sqlite:///{TEST_DB_PATH}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def _clean_reminders(_init_db_once):
    with _init_db_once.begin() as conn:
        conn.execute(delete(Reminder))
    yield


class FakeMailer:
    """Stands in for SmtpMailer; records what would have been sent."""

    def __init__(self):
        self.sent = []
        self.fail_with = None
        self.delay = 0.0

    async def send(self, to_email, subject, html_content):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append({"to": to_email, "subject": subject, "html": html_content})


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    fake = FakeMailer()
    monkeypatch.setattr(mailer, "get_mailer", lambda: fake)
    return fake


@pytest.fixture()
def client():
    from revisit.main import app
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def cron_headers():
    return {"X-Cron-Secret": CRON_SECRET}
