# tests/conftest.py
import asyncio
import os

# Must be set before any app module reads the settings.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///./test_meeting_bot.db")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.config import get_settings  # noqa: E402
from app.db.session import AsyncSessionLocal, init_db  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.registry import ServiceRegistry, build_services  # noqa: E402


class FakeCalendar:
    """
    Calendar collaborator that serves prepared events instead of calling Google.

    `events` maps account_id -> list of MeetingSyncData; every `list_meetings`
    call upserts them through the real meeting store, like calendar sync does.
    """

    def __init__(self) -> None:
        self.events = {}
        self.invites = []
        self.fail_invite = False
        self.meetings = None

    async def list_meetings(self, account_id):
        return [
            await self.meetings.upsert_from_sync(account_id, data)
            for data in self.events.get(account_id, [])
        ]

    async def invite_bot(self, account_id, meeting_id, bot_identity):
        if self.fail_invite:
            raise RuntimeError("calendar unavailable")
        self.invites.append((account_id, meeting_id, bot_identity))


class FakeNotifier:
    def __init__(self) -> None:
        self.sent = []

    async def notify(self, meeting, rule):
        self.sent.append((meeting.id, rule.id))
        return True


@pytest.fixture
def fake_calendar() -> FakeCalendar:
    return FakeCalendar()


@pytest.fixture
def fake_notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def services(fake_calendar, fake_notifier) -> ServiceRegistry:
    registry = build_services(
        AsyncSessionLocal,
        get_settings(),
        calendar=fake_calendar,
        notifier=fake_notifier,
    )
    fake_calendar.meetings = registry.meetings
    return registry


@pytest.fixture
def client(services) -> TestClient:
    """
    TestClient over a fresh schema, wired with the fake calendar and notifier.
    """
    asyncio.run(init_db())

    app = create_app(services=services)
    with TestClient(app) as test_client:
        yield test_client
