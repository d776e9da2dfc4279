# app/services/calendar_sync.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from app.core.exceptions import AccountNotFoundError, MeetingNotFoundError
from app.schemas.meeting import MeetingRead
from app.services.account_store import SqlAlchemyAccountStore
from app.services.event_normalizer import EventNormalizer
from app.services.google_calendar_client import GoogleCalendarClient, GoogleCalendarError
from app.services.meeting_store import SqlAlchemyMeetingStore

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[str], GoogleCalendarClient]


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class GoogleCalendarSync:
    """
    Calendar collaborator backed by Google Calendar.

    - `list_meetings` pulls events for the lookahead window, normalizes them
      and upserts them as meetings, returning the stored records.
    - `invite_bot` adds the bot identity as an attendee of the event.
    """

    def __init__(
        self,
        accounts: SqlAlchemyAccountStore,
        meetings: SqlAlchemyMeetingStore,
        client_factory: ClientFactory,
        lookahead_hours: int = 24,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.accounts = accounts
        self.meetings = meetings
        self.client_factory = client_factory
        self.lookahead_hours = lookahead_hours
        self._now = now

    async def _client_for(self, account_id: int) -> tuple[GoogleCalendarClient, str]:
        account = await self.accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        token = await self.accounts.get_access_token(account_id)
        if not token:
            raise GoogleCalendarError(f"Account {account_id} has no calendar access token.")
        return self.client_factory(token), account.calendar_id

    async def list_meetings(self, account_id: int) -> list[MeetingRead]:
        client, calendar_id = await self._client_for(account_id)

        window_start = self._now()
        window_end = window_start + timedelta(hours=self.lookahead_hours)
        events = await client.list_events(
            calendar_id,
            time_min=window_start.isoformat(),
            time_max=window_end.isoformat(),
        )

        meetings: list[MeetingRead] = []
        for event in events:
            data = EventNormalizer.normalize(event)
            if data is None:
                continue
            meetings.append(await self.meetings.upsert_from_sync(account_id, data))

        logger.info(
            "calendar_sync.meetings_synced",
            account_id=account_id,
            events=len(events),
            meetings=len(meetings),
        )
        return meetings

    async def invite_bot(self, account_id: int, meeting_id: int, bot_identity: str) -> None:
        meeting = await self.meetings.get(meeting_id)
        if meeting is None:
            raise MeetingNotFoundError(meeting_id)

        client, calendar_id = await self._client_for(account_id)
        event = await client.get_event(calendar_id, meeting.external_event_id)

        attendees = list(event.get("attendees") or [])
        if any((a.get("email") or "").lower() == bot_identity.lower() for a in attendees):
            logger.info(
                "calendar_sync.bot_already_attendee",
                account_id=account_id,
                meeting_id=meeting_id,
            )
            return

        attendees.append({"email": bot_identity})
        await client.patch_event(calendar_id, meeting.external_event_id, {"attendees": attendees})
        logger.info("calendar_sync.bot_added", account_id=account_id, meeting_id=meeting_id)
