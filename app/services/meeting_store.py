# app/services/meeting_store.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import MeetingNotFoundError
from app.models.meeting import Meeting
from app.schemas.meeting import MeetingRead, MeetingStatus, MeetingStatusUpdate, MeetingSyncData


class SqlAlchemyMeetingStore:
    """
    Persistence for tracked meetings.

    Calendar sync and the processor write disjoint sets of columns: sync
    owns the calendar-derived fields, the processor owns status, bot flags
    and applied rules.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, meeting_id: int) -> MeetingRead | None:
        async with self._session_factory() as session:
            meeting = await session.get(Meeting, meeting_id)
            return MeetingRead.model_validate(meeting) if meeting is not None else None

    async def upsert_from_sync(self, account_id: int, data: MeetingSyncData) -> MeetingRead:
        """
        Create the meeting on first sight, otherwise refresh its calendar fields.

        Idempotent per (account_id, external_event_id).
        """
        async with self._session_factory() as session:
            existing = await session.execute(
                select(Meeting).where(
                    Meeting.account_id == account_id,
                    Meeting.external_event_id == data.external_event_id,
                )
            )
            meeting = existing.scalar_one_or_none()

            if meeting is None:
                meeting = Meeting(
                    account_id=account_id,
                    external_event_id=data.external_event_id,
                    status=MeetingStatus.PENDING.value,
                    bot_invited=False,
                    applied_rules=[],
                )
                session.add(meeting)

            meeting.title = data.title
            meeting.description = data.description
            meeting.start_time = data.start_time
            meeting.end_time = data.end_time
            meeting.attendees = list(data.attendees)
            meeting.meeting_url = data.meeting_url
            meeting.platform = data.platform.value

            await session.commit()
            await session.refresh(meeting)
            return MeetingRead.model_validate(meeting)

    async def record_evaluation(
        self,
        meeting_id: int,
        *,
        applied_rules: list[int],
        status: MeetingStatus,
        bot_invited: bool,
        bot_invite_time: datetime | None,
    ) -> None:
        async with self._session_factory() as session:
            meeting = await session.get(Meeting, meeting_id)
            if meeting is None:
                raise MeetingNotFoundError(meeting_id)

            meeting.applied_rules = list(applied_rules)
            meeting.status = MeetingStatus(status).value
            # Never flip an invited meeting back.
            if bot_invited and not meeting.bot_invited:
                meeting.bot_invited = True
                meeting.bot_invite_time = bot_invite_time
            await session.commit()

    async def mark_failed(
        self,
        meeting_id: int,
        *,
        bot_invited: bool = False,
        bot_invite_time: datetime | None = None,
    ) -> None:
        """
        Set status `failed`, keeping a bot invite that already went through.
        """
        async with self._session_factory() as session:
            meeting = await session.get(Meeting, meeting_id)
            if meeting is None:
                raise MeetingNotFoundError(meeting_id)
            meeting.status = MeetingStatus.FAILED.value
            if bot_invited and not meeting.bot_invited:
                meeting.bot_invited = True
                meeting.bot_invite_time = bot_invite_time
            await session.commit()

    async def update_status(self, meeting_id: int, payload: MeetingStatusUpdate) -> MeetingRead:
        async with self._session_factory() as session:
            meeting = await session.get(Meeting, meeting_id)
            if meeting is None:
                raise MeetingNotFoundError(meeting_id)

            meeting.status = payload.status.value
            if payload.recording_url:
                meeting.recording_url = payload.recording_url
            if payload.summary:
                meeting.summary = payload.summary
            if payload.notion_page_id:
                meeting.notion_page_id = payload.notion_page_id

            await session.commit()
            await session.refresh(meeting)
            return MeetingRead.model_validate(meeting)

    async def list_upcoming(
        self, account_id: int, start: datetime, end: datetime
    ) -> list[MeetingRead]:
        stmt = (
            select(Meeting)
            .where(
                Meeting.account_id == account_id,
                Meeting.start_time >= start,
                Meeting.start_time <= end,
                Meeting.status.in_(
                    [MeetingStatus.PENDING.value, MeetingStatus.BOT_INVITED.value]
                ),
            )
            .order_by(Meeting.start_time.asc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [MeetingRead.model_validate(m) for m in result.scalars().all()]

    async def list_meetings(
        self,
        account_id: int | None = None,
        status: MeetingStatus | None = None,
        from_time: datetime | None = None,
        to_time: datetime | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[MeetingRead]:
        conditions = []
        if account_id is not None:
            conditions.append(Meeting.account_id == account_id)
        if status is not None:
            conditions.append(Meeting.status == status.value)
        if from_time is not None:
            conditions.append(Meeting.start_time >= from_time)
        if to_time is not None:
            conditions.append(Meeting.start_time <= to_time)

        stmt = select(Meeting)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(Meeting.start_time.desc()).limit(limit).offset(offset)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [MeetingRead.model_validate(m) for m in result.scalars().all()]
