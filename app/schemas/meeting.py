# app/schemas/meeting.py
from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class MeetingPlatform(str, Enum):
    """
    Video-conferencing platform a meeting is hosted on.
    """

    ZOOM = "zoom"
    MEET = "meet"
    TEAMS = "teams"
    IN_PERSON = "in-person"
    OTHER = "other"


class MeetingStatus(str, Enum):
    """
    Lifecycle state of a meeting as tracked by the processor.
    """

    PENDING = "pending"
    SYNCED = "synced"
    BOT_INVITED = "bot_invited"
    RECORDING = "recording"
    COMPLETED = "completed"
    FAILED = "failed"


# Meetings in these states are never re-evaluated; the bot is already there.
SETTLED_STATUSES = frozenset(
    {MeetingStatus.BOT_INVITED, MeetingStatus.RECORDING, MeetingStatus.COMPLETED}
)


class MeetingSyncData(BaseModel):
    """
    Calendar-derived fields of a meeting, produced by the event normalizer.

    Sync only ever writes these fields; processing state is left untouched.
    """

    external_event_id: str = Field(..., description="Provider event identifier.")
    title: str = Field(..., description="Event summary/title.")
    description: str | None = None
    start_time: datetime
    end_time: datetime
    attendees: list[str] = Field(default_factory=list)
    meeting_url: str | None = None
    platform: MeetingPlatform = MeetingPlatform.OTHER


class MeetingRead(BaseModel):
    """
    Public and in-process representation of a tracked meeting.

    The rule engine and the processor operate on this shape.
    """

    id: int = Field(..., examples=[42])
    account_id: int = Field(..., description="Owning account.", examples=[1])
    external_event_id: str = Field(..., examples=["7kq1s0evc2u3o4p5"])
    title: str = Field(..., examples=["Daily Standup"])
    description: str | None = None
    start_time: datetime = Field(..., examples=["2025-11-14T10:30:00Z"])
    end_time: datetime = Field(..., examples=["2025-11-14T11:00:00Z"])
    attendees: list[str] = Field(
        default_factory=list,
        description="Attendee identifiers (usually email addresses).",
    )
    meeting_url: str | None = None
    platform: MeetingPlatform | None = None
    status: MeetingStatus = MeetingStatus.PENDING
    bot_invited: bool = False
    bot_invite_time: datetime | None = None
    recording_url: str | None = None
    notion_page_id: str | None = None
    summary: str | None = None
    applied_rules: list[int] = Field(
        default_factory=list,
        description="Ids of the rules that matched on the most recent evaluation.",
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

    @property
    def duration_minutes(self) -> int:
        """
        Whole minutes between start and end, truncated toward zero.
        """
        return int((self.end_time - self.start_time).total_seconds() / 60)


class MeetingStatusUpdate(BaseModel):
    """
    Payload for PATCH /meetings/{id}/status, sent by recording/completion hooks.
    """

    status: MeetingStatus
    recording_url: str | None = Field(default=None, max_length=2048)
    summary: str | None = None
    notion_page_id: str | None = Field(default=None, max_length=255)
