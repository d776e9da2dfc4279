# app/services/collaborators.py
from __future__ import annotations

from datetime import datetime
from typing import Protocol

from app.schemas.account import AccountRead
from app.schemas.meeting import MeetingRead, MeetingStatus
from app.schemas.rule import RuleRead, RuleScope


class RuleStore(Protocol):
    """
    Durable rule records. `find` resolves the account/global union itself,
    returning active rules ordered by priority desc, created_at asc, id asc.
    """

    async def find(self, scope: RuleScope) -> list[RuleRead]: ...


class AccountStore(Protocol):
    async def find_active(self) -> list[AccountRead]: ...

    async def get(self, account_id: int) -> AccountRead | None: ...


class MeetingStore(Protocol):
    async def get(self, meeting_id: int) -> MeetingRead | None: ...

    async def record_evaluation(
        self,
        meeting_id: int,
        *,
        applied_rules: list[int],
        status: MeetingStatus,
        bot_invited: bool,
        bot_invite_time: datetime | None,
    ) -> None: ...

    async def mark_failed(
        self,
        meeting_id: int,
        *,
        bot_invited: bool = False,
        bot_invite_time: datetime | None = None,
    ) -> None: ...

    async def list_upcoming(
        self, account_id: int, start: datetime, end: datetime
    ) -> list[MeetingRead]: ...


class CalendarCollaborator(Protocol):
    """
    Calendar provider seen by the processor: meetings arrive already
    normalized and persisted.
    """

    async def list_meetings(self, account_id: int) -> list[MeetingRead]: ...

    async def invite_bot(self, account_id: int, meeting_id: int, bot_identity: str) -> None: ...


class Notifier(Protocol):
    async def notify(self, meeting: MeetingRead, rule: RuleRead) -> bool: ...
