# app/services/meeting_processor.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from app.core.exceptions import BotAlreadyInvitedError
from app.schemas.meeting import SETTLED_STATUSES, MeetingRead, MeetingStatus
from app.schemas.processing import AccountProcessingResult, BulkProcessingSummary
from app.schemas.rule import RuleRead
from app.services.collaborators import (
    AccountStore,
    CalendarCollaborator,
    MeetingStore,
    Notifier,
)
from app.services.meeting_evaluator import MeetingEvaluator

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class MeetingProcessor:
    """
    Turns rule evaluation results into side effects.

    Responsibilities
    ----------------
    - Run at most one pass per account at a time (in-flight guard).
    - Invite the bot when the primary rule asks for it, at most once per meeting.
    - Notify the user on a best-effort basis.
    - Persist applied rules and the resulting status on the meeting.

    Notes
    -----
    - A failed bot invite marks the meeting `failed` and propagates.
    - A failed notification is logged and otherwise ignored.
    - Bulk processing isolates accounts from each other's failures.
    """

    def __init__(
        self,
        evaluator: MeetingEvaluator,
        calendar: CalendarCollaborator,
        meetings: MeetingStore,
        accounts: AccountStore,
        notifier: Notifier,
        bot_identity: str,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.evaluator = evaluator
        self.calendar = calendar
        self.meetings = meetings
        self.accounts = accounts
        self.notifier = notifier
        self.bot_identity = bot_identity
        self._now = now
        self._processing: set[int] = set()

    def is_processing(self, account_id: int) -> bool:
        return account_id in self._processing

    @asynccontextmanager
    async def _account_guard(self, account_id: int) -> AsyncIterator[bool]:
        """
        Yield True when this caller owns the account's pass, False when
        another pass is already in flight. Ownership is released on every
        exit path.
        """
        # No await between the check and the add, so this is atomic on the loop.
        if account_id in self._processing:
            yield False
            return

        self._processing.add(account_id)
        try:
            yield True
        finally:
            self._processing.discard(account_id)

    async def process_account_meetings(self, account_id: int) -> AccountProcessingResult | None:
        """
        Evaluate every synced meeting of an account, one after another.

        Returns None without touching any collaborator when a pass for the
        same account is already running.
        """
        async with self._account_guard(account_id) as acquired:
            if not acquired:
                logger.info("meeting_processor.account_already_processing", account_id=account_id)
                return None

            log = logger.bind(account_id=account_id)
            log.info("meeting_processor.account_started")

            try:
                meetings = await self.calendar.list_meetings(account_id)

                skipped = matched = invited = 0
                for meeting in meetings:
                    if meeting.status in SETTLED_STATUSES:
                        skipped += 1
                        continue
                    was_invited = meeting.bot_invited
                    await self.process_single_meeting(meeting)
                    if meeting.applied_rules:
                        matched += 1
                    if meeting.bot_invited and not was_invited:
                        invited += 1
            except Exception as exc:
                log.error("meeting_processor.account_failed", error=str(exc))
                raise

            log.info(
                "meeting_processor.account_completed",
                meetings=len(meetings),
                skipped=skipped,
                matched=matched,
                bots_invited=invited,
            )
            return AccountProcessingResult(
                account_id=account_id,
                meetings_total=len(meetings),
                meetings_skipped=skipped,
                meetings_matched=matched,
                bots_invited=invited,
            )

    async def process_single_meeting(self, meeting: MeetingRead) -> MeetingRead:
        """
        Apply the primary rule's actions to one meeting.

        Steps
        -----
        1) Settled meetings (bot invited, recording, completed) are returned as-is.
        2) Matching rules are fetched; none means nothing to do.
        3) The primary rule may invite the bot (once) and notify the user.
        4) Applied rules and status are written back to the meeting.
        """
        if meeting.status in SETTLED_STATUSES:
            return meeting

        log = logger.bind(meeting_id=meeting.id, account_id=meeting.account_id)

        try:
            rules = await self.evaluator.applicable_rules(meeting, meeting.account_id)
            if not rules:
                log.debug("meeting_processor.no_applicable_rules")
                return meeting

            primary = rules[0]

            if primary.actions.invite_bot and not meeting.bot_invited:
                await self.invite_bot_to_meeting(meeting)

            if primary.actions.notify_user:
                await self._notify_user(meeting, primary)

            meeting.applied_rules = [rule.id for rule in rules]
            meeting.status = (
                MeetingStatus.BOT_INVITED if meeting.bot_invited else MeetingStatus.PENDING
            )
            await self.meetings.record_evaluation(
                meeting.id,
                applied_rules=meeting.applied_rules,
                status=meeting.status,
                bot_invited=meeting.bot_invited,
                bot_invite_time=meeting.bot_invite_time,
            )
        except Exception as exc:
            log.error("meeting_processor.meeting_failed", error=str(exc))
            meeting.status = MeetingStatus.FAILED
            # An invite that already went through stays recorded.
            await self.meetings.mark_failed(
                meeting.id,
                bot_invited=meeting.bot_invited,
                bot_invite_time=meeting.bot_invite_time,
            )
            raise

        log.info(
            "meeting_processor.meeting_processed",
            rules=len(rules),
            primary_rule_id=primary.id,
            status=meeting.status.value,
        )
        return meeting

    async def invite_bot_to_meeting(self, meeting: MeetingRead) -> MeetingRead:
        """
        Ask the calendar to add the bot to the meeting.

        `bot_invited` is only flipped after the calendar call succeeds.
        """
        try:
            await self.calendar.invite_bot(meeting.account_id, meeting.id, self.bot_identity)
        except Exception as exc:
            logger.error(
                "meeting_processor.bot_invite_failed",
                meeting_id=meeting.id,
                account_id=meeting.account_id,
                error=str(exc),
            )
            raise

        meeting.bot_invited = True
        meeting.bot_invite_time = self._now()
        logger.info(
            "meeting_processor.bot_invited",
            meeting_id=meeting.id,
            account_id=meeting.account_id,
            bot=self.bot_identity,
        )
        return meeting

    async def invite_bot_on_request(self, meeting: MeetingRead) -> MeetingRead:
        """
        Manual invite that bypasses the rules, persisting the outcome.

        Raises BotAlreadyInvitedError when the bot is already invited.
        """
        if meeting.bot_invited:
            raise BotAlreadyInvitedError(meeting.id)

        await self.invite_bot_to_meeting(meeting)
        meeting.status = MeetingStatus.BOT_INVITED
        await self.meetings.record_evaluation(
            meeting.id,
            applied_rules=meeting.applied_rules,
            status=meeting.status,
            bot_invited=True,
            bot_invite_time=meeting.bot_invite_time,
        )
        return meeting

    async def _notify_user(self, meeting: MeetingRead, rule: RuleRead) -> None:
        try:
            sent = await self.notifier.notify(meeting, rule)
        except Exception as exc:
            logger.warning(
                "meeting_processor.notify_failed",
                meeting_id=meeting.id,
                rule_id=rule.id,
                error=str(exc),
            )
            return

        logger.info(
            "meeting_processor.user_notified",
            meeting_id=meeting.id,
            rule_id=rule.id,
            rule_name=rule.name,
            sent=sent,
        )

    async def process_all_active_accounts(self) -> BulkProcessingSummary:
        """
        Run one pass for every active account, concurrently.

        A failing account is logged and reported as None; it never aborts
        the other accounts or the aggregate call.
        """
        started_at = self._now()
        accounts = await self.accounts.find_active()
        logger.info("meeting_processor.bulk_started", accounts=len(accounts))

        failed: list[int] = []

        async def _run(account_id: int) -> AccountProcessingResult | None:
            try:
                return await self.process_account_meetings(account_id)
            except Exception as exc:
                logger.error(
                    "meeting_processor.bulk_account_failed",
                    account_id=account_id,
                    error=str(exc),
                )
                failed.append(account_id)
                return None

        results = await asyncio.gather(*(_run(account.id) for account in accounts))

        summary = BulkProcessingSummary(
            started_at=started_at,
            accounts_total=len(accounts),
            accounts_processed=sum(1 for r in results if r is not None),
            accounts_failed=sorted(failed),
            results=list(results),
        )
        logger.info(
            "meeting_processor.bulk_completed",
            accounts=summary.accounts_total,
            processed=summary.accounts_processed,
            failed=len(summary.accounts_failed),
        )
        return summary

    async def get_upcoming_meetings(self, account_id: int, hours: int = 24) -> list[MeetingRead]:
        """
        Pending or bot-invited meetings starting within the next `hours`.
        """
        start = self._now()
        end = start + timedelta(hours=hours)
        return await self.meetings.list_upcoming(account_id, start, end)
