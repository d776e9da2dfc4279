# app/services/registry.py
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings
from app.services.account_store import SqlAlchemyAccountStore
from app.services.calendar_sync import GoogleCalendarSync
from app.services.collaborators import CalendarCollaborator, Notifier
from app.services.google_calendar_client import DEFAULT_BASE_URL, GoogleCalendarClient
from app.services.meeting_evaluator import MeetingEvaluator
from app.services.meeting_processor import MeetingProcessor
from app.services.meeting_store import SqlAlchemyMeetingStore
from app.services.notifier import EmailNotifier
from app.services.rule_cache import RuleCache
from app.services.rule_store import SqlAlchemyRuleStore


@dataclass
class ServiceRegistry:
    """
    Process-wide service objects shared by every request.

    The rule cache and the processor's in-flight guard only work when a
    single instance is shared, so routes must go through this registry.
    """

    rules: SqlAlchemyRuleStore
    accounts: SqlAlchemyAccountStore
    meetings: SqlAlchemyMeetingStore
    rule_cache: RuleCache
    evaluator: MeetingEvaluator
    calendar: CalendarCollaborator
    notifier: Notifier
    processor: MeetingProcessor


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    calendar: CalendarCollaborator | None = None,
    notifier: Notifier | None = None,
) -> ServiceRegistry:
    """
    Wire stores, cache, evaluator and processor together.

    `calendar` and `notifier` can be swapped out, e.g. with fakes in tests.
    """
    rules = SqlAlchemyRuleStore(session_factory)
    accounts = SqlAlchemyAccountStore(session_factory)
    meetings = SqlAlchemyMeetingStore(session_factory)

    rule_cache = RuleCache(
        rules,
        ttl_seconds=settings.RULE_CACHE_TTL_SECONDS,
        max_entries=settings.RULE_CACHE_MAX_ENTRIES,
    )
    evaluator = MeetingEvaluator(rule_cache)

    if calendar is None:
        base_url = str(settings.GOOGLE_CALENDAR_BASE_URL or DEFAULT_BASE_URL)
        timeout = settings.GOOGLE_HTTP_TIMEOUT_SECONDS
        calendar = GoogleCalendarSync(
            accounts=accounts,
            meetings=meetings,
            client_factory=lambda token: GoogleCalendarClient(
                token, base_url=base_url, timeout_seconds=timeout
            ),
            lookahead_hours=settings.SYNC_LOOKAHEAD_HOURS,
        )
    if notifier is None:
        notifier = EmailNotifier(accounts)

    processor = MeetingProcessor(
        evaluator=evaluator,
        calendar=calendar,
        meetings=meetings,
        accounts=accounts,
        notifier=notifier,
        bot_identity=settings.BOT_EMAIL,
    )

    return ServiceRegistry(
        rules=rules,
        accounts=accounts,
        meetings=meetings,
        rule_cache=rule_cache,
        evaluator=evaluator,
        calendar=calendar,
        notifier=notifier,
        processor=processor,
    )
