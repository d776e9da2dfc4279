# tests/test_meeting_evaluator.py
from datetime import datetime, timedelta, timezone

import pytest

from app.schemas.meeting import MeetingPlatform, MeetingRead
from app.schemas.rule import RuleConditions, RuleRead
from app.services.meeting_evaluator import MeetingEvaluator


class FakeRuleCache:
    def __init__(self, rules: list[RuleRead]) -> None:
        self.rules = rules
        self.requested = []

    async def rules_for(self, account_id: int) -> list[RuleRead]:
        self.requested.append(account_id)
        return list(self.rules)


def _meeting(title: str = "Daily Standup") -> MeetingRead:
    start = datetime(2025, 11, 14, 10, 30, tzinfo=timezone.utc)
    return MeetingRead(
        id=42,
        account_id=1,
        external_event_id="evt-42",
        title=title,
        start_time=start,
        end_time=start + timedelta(minutes=30),
        attendees=["a@example.com", "b@example.com", "c@example.com"],
        platform=MeetingPlatform.ZOOM,
    )


def _rule(rule_id: int, priority: int, **conditions) -> RuleRead:
    return RuleRead(
        id=rule_id,
        name=f"rule-{rule_id}",
        account_id=1,
        priority=priority,
        conditions=RuleConditions(**conditions),
    )


@pytest.mark.asyncio
async def test_higher_priority_rule_comes_first():
    """
    R1 (priority 5) and R2 (priority 10) both match => R2 is primary.
    """
    r1 = _rule(1, priority=5, title_keywords=["standup"])
    r2 = _rule(2, priority=10, min_duration=15)
    evaluator = MeetingEvaluator(FakeRuleCache([r1, r2]))

    rules = await evaluator.applicable_rules(_meeting(), account_id=1)

    assert [r.id for r in rules] == [2, 1]


@pytest.mark.asyncio
async def test_equal_priorities_keep_cache_order():
    rules = [_rule(7, priority=3), _rule(3, priority=3), _rule(5, priority=3)]
    evaluator = MeetingEvaluator(FakeRuleCache(rules))

    result = await evaluator.applicable_rules(_meeting(), account_id=1)

    assert [r.id for r in result] == [7, 3, 5]


@pytest.mark.asyncio
async def test_non_matching_rules_are_filtered_out():
    cache = FakeRuleCache(
        [
            _rule(1, priority=10, title_exclusions=["standup"]),
            _rule(2, priority=1, title_keywords=["standup"]),
        ]
    )
    evaluator = MeetingEvaluator(cache)

    result = await evaluator.applicable_rules(_meeting(), account_id=1)

    assert [r.id for r in result] == [2]
    assert cache.requested == [1]


@pytest.mark.asyncio
async def test_no_matching_rule_yields_empty_list():
    evaluator = MeetingEvaluator(FakeRuleCache([_rule(1, priority=1, title_keywords=["retro"])]))

    assert await evaluator.applicable_rules(_meeting(), account_id=1) == []


def test_test_rule_reports_single_rule_match():
    evaluator = MeetingEvaluator(FakeRuleCache([]))

    assert evaluator.test_rule(_rule(1, priority=1, min_duration=15), _meeting()) is True
    assert evaluator.test_rule(_rule(1, priority=1, max_duration=15), _meeting()) is False
