# app/services/meeting_evaluator.py
from __future__ import annotations

from app.schemas.meeting import MeetingRead
from app.schemas.rule import RuleRead
from app.services.rule_cache import RuleCache
from app.services.rule_evaluator import RuleEvaluator


class MeetingEvaluator:
    """
    Produces the priority-ordered list of rules that match a meeting.

    Rules come from the shared RuleCache; matching is delegated to the pure
    RuleEvaluator. The head of the returned list is the primary rule.
    """

    def __init__(self, rule_cache: RuleCache, evaluator: type[RuleEvaluator] = RuleEvaluator) -> None:
        self.rule_cache = rule_cache
        self.evaluator = evaluator

    async def applicable_rules(self, meeting: MeetingRead, account_id: int) -> list[RuleRead]:
        """
        Return matching rules, highest priority first.

        Equal priorities keep the store order (created_at, then id). An empty
        list means no rule applies, which is not an error.
        """
        rules = await self.rule_cache.rules_for(account_id)
        matching = [rule for rule in rules if self.evaluator.matches(rule, meeting)]
        matching.sort(key=lambda r: r.priority, reverse=True)
        return matching

    def test_rule(self, rule: RuleRead, meeting: MeetingRead) -> bool:
        return self.evaluator.matches(rule, meeting)
