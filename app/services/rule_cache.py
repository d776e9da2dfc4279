# app/services/rule_cache.py
from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

import structlog

from app.schemas.rule import RuleRead, RuleScope
from app.services.collaborators import RuleStore

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


@dataclass
class _CacheEntry:
    rules: list[RuleRead]
    stored_at: float


class RuleCache:
    """
    Time-bounded cache of the rules that apply to each account.

    Responsibilities
    ----------------
    - Serve `rules_for(account_id)` from memory while the entry is younger
      than the TTL, otherwise query the store and remember the result.
    - Drop entries on explicit invalidation so rule writes are visible to
      the very next evaluation.

    Notes
    -----
    - Store errors propagate; an expired entry is never served as a fallback.
    - The map is bounded; when full, the oldest stored entry is evicted.
    - `clock` returns seconds and is injectable so tests never sleep.
    - No locking: concurrent misses for one account may both refill the
      entry, which is harmless because refills are idempotent.
    - A refill whose store query overlaps an invalidation is returned but
      not cached, so a write is never hidden behind a fresh entry.
    """

    def __init__(
        self,
        store: RuleStore,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._store = store
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[int, _CacheEntry] = OrderedDict()
        # Bumped by every invalidation; a refill that straddles one is not stored.
        self._generation = 0

    def __len__(self) -> int:
        return len(self._entries)

    async def rules_for(self, account_id: int) -> list[RuleRead]:
        """
        Return the active account-scoped and global rules, highest priority first.
        """
        entry = self._entries.get(account_id)
        now = self._clock()
        if entry is not None and now - entry.stored_at < self._ttl:
            return entry.rules

        generation = self._generation
        rules = await self._store.find(RuleScope.for_account(account_id))
        # Stable sort keeps the store's tiebreak for equal priorities.
        rules = sorted(rules, key=lambda r: r.priority, reverse=True)

        if generation != self._generation:
            # A rule write landed while the store was queried; these rules
            # may predate it, so serve them once but do not cache them.
            logger.debug("rule_cache.refill_discarded", account_id=account_id)
            return rules

        self._entries.pop(account_id, None)
        self._entries[account_id] = _CacheEntry(rules=rules, stored_at=self._clock())
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("rule_cache.evicted", account_id=evicted)

        logger.debug("rule_cache.refreshed", account_id=account_id, rules=len(rules))
        return rules

    def invalidate(self, account_id: int | None = None) -> None:
        """
        Forget the cached rules of one account, or of every account when
        `account_id` is None.
        """
        self._generation += 1
        if account_id is None:
            self._entries.clear()
            logger.info("rule_cache.cleared")
        else:
            self._entries.pop(account_id, None)
            logger.info("rule_cache.invalidated", account_id=account_id)


def invalidate_rule_scope(cache: RuleCache, *rules: RuleRead) -> None:
    """
    Invalidate whatever cache entries the given rules can appear in.

    Global rules show up in every account's list, so touching one clears
    the whole cache.
    """
    if any(rule.is_global for rule in rules):
        cache.invalidate(None)
        return
    for account_id in {rule.account_id for rule in rules if rule.account_id is not None}:
        cache.invalidate(account_id)
