# app/services/rule_store.py
from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import RuleNotFoundError
from app.models.rule import Rule
from app.schemas.rule import RuleCreate, RuleRead, RuleScope, RuleUpdate, validate_rule_scope


class SqlAlchemyRuleStore:
    """
    Rule persistence on top of the async SQLAlchemy session factory.

    Every call opens its own session, so the store can be shared by
    concurrently processed accounts.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find(self, scope: RuleScope) -> list[RuleRead]:
        """
        Rules of `scope.account_id` together with global rules (when
        requested), ordered by priority desc, then created_at and id asc.
        """
        clauses = []
        if scope.account_id is not None:
            clauses.append(Rule.account_id == scope.account_id)
        if scope.include_global:
            clauses.append(Rule.is_global.is_(True))
        if not clauses:
            return []

        stmt = select(Rule).where(or_(*clauses))
        if scope.active_only:
            stmt = stmt.where(Rule.is_active.is_(True))
        stmt = stmt.order_by(Rule.priority.desc(), Rule.created_at.asc(), Rule.id.asc())

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [RuleRead.model_validate(r) for r in result.scalars().all()]

    async def list_rules(
        self,
        account_id: int | None = None,
        include_global: bool = True,
        only_active: bool | None = None,
    ) -> list[RuleRead]:
        stmt = select(Rule)
        if account_id is not None:
            if include_global:
                stmt = stmt.where(or_(Rule.account_id == account_id, Rule.is_global.is_(True)))
            else:
                stmt = stmt.where(Rule.account_id == account_id)
        elif not include_global:
            stmt = stmt.where(Rule.is_global.is_(False))

        if only_active is True:
            stmt = stmt.where(Rule.is_active.is_(True))
        elif only_active is False:
            stmt = stmt.where(Rule.is_active.is_(False))

        stmt = stmt.order_by(Rule.priority.desc(), Rule.created_at.asc(), Rule.id.asc())
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [RuleRead.model_validate(r) for r in result.scalars().all()]

    async def get(self, rule_id: int) -> RuleRead | None:
        async with self._session_factory() as session:
            rule = await session.get(Rule, rule_id)
            return RuleRead.model_validate(rule) if rule is not None else None

    async def save(self, payload: RuleCreate) -> RuleRead:
        rule = Rule(
            name=payload.name,
            description=payload.description,
            account_id=payload.account_id,
            is_global=payload.is_global,
            conditions=payload.conditions.model_dump(mode="json", exclude_none=True),
            actions=payload.actions.model_dump(mode="json"),
            priority=payload.priority,
            is_active=payload.is_active,
        )
        async with self._session_factory() as session:
            session.add(rule)
            await session.commit()
            await session.refresh(rule)
            return RuleRead.model_validate(rule)

    async def update(self, rule_id: int, payload: RuleUpdate) -> tuple[RuleRead, RuleRead]:
        """
        Apply a partial update and return `(before, after)` so callers can
        invalidate both the old and the new scope.

        Raises RuleNotFoundError, or ValueError when the merged scope is invalid.
        """
        async with self._session_factory() as session:
            rule = await session.get(Rule, rule_id)
            if rule is None:
                raise RuleNotFoundError(rule_id)

            before = RuleRead.model_validate(rule)
            update_data = payload.model_dump(exclude_unset=True)

            # An explicit null for these would break NOT NULL columns.
            for field in ("name", "is_global", "priority", "is_active", "conditions", "actions"):
                if field in update_data and update_data[field] is None:
                    del update_data[field]

            if "is_global" in update_data or "account_id" in update_data:
                is_global = update_data.get("is_global", rule.is_global)
                account_id = update_data.get("account_id", rule.account_id)
                if is_global and "account_id" not in update_data:
                    account_id = None
                validate_rule_scope(account_id, is_global)
                update_data["is_global"] = is_global
                update_data["account_id"] = account_id

            if "conditions" in update_data:
                update_data["conditions"] = payload.conditions.model_dump(
                    mode="json", exclude_none=True
                )
            if "actions" in update_data:
                update_data["actions"] = payload.actions.model_dump(mode="json")

            for field, value in update_data.items():
                setattr(rule, field, value)

            await session.commit()
            await session.refresh(rule)
            return before, RuleRead.model_validate(rule)

    async def delete(self, rule_id: int) -> RuleRead:
        async with self._session_factory() as session:
            rule = await session.get(Rule, rule_id)
            if rule is None:
                raise RuleNotFoundError(rule_id)

            deleted = RuleRead.model_validate(rule)
            await session.delete(rule)
            await session.commit()
            return deleted
