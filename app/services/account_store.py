# app/services/account_store.py
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import AccountNotFoundError
from app.models.account import Account
from app.schemas.account import AccountCreate, AccountRead


class SqlAlchemyAccountStore:
    """
    Read-mostly access to connected accounts.

    `access_token` never leaves this module through AccountRead; calendar
    calls fetch it explicitly with `get_access_token`.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_active(self) -> list[AccountRead]:
        stmt = select(Account).where(Account.is_active.is_(True)).order_by(Account.id.asc())
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [AccountRead.model_validate(a) for a in result.scalars().all()]

    async def list_accounts(self, user_id: str | None = None) -> list[AccountRead]:
        stmt = select(Account)
        if user_id is not None:
            stmt = stmt.where(Account.user_id == user_id)
        async with self._session_factory() as session:
            result = await session.execute(stmt.order_by(Account.id.asc()))
            return [AccountRead.model_validate(a) for a in result.scalars().all()]

    async def get(self, account_id: int) -> AccountRead | None:
        async with self._session_factory() as session:
            account = await session.get(Account, account_id)
            return AccountRead.model_validate(account) if account is not None else None

    async def get_access_token(self, account_id: int) -> str | None:
        async with self._session_factory() as session:
            account = await session.get(Account, account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            return account.access_token

    async def create(self, payload: AccountCreate) -> AccountRead:
        """
        Register an account. Raises ValueError when the email is already taken.
        """
        async with self._session_factory() as session:
            existing = await session.execute(select(Account).where(Account.email == payload.email))
            if existing.scalar_one_or_none() is not None:
                raise ValueError(f"Account with email '{payload.email}' already exists.")

            account = Account(**payload.model_dump())
            session.add(account)
            await session.commit()
            await session.refresh(account)
            return AccountRead.model_validate(account)

    async def set_active(self, account_id: int, is_active: bool) -> AccountRead:
        async with self._session_factory() as session:
            account = await session.get(Account, account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            account.is_active = is_active
            await session.commit()
            await session.refresh(account)
            return AccountRead.model_validate(account)
