# app/db/session.py
import os
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import get_settings
from app.db.base import Base

settings = get_settings()

IS_TEST = "PYTEST_CURRENT_TEST" in os.environ or settings.APP_ENV == "test"


def _engine_options(db_url: str) -> dict[str, Any]:
    """
    Engine keyword arguments for the configured database.

    Under pytest the TestClient portal and pytest-asyncio run separate event
    loops, so pooled connections must never outlive a single checkout.
    """
    options: dict[str, Any] = {"echo": False}
    if IS_TEST:
        options["poolclass"] = NullPool
    elif not db_url.startswith("sqlite"):
        options["pool_pre_ping"] = True
    return options


engine: AsyncEngine = create_async_engine(settings.DB_URL, **_engine_options(settings.DB_URL))

# Stores open one short-lived session per call from this factory.
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def init_db_for_startup() -> None:
    """
    Create missing tables for accounts, rules and meetings.

    Idempotent; existing tables and rows are left alone.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    await engine.dispose()


async def init_db() -> None:
    """
    TEST-ONLY: drop and recreate every table so each test starts empty.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
