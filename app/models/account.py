# app/models/account.py
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Account(Base):
    """
    A connected calendar account whose meetings are evaluated against rules.
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(String(128), nullable=False, index=True)
    email = Column(String(320), nullable=False, unique=True)
    provider = Column(String(32), nullable=False, default="google")
    calendar_id = Column(String(320), nullable=False, default="primary")

    # Token lifecycle is owned by the auth integration; we only read it.
    access_token = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    settings = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return f"<Account id={self.id} email={self.email} active={self.is_active}>"
