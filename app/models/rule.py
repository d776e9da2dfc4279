# app/models/rule.py
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.account import _utcnow


class Rule(Base):
    """
    A prioritized predicate-plus-action record deciding whether the bot is
    invited to a meeting.

    A rule is either scoped to one account (`account_id` set) or global
    (`is_global` true, no account).
    """

    __tablename__ = "rules"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)

    account_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    is_global = Column(Boolean, nullable=False, default=False, index=True)

    conditions = Column(JSON, nullable=False, default=dict)
    actions = Column(JSON, nullable=False, default=dict)

    priority = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    account = relationship("Account", backref="rules")

    def __repr__(self) -> str:
        scope = "global" if self.is_global else f"account={self.account_id}"
        return f"<Rule id={self.id} name={self.name!r} {scope} priority={self.priority}>"
