# app/models/meeting.py
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.account import _utcnow


class Meeting(Base):
    """
    A calendar event discovered by calendar sync, tracked through the bot
    processing lifecycle.
    """

    __tablename__ = "meetings"

    id = Column(Integer, primary_key=True, index=True)

    account_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_event_id = Column(String(255), nullable=False)

    title = Column(String(1024), nullable=False)
    description = Column(Text, nullable=True)

    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)

    attendees = Column(JSON, nullable=False, default=list)
    meeting_url = Column(String(2048), nullable=True)
    platform = Column(String(32), nullable=True)

    status = Column(String(32), nullable=False, default="pending", index=True)
    bot_invited = Column(Boolean, nullable=False, default=False)
    bot_invite_time = Column(DateTime(timezone=True), nullable=True)

    recording_url = Column(String(2048), nullable=True)
    notion_page_id = Column(String(255), nullable=True)
    summary = Column(Text, nullable=True)

    applied_rules = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    account = relationship("Account", backref="meetings")

    __table_args__ = (
        UniqueConstraint(
            "account_id",
            "external_event_id",
            name="uq_meetings_account_external_event",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Meeting id={self.id} account_id={self.account_id} "
            f"title={self.title!r} status={self.status}>"
        )
