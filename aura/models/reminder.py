"""
Reminder model - a time-triggered note owned by exactly one user.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from aura.db.base import Base


class Reminder(Base):
    """
    SQLAlchemy ORM model for the 'reminders' table.

    completed_at is non-null if and only if completed is true.
    """

    __tablename__ = "reminders"
    __table_args__ = (Index("ix_reminders_user_remind_at", "user_id", "remind_at"),)

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # ---------------------------------------------------------------------------
    # REMINDER DETAILS
    # ---------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # text: Notification body, defaults to the title when not given
    text: Mapped[str] = mapped_column(Text, default="", nullable=False)

    remind_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # ---------------------------------------------------------------------------
    # COMPLETION STATE
    # ---------------------------------------------------------------------------
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Reminder id={self.id} title={self.title!r} remind_at={self.remind_at}>"
