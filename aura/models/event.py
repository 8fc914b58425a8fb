"""
Event model - a calendar entry owned by exactly one user.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from aura.db.base import Base


class Event(Base):
    """
    SQLAlchemy ORM model for the 'events' table.

    Single-day events carry a concrete [start_time, end_time] window.
    Multi-day events are all-day: start floored to 00:00:00.000 and end
    ceiled to 23:59:59.999 of their boundary dates.
    """

    __tablename__ = "events"
    __table_args__ = (Index("ix_events_user_start", "user_id", "start_time"),)

    # ---------------------------------------------------------------------------
    # PRIMARY KEY & OWNER
    # ---------------------------------------------------------------------------
    # Stored as a string so the same schema works on Postgres and SQLite
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # user_id: Owner id from the auth service (no local users table)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # ---------------------------------------------------------------------------
    # EVENT DETAILS
    # ---------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="", nullable=False)

    # ---------------------------------------------------------------------------
    # TIMING
    # ---------------------------------------------------------------------------
    # Always written in UTC; end_time >= start_time
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    all_day: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Notification lead in minutes; null means the default for timed
    # events and none for all-day events, 0 means no notification
    reminder_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # ---------------------------------------------------------------------------
    # TIMESTAMPS
    # ---------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} title={self.title!r} start={self.start_time}>"
