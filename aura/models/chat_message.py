"""
ChatMessage model - the per-user, append-only conversation log.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from aura.db.base import Base


class ChatMessage(Base):
    """
    SQLAlchemy ORM model for the 'chat_messages' table.

    The id is assigned by the conversation session (not the database) so
    the in-memory window and the log share identifiers.
    """

    __tablename__ = "chat_messages"
    __table_args__ = (Index("ix_chat_messages_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # role: "user" or "assistant"
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_voice_origin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # replies_to: id of the user message an assistant reply answers
    replies_to: Mapped[str | None] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
