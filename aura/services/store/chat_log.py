"""
Chat Log Repository - persistence for the per-user conversation log.

The in-memory ConversationSession is the source of truth while a session
is active; this repository mirrors its appends, edits and deletes so the
next session can start from the most recent window.
"""

import logging
from typing import Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aura.core.clock import from_storage, to_utc
from aura.core.session import SessionContext
from aura.models.chat_message import ChatMessage
from aura.services.conversation_context_service import ConversationMessage, MessageRole
from aura.services.store.base import StoreResult

logger = logging.getLogger("aura.services.store.chat_log")


class ChatLogRepository:
    """Owner-scoped access to the chat_messages table."""

    def __init__(self, session: SessionContext, db: Session):
        self.session = session
        self.db = db

    def _failure(self, operation: str, exc: Exception) -> StoreResult:
        self.db.rollback()
        logger.error(f"Chat log {operation} failed for user {self.session.user_id}: {exc}")
        return StoreResult.fail(str(exc))

    async def append(self, message: ConversationMessage) -> StoreResult:
        try:
            self.db.add(
                ChatMessage(
                    id=message.id,
                    user_id=self.session.user_id,
                    role=message.role.value,
                    content=message.content,
                    is_voice_origin=message.is_voice_origin,
                    replies_to=message.replies_to,
                    created_at=to_utc(message.timestamp),
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            return self._failure("append", e)
        return StoreResult.ok(message)

    async def load_recent(self, limit: int) -> StoreResult[List[ConversationMessage]]:
        """Most recent ``limit`` messages, returned oldest first."""
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.user_id == self.session.user_id)
            .order_by(ChatMessage.created_at.desc())
            .limit(limit)
        )
        try:
            rows = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            return self._failure("load", e)

        messages = [
            ConversationMessage(
                id=row.id,
                role=MessageRole(row.role),
                content=row.content,
                timestamp=from_storage(row.created_at),
                is_voice_origin=bool(row.is_voice_origin),
                replies_to=row.replies_to,
            )
            for row in reversed(rows)
        ]
        return StoreResult.ok(messages)

    async def update_content(self, message_id: str, content: str) -> StoreResult:
        try:
            row = self.db.execute(
                select(ChatMessage).where(
                    ChatMessage.id == message_id,
                    ChatMessage.user_id == self.session.user_id,
                )
            ).scalar_one_or_none()
            if row is None:
                return StoreResult.fail("Message not found", not_found=True)
            row.content = content
            self.db.commit()
        except SQLAlchemyError as e:
            return self._failure("update", e)
        return StoreResult.ok(message_id)

    async def delete_many(self, message_ids: Iterable[str]) -> StoreResult:
        ids = list(message_ids)
        if not ids:
            return StoreResult.ok(0)
        try:
            result = self.db.execute(
                delete(ChatMessage).where(
                    ChatMessage.id.in_(ids),
                    ChatMessage.user_id == self.session.user_id,
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            return self._failure("delete", e)
        return StoreResult.ok(result.rowcount)
