"""
Conversation Context Service - the in-memory conversation log per user.

Each user gets one ConversationSession: an ordered list of messages used
to build classifier context and to support edit and delete.

Pairing:
========
When an assistant message is appended right after a user message, it
records ``replies_to=<user message id>``. Deletes cascade along that link
in both directions:

    delete(user message)      -> also removes the reply that answers it
    delete(assistant message) -> also removes the user message it answers

A message with no partner is removed alone.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from aura.core.config import settings

logger = logging.getLogger("aura.conversation")


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ConversationMessage:
    """A single chat message."""
    role: MessageRole
    content: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_voice_origin: bool = False

    # Back-reference only: the user message this assistant reply answers
    replies_to: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "is_voice_origin": self.is_voice_origin,
            "replies_to": self.replies_to,
        }


class ConversationSession:
    """
    Ordered message log for one user.

    Appends are the only structural mutation used by concurrent paths
    (user messages, notification-triggered assistant messages), so they
    run under a lock and land in receipt order.
    """

    def __init__(self, user_id: str, max_messages: Optional[int] = None):
        self.user_id = user_id
        self.max_messages = max_messages
        self._messages: List[ConversationMessage] = []
        self._lock = threading.Lock()

    # ---------------------------------------------------------------------------
    # READS
    # ---------------------------------------------------------------------------

    @property
    def messages(self) -> List[ConversationMessage]:
        """Snapshot of the log, oldest first."""
        with self._lock:
            return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def get(self, message_id: str) -> Optional[ConversationMessage]:
        with self._lock:
            return self._find(message_id)

    def history(self, limit: int = 10) -> List[Dict[str, str]]:
        """
        Trailing window formatted for the classifier.

        Returns:
            [{"role": "user"|"assistant", "content": "..."}, ...] oldest first
        """
        with self._lock:
            window = self._messages[-limit:] if limit > 0 else []
            return [{"role": m.role.value, "content": m.content} for m in window]

    # ---------------------------------------------------------------------------
    # WRITES
    # ---------------------------------------------------------------------------

    def load(self, messages: List[ConversationMessage]) -> None:
        """Replace the log with messages loaded from the chat log, oldest first."""
        with self._lock:
            self._messages = list(messages)
            self._trim()

    def append(
        self,
        role: MessageRole,
        content: str,
        is_voice_origin: bool = False,
    ) -> ConversationMessage:
        """Append a message; assistant replies get linked to the user message before them."""
        with self._lock:
            message = ConversationMessage(
                role=role,
                content=content,
                is_voice_origin=is_voice_origin,
            )

            if role == MessageRole.ASSISTANT and self._messages:
                previous = self._messages[-1]
                if previous.role == MessageRole.USER and not self._has_reply(previous.id):
                    message.replies_to = previous.id

            self._messages.append(message)
            self._trim()

            return message

    def edit(self, message_id: str, content: str) -> Optional[ConversationMessage]:
        """Change a message's text in place. Returns None if the id is unknown."""
        with self._lock:
            message = self._find(message_id)
            if message is not None:
                message.content = content
            return message

    def delete(self, message_id: str) -> List[str]:
        """
        Delete a message together with its paired partner.

        Returns:
            Ids that were removed (empty if message_id is unknown)
        """
        with self._lock:
            target = self._find(message_id)
            if target is None:
                return []

            removed = {target.id}
            if target.role == MessageRole.USER:
                removed.update(
                    m.id for m in self._messages
                    if m.role == MessageRole.ASSISTANT and m.replies_to == target.id
                )
            elif target.replies_to:
                partner = self._find(target.replies_to)
                if partner is not None and partner.role == MessageRole.USER:
                    removed.add(partner.id)

            removed_ids = [m.id for m in self._messages if m.id in removed]
            self._messages = [m for m in self._messages if m.id not in removed]

        logger.debug(f"Deleted messages {removed_ids} for user {self.user_id}")
        return removed_ids

    # ---------------------------------------------------------------------------
    # INTERNALS (caller holds the lock)
    # ---------------------------------------------------------------------------

    def _find(self, message_id: str) -> Optional[ConversationMessage]:
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def _has_reply(self, user_message_id: str) -> bool:
        return any(m.replies_to == user_message_id for m in self._messages)

    def _trim(self) -> None:
        if self.max_messages and len(self._messages) > self.max_messages:
            del self._messages[: len(self._messages) - self.max_messages]


class ConversationContextService:
    """
    Holds one ConversationSession per user.

    Usage:
        from aura.services.conversation_context_service import conversation_context_service

        session = conversation_context_service.get_session("user-123")
        session.append(MessageRole.USER, "hello")
    """

    def __init__(self, max_messages: Optional[int] = None):
        self._sessions: Dict[str, ConversationSession] = {}
        self._loaded: Dict[str, bool] = {}
        self._lock = threading.Lock()
        self.max_messages = settings.CONVERSATION_MAX_MESSAGES if max_messages is None else max_messages
        logger.info("Conversation context service initialized")

    def get_session(self, user_id: str) -> ConversationSession:
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = ConversationSession(user_id, max_messages=self.max_messages)
                self._sessions[user_id] = session
            return session

    def is_loaded(self, user_id: str) -> bool:
        return self._loaded.get(user_id, False)

    def mark_loaded(self, user_id: str) -> None:
        self._loaded[user_id] = True

    def clear(self, user_id: str) -> None:
        """Forget a user's session (e.g. on sign-out)."""
        with self._lock:
            self._sessions.pop(user_id, None)
            self._loaded.pop(user_id, None)

    def clear_all(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._loaded.clear()


# Singleton instance
conversation_context_service = ConversationContextService()
