"""
Intent Processing Service - the Resolution Engine and the chat data flow.

Responsibilities:
=================
- Run one utterance through the pipeline:
    append user message -> classify -> resolve -> append outcome message
- Route a StructuredIntent to the handler that resolves it
- Mirror conversation edits and deletes into the chat log

NOT Responsible For:
====================
- HTTP request/response handling (router's job)
- Authentication (deps.py's job)
- Talking to the database directly (store adapters' job)

Architecture:
=============
```
┌─────────────┐
│   Router    │  ← HTTP only
└──────┬──────┘
       │
       ▼
┌─────────────┐
│   Service   │  ← this file
└──────┬──────┘
       │
   ┌───┴─────────┐
   │             │
   ▼             ▼
┌──────────┐ ┌──────────┐
│Classifier│ │ Handlers │ → RecordStore, NotificationGateway
└──────────┘ └──────────┘
```

Usage:
======
```python
from aura.services.intent_service import MessageContext, intent_service

processed = await intent_service.process_message(
    MessageContext(session=session, store=store, chat_log=chat_log, notifications=scheduler),
    "Schedule a meeting with John next Monday at 10am",
)
print(processed.result.message)
```
"""

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from aura.ai.intent.classifier import IntentClassifier
from aura.ai.intent.schemas import StructuredIntent
from aura.ai.providers.base import AIProvider
from aura.core.clock import now_local
from aura.core.config import settings
from aura.core.session import SessionContext
from aura.services.conversation_context_service import (
    ConversationContextService,
    ConversationMessage,
    ConversationSession,
    MessageRole,
    conversation_context_service,
)
from aura.services.intent_handlers import (
    ConversationHandler,
    EventHandler,
    HandlerContext,
    IntentHandler,
    ReminderHandler,
)
from aura.services.intent_handlers.formatting import failure
from aura.services.intent_result import IntentResult, ResolutionOutcome
from aura.services.notifications import NotificationGateway
from aura.services.store.base import RecordStore
from aura.services.store.chat_log import ChatLogRepository

logger = logging.getLogger("aura.services.intent")

GENERIC_FAILURE_TEXT = "Something went wrong while handling your request. Please try again."


class MessageProcessingError(Exception):
    """The pipeline failed before an outcome message could be appended."""


@dataclass
class MessageContext:
    """
    Everything process_message needs for one user.

    Attributes:
        session: The authenticated user
        store: Record store scoped to the session
        chat_log: Persistent conversation log scoped to the session
        notifications: Notification gateway, None to skip scheduling
    """
    session: SessionContext
    store: RecordStore
    chat_log: Optional[ChatLogRepository] = None
    notifications: Optional[NotificationGateway] = None


@dataclass
class ProcessedMessage:
    """The two messages appended for one utterance plus what happened in between."""
    user_message: ConversationMessage
    assistant_message: ConversationMessage
    intent: StructuredIntent
    result: IntentResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_message": self.user_message.to_dict(),
            "assistant_message": self.assistant_message.to_dict(),
            "intent": self.intent.to_dict(),
            "result": self.result.to_dict(),
        }


# ---------------------------------------------------------------------------
# INTENT SERVICE
# ---------------------------------------------------------------------------

class IntentService:
    """
    Service for processing chat utterances.

    Handlers are consulted in registration order; the first whose
    ``can_handle`` accepts the intent resolves it.
    """

    def __init__(
        self,
        provider: Optional[AIProvider] = None,
        handlers: Optional[List[IntentHandler]] = None,
        conversations: Optional[ConversationContextService] = None,
    ):
        self._provider = provider
        self.handlers: List[IntentHandler] = handlers if handlers is not None else [
            EventHandler(),
            ReminderHandler(),
            ConversationHandler(),
        ]
        self.conversations = conversations or conversation_context_service
        logger.info("Intent service initialized")

    @property
    def provider(self) -> AIProvider:
        if self._provider is None:
            from aura.ai.providers.gemini import GeminiProvider

            self._provider = GeminiProvider()
        return self._provider

    def classifier_for(self, session: SessionContext) -> IntentClassifier:
        return IntentClassifier(provider=self.provider, session=session)

    # -----------------------------------------------------------------------
    # RESOLUTION ENGINE
    # -----------------------------------------------------------------------

    def get_handler(self, intent: StructuredIntent, context: HandlerContext) -> Optional[IntentHandler]:
        for handler in self.handlers:
            if handler.can_handle(intent, context):
                return handler
        return None

    async def resolve(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        """
        Resolve a structured intent into exactly one outcome.

        Never raises: a handler exception becomes a failed IntentResult.
        """
        handler = self.get_handler(intent, context)
        if handler is None:
            logger.warning(f"[{context.request_id}] No handler for intent {intent.intent.value}")
            return IntentResult(
                success=False,
                outcome=ResolutionOutcome.FAILED,
                intent=intent.intent.value,
                message=failure("I can't handle that kind of request yet."),
                confidence=intent.confidence,
                processing_time_ms=(time.time() - context.start_time) * 1000,
                request_id=context.request_id,
            )

        try:
            return await handler.handle(intent, context)
        except Exception as e:
            logger.error(
                f"[{context.request_id}] Handler {handler.handler_name} failed: {e}",
                exc_info=True,
            )
            return IntentResult(
                success=False,
                outcome=ResolutionOutcome.FAILED,
                intent=intent.intent.value,
                message=failure(f"Failed to process request: {e}"),
                confidence=intent.confidence,
                processing_time_ms=(time.time() - context.start_time) * 1000,
                request_id=context.request_id,
            )

    # -----------------------------------------------------------------------
    # MAIN ENTRY POINT
    # -----------------------------------------------------------------------

    async def process_message(
        self,
        context: MessageContext,
        text: str,
        is_voice: bool = False,
        now: Optional[datetime] = None,
    ) -> ProcessedMessage:
        """
        Run one utterance through the pipeline.

        The user message is appended before classification starts and the
        outcome message after resolution completes.

        Args:
            context: Session plus the adapters to use
            text: The utterance
            is_voice: The utterance came from speech input
            now: Reference "now" (defaults to the current local time)

        Returns:
            ProcessedMessage

        Raises:
            MessageProcessingError: classification or resolution raised
                unexpectedly; no assistant reply was appended
        """
        start_time = time.time()
        request_id = str(uuid.uuid4())
        now = now or now_local()
        user_id = context.session.user_id

        conversation = await self.ensure_loaded(context.session, context.chat_log)
        history = conversation.history(settings.CLASSIFIER_HISTORY_TURNS)

        user_message = conversation.append(MessageRole.USER, text, is_voice_origin=is_voice)
        await self._persist(context.chat_log, user_message, request_id)

        logger.info(f"[{request_id}] Processing message for user {user_id}: '{text[:80]}'")

        handler_context = HandlerContext(
            session=context.session,
            request_id=request_id,
            store=context.store,
            notifications=context.notifications,
            now=now,
            start_time=start_time,
            original_text=text,
        )

        try:
            intent = await self.classifier_for(context.session).classify(
                text, history=history, request_id=request_id, today=now.date()
            )
            result = await self.resolve(intent, handler_context)
        except Exception as e:
            logger.error(f"[{request_id}] Message processing failed: {e}", exc_info=True)
            raise MessageProcessingError(GENERIC_FAILURE_TEXT) from e

        assistant_message = conversation.append(MessageRole.ASSISTANT, result.message)
        await self._persist(context.chat_log, assistant_message, request_id)

        logger.info(
            f"[{request_id}] {intent.intent.value} -> {result.outcome.value} "
            f"in {(time.time() - start_time) * 1000:.0f}ms"
        )
        return ProcessedMessage(
            user_message=user_message,
            assistant_message=assistant_message,
            intent=intent,
            result=result,
        )

    # -----------------------------------------------------------------------
    # CONVERSATION LOG
    # -----------------------------------------------------------------------

    async def ensure_loaded(
        self,
        session: SessionContext,
        chat_log: Optional[ChatLogRepository],
    ) -> ConversationSession:
        """The user's conversation, seeded from the chat log on first use."""
        conversation = self.conversations.get_session(session.user_id)
        if chat_log is None or self.conversations.is_loaded(session.user_id):
            return conversation

        result = await chat_log.load_recent(settings.CHAT_HISTORY_LOAD_LIMIT)
        if result.success:
            conversation.load(result.data)
            self.conversations.mark_loaded(session.user_id)
            logger.info(f"Loaded {len(result.data)} messages for user {session.user_id}")
        else:
            logger.warning(f"Could not load chat history for user {session.user_id}: {result.error_message}")
        return conversation

    async def list_messages(
        self,
        session: SessionContext,
        chat_log: Optional[ChatLogRepository] = None,
    ) -> List[ConversationMessage]:
        conversation = await self.ensure_loaded(session, chat_log)
        return conversation.messages

    async def edit_message(
        self,
        session: SessionContext,
        message_id: str,
        content: str,
        chat_log: Optional[ChatLogRepository] = None,
    ) -> Optional[ConversationMessage]:
        """Change a message's text. Returns None if the id is unknown."""
        conversation = await self.ensure_loaded(session, chat_log)
        message = conversation.edit(message_id, content)
        if message is None:
            return None

        if chat_log is not None:
            result = await chat_log.update_content(message_id, content)
            if not result.success:
                logger.warning(f"Could not persist edit of message {message_id}: {result.error_message}")
        return message

    async def delete_message(
        self,
        session: SessionContext,
        message_id: str,
        chat_log: Optional[ChatLogRepository] = None,
    ) -> List[str]:
        """
        Delete a message and its paired partner.

        Returns:
            Removed ids (empty if message_id is unknown)
        """
        conversation = await self.ensure_loaded(session, chat_log)
        removed = conversation.delete(message_id)
        if removed and chat_log is not None:
            result = await chat_log.delete_many(removed)
            if not result.success:
                logger.warning(f"Could not persist delete of {removed}: {result.error_message}")
        return removed

    async def _persist(
        self,
        chat_log: Optional[ChatLogRepository],
        message: ConversationMessage,
        request_id: str,
    ) -> None:
        if chat_log is None:
            return
        result = await chat_log.append(message)
        if not result.success:
            logger.warning(f"[{request_id}] Could not persist message {message.id}: {result.error_message}")


# Singleton instance
intent_service = IntentService()
