"""
Base Intent Handler - Abstract interface for all intent handlers.

This module defines the contract that all intent handlers must follow.

Design Pattern: Strategy Pattern
================================
The base class defines the interface, and each handler implements it.
IntentService routes a StructuredIntent to the first handler whose
``can_handle`` accepts it.

Example:
    handler = EventHandler()
    if handler.can_handle(intent, context):
        result = await handler.handle(intent, context)

Reference:
    This follows the same ABC pattern as aura/ai/providers/base.py
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from aura.ai.intent.schemas import StructuredIntent
from aura.core.session import SessionContext
from aura.services.intent_result import IntentResult, ResolutionOutcome
from aura.services.notifications import NotificationGateway, NotificationResult
from aura.services.store.base import RecordStore

logger = logging.getLogger("aura.services.intent_handlers")


@dataclass
class HandlerContext:
    """
    Context shared between all handlers.

    Attributes:
        session: Who is asking (every store call is scoped to it)
        request_id: Unique identifier for this request (for logging/tracing)
        store: Record store adapter scoped to the session
        notifications: Notification gateway, None to skip scheduling
        now: Aware reference "now" in the user's zone
        start_time: Request start time for latency tracking
        original_text: The utterance that produced the intent

    Usage:
        context = HandlerContext(
            session=SessionContext(user_id="u-1"),
            request_id=str(uuid4()),
            store=SqlRecordStore(session, db),
            notifications=scheduler,
            now=now_local(),
            start_time=time.time(),
        )
    """

    session: SessionContext
    request_id: str
    store: RecordStore
    notifications: Optional[NotificationGateway]
    now: datetime
    start_time: float
    original_text: str = ""

    @property
    def user_id(self) -> str:
        return self.session.user_id


class IntentHandler(ABC):
    """
    Abstract base class for intent handlers.

    Responsibilities:
    - Declare which intents it resolves (supported_intent_types)
    - Resolve the intent into exactly one IntentResult (handle)

    NOT Responsible For:
    - Classifying text (IntentClassifier's job)
    - Appending messages to the conversation (IntentService's job)
    - HTTP request/response handling (router's job)
    """

    @property
    @abstractmethod
    def handler_name(self) -> str:
        """Unique identifier for this handler, used in logs."""
        pass

    @property
    @abstractmethod
    def supported_intent_types(self) -> List[str]:
        """IntentType values this handler resolves."""
        pass

    def can_handle(self, intent: StructuredIntent, context: HandlerContext) -> bool:
        return intent.intent.value in self.supported_intent_types

    @abstractmethod
    async def handle(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        """
        Resolve the intent and return a result.

        Note:
            This method should NOT raise exceptions.
            Errors should be captured in IntentResult.
        """
        pass

    # -----------------------------------------------------------------------
    # SHARED HELPERS
    # -----------------------------------------------------------------------

    def _result(
        self,
        intent: StructuredIntent,
        context: HandlerContext,
        outcome: ResolutionOutcome,
        message: str,
        success: bool = True,
        data: Optional[Dict[str, Any]] = None,
    ) -> IntentResult:
        processing_time = (time.time() - context.start_time) * 1000
        result = IntentResult(
            success=success,
            outcome=outcome,
            intent=intent.intent.value,
            message=message,
            confidence=intent.confidence,
            data=data,
            processing_time_ms=processing_time,
            request_id=context.request_id,
        )
        self._log_exit(context, result)
        return result

    async def _notify(
        self,
        context: HandlerContext,
        description: str,
        call: Callable[[NotificationGateway], Awaitable[NotificationResult]],
    ) -> Optional[NotificationResult]:
        """
        Run a notification side effect after a successful store write.

        Failures are logged and never change the outcome of the write.
        """
        if context.notifications is None:
            return None
        try:
            result = await call(context.notifications)
        except Exception as e:
            logger.warning(f"[{context.request_id}] Notification {description} failed: {e}")
            return None
        if not result.success:
            logger.warning(f"[{context.request_id}] Notification {description} failed: {result.error}")
        return result

    def _log_entry(self, intent: StructuredIntent, context: HandlerContext) -> None:
        logger.info(
            f"[{context.request_id}] {self.handler_name}.handle() called for {intent.intent.value}",
            extra={"handler": self.handler_name, "user_id": context.user_id},
        )

    def _log_exit(self, context: HandlerContext, result: IntentResult) -> None:
        logger.info(
            f"[{context.request_id}] {self.handler_name}.handle() completed: {result.outcome.value}",
            extra={
                "handler": self.handler_name,
                "success": result.success,
                "processing_time_ms": result.processing_time_ms,
            },
        )
