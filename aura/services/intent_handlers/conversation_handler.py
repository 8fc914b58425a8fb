"""
Conversation Handler - Conversational intents that never touch the store.

general, get_information, clarify and unsupported all surface the
classifier's responseText as-is.
"""

import logging
from typing import List

from aura.ai.intent.schemas import CONVERSATIONAL_INTENTS, StructuredIntent
from aura.services.intent_handlers.base import HandlerContext, IntentHandler
from aura.services.intent_result import IntentResult, ResolutionOutcome

logger = logging.getLogger("aura.services.intent_handlers.conversation")

FALLBACK_REPLY = "I'm not sure how to help with that. Could you rephrase it?"


class ConversationHandler(IntentHandler):
    """Echoes the model's own reply for non-actionable intents."""

    @property
    def handler_name(self) -> str:
        return "conversation"

    @property
    def supported_intent_types(self) -> List[str]:
        return [intent_type.value for intent_type in CONVERSATIONAL_INTENTS]

    async def handle(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        self._log_entry(intent, context)

        reply = intent.response_text.strip()
        if not reply:
            logger.warning(f"[{context.request_id}] Empty responseText for {intent.intent.value}")
            reply = FALLBACK_REPLY

        return self._result(intent, context, ResolutionOutcome.RESPONDED, reply)
