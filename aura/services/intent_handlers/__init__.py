"""
Intent Handlers Package - Strategy pattern for intent resolution.

Each handler resolves one category of intents:

    EventHandler         create_event, get_events, update_event, delete_event
    ReminderHandler      create_reminder, set_reminder, get_reminders,
                         update_reminder, delete_reminder
    ConversationHandler  general, get_information, clarify, unsupported

IntentService acts as the context that delegates to the appropriate handler.

Reference: aura/ai/providers/base.py (AIProvider ABC)
"""

from aura.services.intent_handlers.base import (
    HandlerContext,
    IntentHandler,
)
from aura.services.intent_handlers.conversation_handler import ConversationHandler
from aura.services.intent_handlers.event_handler import EventHandler
from aura.services.intent_handlers.reminder_handler import ReminderHandler

__all__ = [
    "IntentHandler",
    "HandlerContext",
    "EventHandler",
    "ReminderHandler",
    "ConversationHandler",
]
