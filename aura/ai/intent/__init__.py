"""
Intent Module - Natural language understanding for the assistant.

    from aura.ai.intent import IntentClassifier, StructuredIntent
"""

from aura.ai.intent.schemas import (
    CONVERSATIONAL_INTENTS,
    IntentEntities,
    IntentType,
    StructuredIntent,
)
from aura.ai.intent.classifier import (
    ClassificationError,
    ClassificationFormatError,
    ClassificationTransportError,
    IntentClassifier,
    parse_response,
    sanitize_response,
)

__all__ = [
    "CONVERSATIONAL_INTENTS",
    "IntentEntities",
    "IntentType",
    "StructuredIntent",
    "ClassificationError",
    "ClassificationFormatError",
    "ClassificationTransportError",
    "IntentClassifier",
    "parse_response",
    "sanitize_response",
]
