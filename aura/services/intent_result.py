"""
Intent Result Types - Shared data structures for intent resolution.

Kept in their own module so intent_service.py and the intent handlers can
both import them without a cycle.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ResolutionOutcome(str, Enum):
    """How the resolution of one utterance ended."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    LISTED = "listed"
    CLARIFICATION = "clarification"
    NOT_FOUND = "not_found"
    MISSING_FIELDS = "missing_fields"
    FAILED = "failed"
    RESPONDED = "responded"


# Message markers
SUCCESS_MARKER = "✅"
FAILURE_MARKER = "❌"
CLARIFICATION_MARKER = "🔍"


@dataclass
class IntentResult:
    """
    Result of resolving a structured intent.

    ``message`` is the single outcome message appended to the conversation.

    Attributes:
        success: False for failures, not-found and missing-field outcomes
        outcome: ResolutionOutcome
        intent: The intent value that was resolved
        message: User-facing outcome text (already carries its marker)
        confidence: Classifier confidence
        data: Records touched or listed
        processing_time_ms: Time spent resolving
        request_id: For log correlation
    """
    success: bool
    outcome: ResolutionOutcome
    intent: str
    message: str = ""
    confidence: float = 0.0
    data: Optional[Dict[str, Any]] = None
    processing_time_ms: float = 0.0
    request_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for response."""
        return {
            "success": self.success,
            "outcome": self.outcome.value,
            "intent": self.intent,
            "message": self.message,
            "confidence": self.confidence,
            "data": self.data,
            "processing_time_ms": self.processing_time_ms,
            "request_id": self.request_id,
        }
