"""
Intent Schemas - Pydantic models for structured intents.

These schemas define the structure the classifier extracts from a user
utterance. Using Pydantic gives us validation at construction time and
easy serialization back to the camelCase JSON the model speaks.

Design Philosophy:
=================
- Every entity is an explicit Optional field, never a loose dict
- Presence is tracked: ``entities.has("date")`` distinguishes "the model
  did not mention a date" from "the model sent date: null"
- Tolerant parsing: a badly typed value (e.g. "limit": "five") becomes
  None instead of failing the whole payload
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("aura.ai.intent.schemas")


class IntentType(str, Enum):
    """
    Types of intents that can be extracted from user requests.

    CREATE_EVENT: Schedule a calendar event
    SET_REMINDER / CREATE_REMINDER: Create a reminder (synonyms)
    GET_EVENTS / GET_REMINDERS: List records
    UPDATE_* / DELETE_*: Change or remove an existing record
    GET_INFORMATION, CLARIFY, UNSUPPORTED, GENERAL: Conversational replies,
        the classifier's responseText is shown as-is
    """
    CREATE_EVENT = "create_event"
    SET_REMINDER = "set_reminder"
    CREATE_REMINDER = "create_reminder"
    GET_INFORMATION = "get_information"
    GET_EVENTS = "get_events"
    GET_REMINDERS = "get_reminders"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"
    UPDATE_REMINDER = "update_reminder"
    DELETE_REMINDER = "delete_reminder"
    CLARIFY = "clarify"
    UNSUPPORTED = "unsupported"
    GENERAL = "general"


# Intents that never touch the store
CONVERSATIONAL_INTENTS = frozenset({
    IntentType.GET_INFORMATION,
    IntentType.CLARIFY,
    IntentType.UNSUPPORTED,
    IntentType.GENERAL,
})


# ---------------------------------------------------------------------------
# ENTITIES
# ---------------------------------------------------------------------------

_STRING_FIELDS = (
    "title",
    "date",
    "time",
    "relative_time",
    "description",
    "location",
    "reminder_text",
    "search_query",
    "date_range",
    "end_date",
    "priority",
)
_INT_FIELDS = ("reminder_minutes", "duration_minutes", "limit")
_BOOL_FIELDS = ("multi_day", "recurring")


class IntentEntities(BaseModel):
    """
    Sparse bag of typed fields extracted from the utterance.

    Field names are snake_case; the camelCase names the model emits
    (relativeTime, reminderMinutes, searchQuery, ...) are accepted as
    aliases and used again when serializing.

    Example:
        {
            "title": "Meeting with John",
            "date": "2025-07-14",
            "time": "10:00",
            "relativeTime": "next Monday"
        }
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    relative_time: Optional[str] = Field(default=None, alias="relativeTime")
    description: Optional[str] = None
    location: Optional[str] = None
    reminder_text: Optional[str] = Field(default=None, alias="reminderText")
    reminder_minutes: Optional[int] = Field(default=None, alias="reminderMinutes")
    duration_minutes: Optional[int] = Field(default=None, alias="durationMinutes")
    search_query: Optional[str] = Field(default=None, alias="searchQuery")
    date_range: Optional[str] = Field(default=None, alias="dateRange")
    multi_day: Optional[bool] = Field(default=None, alias="multiDay")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    limit: Optional[int] = None
    priority: Optional[str] = None
    recurring: Optional[bool] = None

    @field_validator(*_STRING_FIELDS, mode="before")
    @classmethod
    def _coerce_string(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None

    @field_validator(*_INT_FIELDS, mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> Optional[int]:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str):
            try:
                return int(float(value.strip()))
            except ValueError:
                return None
        return None

    @field_validator(*_BOOL_FIELDS, mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> Optional[bool]:
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "yes", "1"):
                return True
            if lowered in ("false", "no", "0"):
                return False
            return None
        if isinstance(value, (int, float)):
            return bool(value)
        return None

    def has(self, name: str) -> bool:
        """True if the field was present in the payload (even if null)."""
        return name in self.model_fields_set

    def value(self, name: str) -> Any:
        """
        The field's value if it is present and carries something usable.

        Empty / whitespace-only strings count as absent.
        """
        if not self.has(name):
            return None
        current = getattr(self, name)
        if isinstance(current, str):
            current = current.strip()
            return current or None
        return current

    @property
    def is_multi_day(self) -> bool:
        return self.multi_day is True

    def to_dict(self) -> Dict[str, Any]:
        """Only the fields that were present, in the model's camelCase vocabulary."""
        return self.model_dump(by_alias=True, exclude_unset=True)


# ---------------------------------------------------------------------------
# STRUCTURED INTENT
# ---------------------------------------------------------------------------

class StructuredIntent(BaseModel):
    """
    The classifier's full answer for one utterance.

    Attributes:
        intent: One of IntentType (unknown strings become GENERAL)
        entities: Extracted fields
        confidence: 0.0 - 1.0
        response_text: Natural-language reply candidate written by the model
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    intent: IntentType = IntentType.GENERAL
    entities: IntentEntities = Field(default_factory=IntentEntities)
    confidence: float = 0.0
    response_text: str = Field(default="", alias="responseText")

    @field_validator("intent", mode="before")
    @classmethod
    def _coerce_intent(cls, value: Any) -> IntentType:
        if isinstance(value, IntentType):
            return value
        if isinstance(value, str):
            try:
                return IntentType(value.strip().lower())
            except ValueError:
                logger.warning(f"Unknown intent '{value}', treating as general")
        return IntentType.GENERAL

    @field_validator("entities", mode="before")
    @classmethod
    def _coerce_entities(cls, value: Any) -> Any:
        if value is None or not isinstance(value, (dict, IntentEntities)):
            return {}
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
        return max(0.0, min(1.0, number))

    @field_validator("response_text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @property
    def is_conversational(self) -> bool:
        return self.intent in CONVERSATIONAL_INTENTS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "entities": self.entities.to_dict(),
            "confidence": self.confidence,
            "responseText": self.response_text,
        }
