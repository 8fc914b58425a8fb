"""
Record schemas - Pydantic models for events and reminders.

These are the shapes that cross the store adapter boundary and the
HTTP surface. ORM rows never leave the store.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EntityKind(str, Enum):
    """The two domain collections the assistant manages."""
    EVENT = "event"
    REMINDER = "reminder"


# ---------------------------------------------------------------------------
# RECORDS (what the store returns)
# ---------------------------------------------------------------------------

class EventRecord(BaseModel):
    """A persisted calendar event."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    description: str = ""
    start_time: datetime
    end_time: datetime
    all_day: bool = False
    location: str = ""
    reminder_minutes: Optional[int] = None


class ReminderRecord(BaseModel):
    """A persisted reminder. completed_at is set iff completed is true."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    text: str = ""
    remind_at: datetime
    completed: bool = False
    completed_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# CREATE SCHEMAS
# ---------------------------------------------------------------------------

class EventCreate(BaseModel):
    """
    Schema for creating an event.

    Example request body:
    {
        "title": "Meeting with John",
        "start_time": "2025-07-14T10:00:00+00:00",
        "end_time": "2025-07-14T11:00:00+00:00"
    }
    """
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    start_time: datetime
    end_time: datetime
    all_day: bool = False
    location: str = ""
    reminder_minutes: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def _check_window(self) -> "EventCreate":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class ReminderCreate(BaseModel):
    """
    Schema for creating a reminder.

    text falls back to the title when omitted.
    """
    title: str = Field(..., min_length=1, max_length=255)
    text: Optional[str] = None
    remind_at: datetime

    @model_validator(mode="after")
    def _default_text(self) -> "ReminderCreate":
        if not self.text:
            self.text = self.title
        return self


# ---------------------------------------------------------------------------
# PATCH SCHEMAS
# ---------------------------------------------------------------------------
# All fields optional - only fields that carry a value end up in the update.

class EventPatch(BaseModel):
    """Partial update for an event."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    all_day: Optional[bool] = None
    location: Optional[str] = None
    reminder_minutes: Optional[int] = Field(None, ge=0)

    def to_update_dict(self) -> Dict[str, Any]:
        """Column values to write; absent and null fields are left untouched."""
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.to_update_dict()


class ReminderPatch(BaseModel):
    """
    Partial update for a reminder.

    Setting ``completed`` always writes ``completed_at`` in the same update:
    the current time when completing, null when re-opening.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    text: Optional[str] = None
    remind_at: Optional[datetime] = None
    completed: Optional[bool] = None

    def to_update_dict(self, now: datetime) -> Dict[str, Any]:
        values = self.model_dump(exclude_none=True)
        if self.completed is not None:
            values["completed_at"] = now if self.completed else None
        return values

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# QUERY FILTER
# ---------------------------------------------------------------------------

class RecordFilter(BaseModel):
    """
    Filter vocabulary for queryByFilter.

    Date bounds are inclusive and apply to start_time (events) or
    remind_at (reminders). ``completed`` only applies to reminders.
    """
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    completed: Optional[bool] = None
    limit: Optional[int] = Field(None, ge=1)
