"""
Pydantic schemas shared by the store, the intent handlers and the routers.
"""

from aura.schemas.records import (
    EntityKind,
    EventRecord,
    ReminderRecord,
    EventCreate,
    ReminderCreate,
    EventPatch,
    ReminderPatch,
    RecordFilter,
)

__all__ = [
    "EntityKind",
    "EventRecord",
    "ReminderRecord",
    "EventCreate",
    "ReminderCreate",
    "EventPatch",
    "ReminderPatch",
    "RecordFilter",
]
