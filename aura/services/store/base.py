"""
Record Store - Abstract interface over the persistence service.

The intent handlers and the routers only ever talk to this contract.
Every operation is implicitly scoped to the SessionContext the store was
built with: there is no way to see or touch another user's records.

Design Pattern: Result objects
==============================
Like AIProvider.generate_chat() returning an AIResponse, store operations do
not raise. They return a StoreResult whose ``error`` is a StoreError with
a human-readable message, which callers forward verbatim to the user.

Example:
    result = await store.query_by_keyword(EntityKind.EVENT, "lunch")
    if not result.success:
        return f"Search failed: {result.error.message}"
    for event in result.data:
        ...
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from aura.core.session import SessionContext
from aura.schemas.records import (
    EntityKind,
    EventCreate,
    EventPatch,
    EventRecord,
    RecordFilter,
    ReminderCreate,
    ReminderPatch,
    ReminderRecord,
)

T = TypeVar("T")

Record = Union[EventRecord, ReminderRecord]
RecordCreate = Union[EventCreate, ReminderCreate]
RecordPatch = Union[EventPatch, ReminderPatch]


class StoreError(Exception):
    """
    Any failure of the persistence service.

    ``message`` is meant for humans and is surfaced as-is in outcome
    messages ("Failed to create event: <message>").
    """

    def __init__(self, message: str, not_found: bool = False):
        super().__init__(message)
        self.message = message
        self.not_found = not_found


@dataclass
class StoreResult(Generic[T]):
    """
    Outcome of a single store operation.

    Attributes:
        success: Whether the operation went through
        data: The record(s) produced, None on failure
        error: StoreError describing the failure
    """
    success: bool
    data: Optional[T] = None
    error: Optional[StoreError] = None

    @classmethod
    def ok(cls, data: T = None) -> "StoreResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, message: str, not_found: bool = False) -> "StoreResult[T]":
        return cls(success=False, error=StoreError(message, not_found=not_found))

    @property
    def error_message(self) -> str:
        return self.error.message if self.error else ""


class RecordStore(ABC):
    """
    Abstract base class for the event/reminder store.

    Implementations:
    - SqlRecordStore: SQLAlchemy-backed (Postgres in production, SQLite in tests)
    """

    def __init__(self, session: SessionContext):
        self.session = session

    @property
    def owner_id(self) -> str:
        return self.session.user_id

    @abstractmethod
    async def insert(self, kind: EntityKind, entity: RecordCreate) -> StoreResult[Record]:
        """Persist a new record owned by the current user."""
        pass

    @abstractmethod
    async def update_by_id(
        self, kind: EntityKind, record_id: str, patch: RecordPatch
    ) -> StoreResult[Record]:
        """Apply a partial update and return the updated record."""
        pass

    @abstractmethod
    async def delete_by_id(self, kind: EntityKind, record_id: str) -> StoreResult[Record]:
        """Delete a record and return what was deleted."""
        pass

    @abstractmethod
    async def get_by_id(self, kind: EntityKind, record_id: str) -> StoreResult[Record]:
        """Fetch one record, failing with not_found if it isn't the user's."""
        pass

    @abstractmethod
    async def query_by_filter(
        self, kind: EntityKind, record_filter: Optional[RecordFilter] = None
    ) -> StoreResult[list]:
        """List records matching the filter, ordered by time ascending."""
        pass

    @abstractmethod
    async def query_by_keyword(
        self,
        kind: EntityKind,
        query: str,
        record_filter: Optional[RecordFilter] = None,
    ) -> StoreResult[list]:
        """
        Case-insensitive substring search.

        Events match on title, description or location; reminders on
        title or text. An empty query matches every record in the filter.
        """
        pass


def describe_failure(action: str, kind: EntityKind, result: StoreResult) -> str:
    """Standard wording for a failed store call, e.g. 'Failed to create event: ...'."""
    return f"Failed to {action} {kind.value}: {result.error_message}"


def record_to_dict(record: Record) -> Dict[str, Any]:
    """JSON-friendly dump used in IntentResult.data."""
    return record.model_dump(mode="json")
