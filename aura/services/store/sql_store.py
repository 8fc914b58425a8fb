"""
SQL Record Store - SQLAlchemy implementation of the RecordStore contract.

Every query carries ``user_id == session.user_id``. Database errors are
rolled back and reported through StoreResult; nothing raises out of here.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Type, Union

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aura.core.clock import from_storage, to_utc
from aura.core.session import SessionContext
from aura.models.event import Event
from aura.models.reminder import Reminder
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
from aura.services.store.base import Record, RecordStore, StoreResult

logger = logging.getLogger("aura.services.store.sql")

Row = Union[Event, Reminder]


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text is matched literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlRecordStore(RecordStore):
    """
    RecordStore backed by a SQLAlchemy Session.

    Usage:
        store = SqlRecordStore(SessionContext(user_id="u-1"), db)
        result = await store.insert(EntityKind.EVENT, EventCreate(...))
    """

    def __init__(self, session: SessionContext, db: Session):
        super().__init__(session)
        self.db = db

    # ---------------------------------------------------------------------------
    # MAPPING HELPERS
    # ---------------------------------------------------------------------------

    @staticmethod
    def _model(kind: EntityKind) -> Type[Row]:
        return Event if kind == EntityKind.EVENT else Reminder

    @staticmethod
    def _time_column(kind: EntityKind):
        return Event.start_time if kind == EntityKind.EVENT else Reminder.remind_at

    @staticmethod
    def _to_record(kind: EntityKind, row: Row) -> Record:
        if kind == EntityKind.EVENT:
            return EventRecord(
                id=row.id,
                user_id=row.user_id,
                title=row.title,
                description=row.description or "",
                start_time=from_storage(row.start_time),
                end_time=from_storage(row.end_time),
                all_day=bool(row.all_day),
                location=row.location or "",
                reminder_minutes=row.reminder_minutes,
            )
        return ReminderRecord(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            text=row.text or "",
            remind_at=from_storage(row.remind_at),
            completed=bool(row.completed),
            completed_at=from_storage(row.completed_at),
        )

    def _owned(self, kind: EntityKind, record_id: str) -> Optional[Row]:
        model = self._model(kind)
        stmt = select(model).where(model.id == record_id, model.user_id == self.owner_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def _not_found(self, kind: EntityKind) -> StoreResult:
        return StoreResult.fail(f"{kind.value.capitalize()} not found", not_found=True)

    def _db_failure(self, operation: str, kind: EntityKind, exc: Exception) -> StoreResult:
        self.db.rollback()
        logger.error(f"{operation} {kind.value} failed for user {self.owner_id}: {exc}")
        return StoreResult.fail(str(exc))

    # ---------------------------------------------------------------------------
    # WRITES
    # ---------------------------------------------------------------------------

    async def insert(self, kind: EntityKind, entity) -> StoreResult[Record]:
        try:
            if kind == EntityKind.EVENT:
                row: Row = Event(
                    user_id=self.owner_id,
                    title=entity.title,
                    description=entity.description or "",
                    start_time=to_utc(entity.start_time),
                    end_time=to_utc(entity.end_time),
                    all_day=entity.all_day,
                    location=entity.location or "",
                    reminder_minutes=entity.reminder_minutes,
                )
            else:
                row = Reminder(
                    user_id=self.owner_id,
                    title=entity.title,
                    text=entity.text or entity.title,
                    remind_at=to_utc(entity.remind_at),
                    completed=False,
                    completed_at=None,
                )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            return self._db_failure("insert", kind, e)

        logger.info(f"Inserted {kind.value} {row.id} for user {self.owner_id}")
        return StoreResult.ok(self._to_record(kind, row))

    async def update_by_id(self, kind: EntityKind, record_id: str, patch) -> StoreResult[Record]:
        try:
            row = self._owned(kind, record_id)
            if row is None:
                return self._not_found(kind)

            if kind == EntityKind.EVENT:
                values = patch.to_update_dict()
            else:
                values = patch.to_update_dict(now=datetime.now(timezone.utc))

            for column, value in values.items():
                if isinstance(value, datetime):
                    value = to_utc(value)
                setattr(row, column, value)

            if kind == EntityKind.EVENT and row.end_time is not None:
                if from_storage(row.end_time) < from_storage(row.start_time):
                    self.db.rollback()
                    return StoreResult.fail("Event end time cannot be before its start time")

            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            return self._db_failure("update", kind, e)

        logger.info(f"Updated {kind.value} {record_id} fields={sorted(values)}")
        return StoreResult.ok(self._to_record(kind, row))

    async def delete_by_id(self, kind: EntityKind, record_id: str) -> StoreResult[Record]:
        try:
            row = self._owned(kind, record_id)
            if row is None:
                return self._not_found(kind)
            record = self._to_record(kind, row)
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            return self._db_failure("delete", kind, e)

        logger.info(f"Deleted {kind.value} {record_id} for user {self.owner_id}")
        return StoreResult.ok(record)

    # ---------------------------------------------------------------------------
    # READS
    # ---------------------------------------------------------------------------

    async def get_by_id(self, kind: EntityKind, record_id: str) -> StoreResult[Record]:
        try:
            row = self._owned(kind, record_id)
        except SQLAlchemyError as e:
            return self._db_failure("fetch", kind, e)
        if row is None:
            return self._not_found(kind)
        return StoreResult.ok(self._to_record(kind, row))

    def _filtered(self, kind: EntityKind, record_filter: Optional[RecordFilter]):
        model = self._model(kind)
        time_column = self._time_column(kind)
        stmt = select(model).where(model.user_id == self.owner_id)

        if record_filter is not None:
            if record_filter.start_date is not None:
                stmt = stmt.where(time_column >= to_utc(record_filter.start_date))
            if record_filter.end_date is not None:
                stmt = stmt.where(time_column <= to_utc(record_filter.end_date))
            if record_filter.completed is not None and kind == EntityKind.REMINDER:
                stmt = stmt.where(Reminder.completed == record_filter.completed)

        stmt = stmt.order_by(time_column.asc())

        if record_filter is not None and record_filter.limit:
            stmt = stmt.limit(record_filter.limit)
        return stmt

    def _run(self, kind: EntityKind, stmt) -> List[Record]:
        rows = self.db.execute(stmt).scalars().all()
        return [self._to_record(kind, row) for row in rows]

    async def query_by_filter(
        self, kind: EntityKind, record_filter: Optional[RecordFilter] = None
    ) -> StoreResult[list]:
        try:
            records = self._run(kind, self._filtered(kind, record_filter))
        except SQLAlchemyError as e:
            return self._db_failure("query", kind, e)
        return StoreResult.ok(records)

    async def query_by_keyword(
        self,
        kind: EntityKind,
        query: str,
        record_filter: Optional[RecordFilter] = None,
    ) -> StoreResult[list]:
        stmt = self._filtered(kind, record_filter)
        query = (query or "").strip()

        if query:
            pattern = f"%{_escape_like(query)}%"
            if kind == EntityKind.EVENT:
                columns = (Event.title, Event.description, Event.location)
            else:
                columns = (Reminder.title, Reminder.text)
            stmt = stmt.where(or_(*(column.ilike(pattern, escape="\\") for column in columns)))

        try:
            records = self._run(kind, stmt)
        except SQLAlchemyError as e:
            return self._db_failure("search", kind, e)

        logger.debug(f"Keyword search {kind.value} '{query}' -> {len(records)} match(es)")
        return StoreResult.ok(records)
