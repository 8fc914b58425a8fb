"""
Store Package - the Domain Record Store Adapter.

    from aura.services.store import RecordStore, SqlRecordStore, StoreResult
"""

from aura.services.store.base import (
    RecordStore,
    StoreError,
    StoreResult,
    describe_failure,
    record_to_dict,
)
from aura.services.store.sql_store import SqlRecordStore

__all__ = [
    "RecordStore",
    "StoreError",
    "StoreResult",
    "describe_failure",
    "record_to_dict",
    "SqlRecordStore",
]
