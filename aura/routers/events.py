"""
Events router - the calendar screen's direct CRUD.

Failures surface as HTTP errors (404 for unknown ids, 400 otherwise).
Notification side effects follow the same rules as the chat path:
timed events get a lead-time notification, all-day events none, and a
failed schedule never fails the request.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from aura.deps import get_notification_gateway, get_record_store, unwrap
from aura.schemas.records import EntityKind, EventCreate, EventPatch, EventRecord, RecordFilter
from aura.services.notifications import NotificationGateway, event_identifier, event_lead_minutes
from aura.services.store.base import RecordStore

logger = logging.getLogger("aura.routers.events")

# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/events", tags=["events"])


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------

async def sync_notification(notifications: NotificationGateway, event: EventRecord) -> None:
    """Schedule the event's notification, or drop it when the event gets none."""
    lead = event_lead_minutes(event.reminder_minutes, event.all_day)
    if lead is None:
        result = await notifications.cancel(event_identifier(event.id))
    else:
        result = await notifications.schedule_event_reminder(event.id, event.title, event.start_time, lead)
    if not result.success:
        logger.warning(f"Notification sync failed for event {event.id}: {result.error}")


# ---------------------------------------------------------------------------
# LIST / SEARCH
# ---------------------------------------------------------------------------

@router.get("", response_model=list[EventRecord])
async def list_events(
    start_date: Optional[datetime] = Query(None, description="Inclusive lower bound on start_time"),
    end_date: Optional[datetime] = Query(None, description="Inclusive upper bound on start_time"),
    limit: Optional[int] = Query(None, ge=1),
    store: RecordStore = Depends(get_record_store),
):
    record_filter = RecordFilter(start_date=start_date, end_date=end_date, limit=limit)
    return unwrap(await store.query_by_filter(EntityKind.EVENT, record_filter))


@router.get("/search", response_model=list[EventRecord])
async def search_events(
    q: str = Query(..., min_length=1, description="Matched against title, description and location"),
    store: RecordStore = Depends(get_record_store),
):
    return unwrap(await store.query_by_keyword(EntityKind.EVENT, q))


# ---------------------------------------------------------------------------
# CREATE
# ---------------------------------------------------------------------------

@router.post("", response_model=EventRecord, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    store: RecordStore = Depends(get_record_store),
    notifications: NotificationGateway = Depends(get_notification_gateway),
):
    event = unwrap(await store.insert(EntityKind.EVENT, payload))
    await sync_notification(notifications, event)
    return event


# ---------------------------------------------------------------------------
# GET / UPDATE / DELETE
# ---------------------------------------------------------------------------

@router.get("/{event_id}", response_model=EventRecord)
async def get_event(
    event_id: str,
    store: RecordStore = Depends(get_record_store),
):
    return unwrap(await store.get_by_id(EntityKind.EVENT, event_id))


@router.patch("/{event_id}", response_model=EventRecord)
async def update_event(
    event_id: str,
    payload: EventPatch,
    store: RecordStore = Depends(get_record_store),
    notifications: NotificationGateway = Depends(get_notification_gateway),
):
    """Partial update; only the fields sent are written."""
    event = unwrap(await store.update_by_id(EntityKind.EVENT, event_id, payload))
    if payload.start_time is not None or payload.all_day is not None or payload.reminder_minutes is not None:
        await sync_notification(notifications, event)
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    store: RecordStore = Depends(get_record_store),
    notifications: NotificationGateway = Depends(get_notification_gateway),
):
    unwrap(await store.delete_by_id(EntityKind.EVENT, event_id))
    result = await notifications.cancel(event_identifier(event_id))
    if not result.success:
        logger.warning(f"Could not cancel notification for event {event_id}: {result.error}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
