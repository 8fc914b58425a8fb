"""
Reminders router - the reminders screen's direct CRUD.

Completing a reminder (PATCH with completed, or the toggle endpoint)
always writes completed_at in the same update and cancels its pending
notification; re-opening it schedules the notification again.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from aura.deps import get_notification_gateway, get_record_store, unwrap
from aura.schemas.records import EntityKind, RecordFilter, ReminderCreate, ReminderPatch, ReminderRecord
from aura.services.notifications import NotificationGateway, reminder_identifier
from aura.services.store.base import RecordStore

logger = logging.getLogger("aura.routers.reminders")

router = APIRouter(prefix="/reminders", tags=["reminders"])


async def sync_notification(notifications: NotificationGateway, reminder: ReminderRecord) -> None:
    if reminder.completed:
        result = await notifications.cancel(reminder_identifier(reminder.id))
    else:
        result = await notifications.schedule_reminder_at(
            reminder.id, reminder.title, reminder.text, reminder.remind_at
        )
    if not result.success:
        logger.warning(f"Notification sync failed for reminder {reminder.id}: {result.error}")


@router.get("", response_model=list[ReminderRecord])
async def list_reminders(
    completed: Optional[bool] = Query(None, description="Only completed (true) or pending (false) reminders"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    store: RecordStore = Depends(get_record_store),
):
    record_filter = RecordFilter(start_date=start_date, end_date=end_date, completed=completed, limit=limit)
    return unwrap(await store.query_by_filter(EntityKind.REMINDER, record_filter))


@router.post("", response_model=ReminderRecord, status_code=status.HTTP_201_CREATED)
async def create_reminder(
    payload: ReminderCreate,
    store: RecordStore = Depends(get_record_store),
    notifications: NotificationGateway = Depends(get_notification_gateway),
):
    reminder = unwrap(await store.insert(EntityKind.REMINDER, payload))
    await sync_notification(notifications, reminder)
    return reminder


@router.get("/{reminder_id}", response_model=ReminderRecord)
async def get_reminder(
    reminder_id: str,
    store: RecordStore = Depends(get_record_store),
):
    return unwrap(await store.get_by_id(EntityKind.REMINDER, reminder_id))


@router.patch("/{reminder_id}", response_model=ReminderRecord)
async def update_reminder(
    reminder_id: str,
    payload: ReminderPatch,
    store: RecordStore = Depends(get_record_store),
    notifications: NotificationGateway = Depends(get_notification_gateway),
):
    reminder = unwrap(await store.update_by_id(EntityKind.REMINDER, reminder_id, payload))
    if payload.remind_at is not None or payload.completed is not None:
        await sync_notification(notifications, reminder)
    return reminder


@router.post("/{reminder_id}/toggle", response_model=ReminderRecord)
async def toggle_reminder(
    reminder_id: str,
    store: RecordStore = Depends(get_record_store),
    notifications: NotificationGateway = Depends(get_notification_gateway),
):
    """Flip completed; completed_at follows it."""
    current = unwrap(await store.get_by_id(EntityKind.REMINDER, reminder_id))
    patch = ReminderPatch(completed=not current.completed)
    reminder = unwrap(await store.update_by_id(EntityKind.REMINDER, reminder_id, patch))
    await sync_notification(notifications, reminder)
    return reminder


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reminder(
    reminder_id: str,
    store: RecordStore = Depends(get_record_store),
    notifications: NotificationGateway = Depends(get_notification_gateway),
):
    unwrap(await store.delete_by_id(EntityKind.REMINDER, reminder_id))
    result = await notifications.cancel(reminder_identifier(reminder_id))
    if not result.success:
        logger.warning(f"Could not cancel notification for reminder {reminder_id}: {result.error}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
