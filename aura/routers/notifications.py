"""
Notifications router - action buttons tapped on a delivered notification.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from aura.deps import get_notification_gateway, get_record_store
from aura.schemas.chat import NotificationActionRequest
from aura.services.notification_actions import NotificationActionHandler
from aura.services.notifications import NotificationGateway
from aura.services.store.base import RecordStore

logger = logging.getLogger("aura.routers.notifications")

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/actions")
async def handle_action(
    payload: NotificationActionRequest,
    store: RecordStore = Depends(get_record_store),
    notifications: NotificationGateway = Depends(get_notification_gateway),
):
    """
    Apply snooze_5, snooze_10, snooze_reminder, mark_done, mark_as_read,
    view_event or dismiss to the notification described by ``payload``.
    """
    handler = NotificationActionHandler(store, notifications)
    try:
        result = await handler.handle(payload.action, payload.payload.to_payload())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return result.to_dict()
