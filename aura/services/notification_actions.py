"""
Notification Actions - responses to the buttons on a delivered notification.

    snooze_5         event or reminder again in SNOOZE_EVENT_MINUTES
    snooze_10        event or reminder again in SNOOZE_REMINDER_MINUTES
    snooze_reminder  same as snooze_10
    mark_done        complete the reminder (completed_at set together)
    mark_as_read     acknowledge only
    view_event       return the event so the client can open it
    dismiss          nothing

Snoozes go through the same gateway calls the intent handlers use: an
event is rescheduled with lead time 0 at now+N, a reminder at now+N.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from aura.core.config import settings
from aura.schemas.records import EntityKind, ReminderPatch
from aura.services.intent_handlers.formatting import format_time
from aura.services.notifications import NotificationGateway, NotificationPayload, reminder_identifier
from aura.services.store.base import RecordStore, record_to_dict

logger = logging.getLogger("aura.services.notification_actions")


class NotificationAction(str, Enum):
    SNOOZE_5 = "snooze_5"
    SNOOZE_10 = "snooze_10"
    SNOOZE_REMINDER = "snooze_reminder"
    MARK_DONE = "mark_done"
    MARK_AS_READ = "mark_as_read"
    VIEW_EVENT = "view_event"
    DISMISS = "dismiss"


@dataclass
class ActionResult:
    """Confirmation for the client."""
    success: bool
    action: NotificationAction
    message: str
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "action": self.action.value,
            "message": self.message,
            "data": self.data,
        }


def snooze_minutes(action: NotificationAction) -> int:
    if action == NotificationAction.SNOOZE_5:
        return settings.SNOOZE_EVENT_MINUTES
    return settings.SNOOZE_REMINDER_MINUTES


class NotificationActionHandler:
    """
    Applies a notification action for one user.

    Usage:
        handler = NotificationActionHandler(store, scheduler)
        result = await handler.handle("snooze_5", payload)
    """

    def __init__(
        self,
        store: RecordStore,
        notifications: NotificationGateway,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.notifications = notifications
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def handle(self, action: str, payload: NotificationPayload) -> ActionResult:
        """
        Dispatch one action.

        Raises:
            ValueError: unknown action name
        """
        try:
            chosen = NotificationAction(action.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown notification action '{action}'") from None

        logger.info(f"Notification action {chosen.value} for {payload.to_dict()}")

        if chosen in (NotificationAction.SNOOZE_5, NotificationAction.SNOOZE_10, NotificationAction.SNOOZE_REMINDER):
            return await self._snooze(chosen, payload)
        if chosen == NotificationAction.MARK_DONE:
            return await self._mark_done(payload)
        if chosen == NotificationAction.VIEW_EVENT:
            return await self._view_event(payload)
        if chosen == NotificationAction.MARK_AS_READ:
            return ActionResult(success=True, action=chosen, message="✓ Notification marked as read")
        return ActionResult(success=True, action=chosen, message="Notification dismissed")

    async def _snooze(self, action: NotificationAction, payload: NotificationPayload) -> ActionResult:
        minutes = snooze_minutes(action)
        snooze_at = self._clock() + timedelta(minutes=minutes)

        if payload.event_id:
            result = await self.notifications.schedule_event_reminder(
                payload.event_id, payload.title, snooze_at, 0
            )
        elif payload.reminder_id:
            result = await self.notifications.schedule_reminder_at(
                payload.reminder_id, payload.title, payload.body, snooze_at
            )
        else:
            return ActionResult(success=False, action=action, message="Nothing to snooze")

        if not result.success:
            logger.warning(f"Snooze failed for {result.identifier}: {result.error}")
            return ActionResult(success=False, action=action, message=f"Could not snooze: {result.error}")

        return ActionResult(
            success=True,
            action=action,
            message=f"Snoozed for {minutes} minutes. You'll be reminded again at {format_time(snooze_at)}",
            data={"identifier": result.identifier, "trigger_at": snooze_at.isoformat()},
        )

    async def _mark_done(self, payload: NotificationPayload) -> ActionResult:
        action = NotificationAction.MARK_DONE
        if not payload.reminder_id:
            return ActionResult(success=False, action=action, message="Only reminders can be marked as done")

        result = await self.store.update_by_id(
            EntityKind.REMINDER, payload.reminder_id, ReminderPatch(completed=True)
        )
        if not result.success:
            return ActionResult(
                success=False, action=action, message=f"Failed to update reminder: {result.error_message}"
            )

        cancelled = await self.notifications.cancel(reminder_identifier(payload.reminder_id))
        if not cancelled.success:
            logger.warning(f"Could not cancel {cancelled.identifier}: {cancelled.error}")

        return ActionResult(
            success=True,
            action=action,
            message="✓ Reminder marked as done",
            data={"reminder": record_to_dict(result.data)},
        )

    async def _view_event(self, payload: NotificationPayload) -> ActionResult:
        action = NotificationAction.VIEW_EVENT
        if not payload.event_id:
            return ActionResult(success=False, action=action, message="No event attached to this notification")

        result = await self.store.get_by_id(EntityKind.EVENT, payload.event_id)
        if not result.success:
            return ActionResult(success=False, action=action, message=f"Failed to load event: {result.error_message}")
        return ActionResult(
            success=True,
            action=action,
            message=f'Opening "{result.data.title}"',
            data={"event": record_to_dict(result.data)},
        )
