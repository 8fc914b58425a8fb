"""
Notification Scheduling Gateway - time-triggered local notifications.

The intent handlers schedule a notification after an event or reminder
is stored, and cancel it when the record is deleted or completed. These
calls are best-effort: a failed schedule never undoes the record write.

Identifiers:
============
    event_<event id>        "Upcoming Event: <title>" at start - lead minutes
    reminder_<reminder id>  "Reminder: <title>" at remind_at

Scheduling an identifier that already has a trigger replaces it, so a
reschedule is just another schedule call. A trigger time that is not in
the future is a silent no-op.

Implementation:
===============
LocalNotificationScheduler runs triggers on an APScheduler
BackgroundScheduler with DateTrigger jobs. When a job fires, the
NotificationPayload is handed to every registered listener (by default
a log line).
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from aura.core.clock import ensure_aware
from aura.core.config import settings

logger = logging.getLogger("aura.services.notifications")


class NotificationType(str, Enum):
    EVENT_REMINDER = "event_reminder"
    REMINDER = "reminder"
    ASSISTANT_MESSAGE = "assistant_message"


@dataclass
class NotificationPayload:
    """
    Data delivered with a notification and echoed back by action responses.

    Example:
        {"type": "reminder", "reminderId": "r-1", "title": "Call mom", "body": "Call mom"}
    """
    type: NotificationType
    title: str
    body: str
    event_id: Optional[str] = None
    reminder_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value, "title": self.title, "body": self.body}
        if self.event_id:
            data["eventId"] = self.event_id
        if self.reminder_id:
            data["reminderId"] = self.reminder_id
        return data


@dataclass
class NotificationResult:
    """
    Outcome of a gateway call.

    skipped is True when nothing was scheduled on purpose (past trigger
    time, notifications disabled); that still counts as success.
    """
    success: bool
    identifier: Optional[str] = None
    trigger_at: Optional[datetime] = None
    skipped: bool = False
    error: Optional[str] = None


@dataclass
class ScheduledNotification:
    """A trigger waiting to fire."""
    identifier: str
    trigger_at: datetime
    display_title: str
    payload: NotificationPayload
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def event_identifier(event_id: str) -> str:
    return f"event_{event_id}"


def reminder_identifier(reminder_id: str) -> str:
    return f"reminder_{reminder_id}"


def event_reminder_body(title: str, lead_minutes: int) -> str:
    return f'Your event "{title}" starts in {lead_minutes} minutes'


def event_lead_minutes(reminder_minutes: Optional[int], all_day: bool) -> Optional[int]:
    """
    Lead time for an event's notification, or None when it gets none.

    An explicit lead wins (0 disables); otherwise timed events use the
    default and all-day events get no notification.
    """
    if reminder_minutes is None:
        return None if all_day else settings.DEFAULT_EVENT_REMINDER_MINUTES
    return reminder_minutes if reminder_minutes > 0 else None


# ---------------------------------------------------------------------------
# GATEWAY INTERFACE
# ---------------------------------------------------------------------------

class NotificationGateway(ABC):
    """
    Abstract notification scheduler consumed by the intent handlers.

    Implementations must not raise; failures are reported through
    NotificationResult.error.
    """

    @abstractmethod
    async def schedule_event_reminder(
        self,
        event_id: str,
        title: str,
        event_start: datetime,
        lead_minutes: int,
    ) -> NotificationResult:
        """Notify ``lead_minutes`` before ``event_start``."""
        pass

    @abstractmethod
    async def schedule_reminder_at(
        self,
        reminder_id: str,
        title: str,
        body: str,
        remind_at: datetime,
    ) -> NotificationResult:
        """Notify at ``remind_at``."""
        pass

    @abstractmethod
    async def cancel(self, identifier: str) -> NotificationResult:
        """Drop a pending trigger. Unknown identifiers are not an error."""
        pass


# ---------------------------------------------------------------------------
# APSCHEDULER IMPLEMENTATION
# ---------------------------------------------------------------------------

Listener = Callable[[NotificationPayload], None]


def _log_listener(payload: NotificationPayload) -> None:
    logger.info(f"Notification delivered: {payload.to_dict()}")


class LocalNotificationScheduler(NotificationGateway):
    """
    In-process notification scheduler.

    Usage:
        notifications = LocalNotificationScheduler()
        notifications.start()
        await notifications.schedule_event_reminder("e-1", "Standup", start, 15)
        ...
        notifications.shutdown()
    """

    def __init__(
        self,
        scheduler: Optional[BackgroundScheduler] = None,
        clock: Optional[Callable[[], datetime]] = None,
        enabled: Optional[bool] = None,
    ):
        self.scheduler = scheduler or BackgroundScheduler(timezone=timezone.utc)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.enabled = settings.NOTIFICATIONS_ENABLED if enabled is None else enabled
        self._pending: Dict[str, ScheduledNotification] = {}
        self._listeners: List[Listener] = [_log_listener]
        self._lock = threading.Lock()

    # -----------------------------------------------------------------------
    # LIFECYCLE
    # -----------------------------------------------------------------------

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Notification scheduler started")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Notification scheduler stopped")

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    @property
    def pending(self) -> Dict[str, ScheduledNotification]:
        """Snapshot of triggers that have not fired yet."""
        with self._lock:
            return dict(self._pending)

    def now(self) -> datetime:
        return self._clock()

    # -----------------------------------------------------------------------
    # GATEWAY OPERATIONS
    # -----------------------------------------------------------------------

    async def schedule_event_reminder(
        self,
        event_id: str,
        title: str,
        event_start: datetime,
        lead_minutes: int,
    ) -> NotificationResult:
        lead_minutes = max(0, int(lead_minutes or 0))
        trigger_at = ensure_aware(event_start) - timedelta(minutes=lead_minutes)
        body = event_reminder_body(title, lead_minutes)
        payload = NotificationPayload(
            type=NotificationType.EVENT_REMINDER,
            title=title,
            body=body,
            event_id=event_id,
        )
        return self._schedule(event_identifier(event_id), trigger_at, f"Upcoming Event: {title}", payload)

    async def schedule_reminder_at(
        self,
        reminder_id: str,
        title: str,
        body: str,
        remind_at: datetime,
    ) -> NotificationResult:
        payload = NotificationPayload(
            type=NotificationType.REMINDER,
            title=title,
            body=body or title,
            reminder_id=reminder_id,
        )
        return self._schedule(
            reminder_identifier(reminder_id), ensure_aware(remind_at), f"Reminder: {title}", payload
        )

    async def cancel(self, identifier: str) -> NotificationResult:
        with self._lock:
            removed = self._pending.pop(identifier, None)
            self._remove_job(identifier)
        if removed is not None:
            logger.info(f"Cancelled notification {identifier}")
        return NotificationResult(success=True, identifier=identifier, skipped=removed is None)

    def send_assistant_message(self, title: str, body: str) -> NotificationPayload:
        """Deliver an immediate (unscheduled) assistant notification."""
        payload = NotificationPayload(type=NotificationType.ASSISTANT_MESSAGE, title=title, body=body)
        self._deliver(payload)
        return payload

    def deliver(self, identifier: str) -> Optional[NotificationPayload]:
        """
        Fire a pending trigger now.

        This is the APScheduler job function; it is also handy for tests.
        """
        with self._lock:
            record = self._pending.pop(identifier, None)
        if record is None:
            logger.debug(f"Notification {identifier} no longer pending")
            return None
        self._deliver(record.payload)
        return record.payload

    # -----------------------------------------------------------------------
    # INTERNALS
    # -----------------------------------------------------------------------

    def _schedule(
        self,
        identifier: str,
        trigger_at: datetime,
        display_title: str,
        payload: NotificationPayload,
    ) -> NotificationResult:
        # Any earlier trigger for this identifier is stale from here on,
        # even when the new one is skipped
        with self._lock:
            replaced = self._pending.pop(identifier, None)
            self._remove_job(identifier)
        if replaced is not None:
            logger.debug(f"Dropped previous trigger for {identifier} at {replaced.trigger_at.isoformat()}")

        if not self.enabled:
            logger.debug(f"Notifications disabled, not scheduling {identifier}")
            return NotificationResult(success=True, identifier=identifier, skipped=True)

        if trigger_at <= self.now():
            logger.info(f"Not scheduling {identifier}: trigger time {trigger_at.isoformat()} is in the past")
            return NotificationResult(
                success=True, identifier=identifier, trigger_at=trigger_at, skipped=True
            )

        try:
            with self._lock:
                # A stopped scheduler keeps jobs in a pending list where
                # replace_existing is not applied yet
                self._remove_job(identifier)
                self.scheduler.add_job(
                    self.deliver,
                    trigger=DateTrigger(run_date=trigger_at),
                    args=[identifier],
                    id=identifier,
                    replace_existing=True,
                    misfire_grace_time=300,
                )
                self._pending[identifier] = ScheduledNotification(
                    identifier=identifier,
                    trigger_at=trigger_at,
                    display_title=display_title,
                    payload=payload,
                )
        except Exception as e:
            logger.error(f"Could not schedule notification {identifier}: {e}")
            return NotificationResult(success=False, identifier=identifier, error=str(e))

        logger.info(f"Scheduled notification {identifier} for {trigger_at.isoformat()}")
        return NotificationResult(success=True, identifier=identifier, trigger_at=trigger_at)

    def _remove_job(self, identifier: str) -> None:
        try:
            self.scheduler.remove_job(identifier)
        except JobLookupError:
            pass

    def _deliver(self, payload: NotificationPayload) -> None:
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception:
                logger.exception(f"Notification listener failed for {payload.type.value}")


# Singleton instance, started and stopped by the app lifespan
notification_scheduler = LocalNotificationScheduler()
