"""
Chat and notification-action request/response schemas for the HTTP surface.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from aura.services.notifications import NotificationPayload, NotificationType


class ChatMessageIn(BaseModel):
    """
    One utterance typed or spoken by the user.

    Example request body:
    {
        "text": "Schedule a meeting with John next Monday at 10am",
        "is_voice": false
    }
    """
    text: str = Field(..., min_length=1, max_length=2000)
    is_voice: bool = False


class ChatMessageOut(BaseModel):
    id: str
    role: str
    content: str
    timestamp: datetime
    is_voice_origin: bool = False
    replies_to: Optional[str] = None


class ProcessMessageResponse(BaseModel):
    """What the chat screen needs after one utterance."""
    user_message: ChatMessageOut
    assistant_message: ChatMessageOut
    intent: Dict[str, Any]
    result: Dict[str, Any]


class EditMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class DeleteMessageResponse(BaseModel):
    deleted: List[str]


class NotificationPayloadIn(BaseModel):
    """The data dict a delivered notification carries (camelCase ids)."""
    model_config = ConfigDict(populate_by_name=True)

    type: NotificationType
    title: str
    body: str = ""
    event_id: Optional[str] = Field(default=None, alias="eventId")
    reminder_id: Optional[str] = Field(default=None, alias="reminderId")

    def to_payload(self) -> NotificationPayload:
        return NotificationPayload(
            type=self.type,
            title=self.title,
            body=self.body,
            event_id=self.event_id,
            reminder_id=self.reminder_id,
        )


class NotificationActionRequest(BaseModel):
    """
    Example request body:
    {
        "action": "snooze_5",
        "payload": {"type": "event_reminder", "eventId": "e-1", "title": "Standup", "body": "..."}
    }
    """
    action: str
    payload: NotificationPayloadIn
