"""
ORM models. Importing this package registers every table on Base.metadata.
"""

from aura.models.event import Event
from aura.models.reminder import Reminder
from aura.models.chat_message import ChatMessage

__all__ = ["Event", "Reminder", "ChatMessage"]
