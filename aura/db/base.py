"""
Declarative base - every ORM model inherits from Base.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Shared metadata for the events, reminders and chat_messages tables."""
    pass
