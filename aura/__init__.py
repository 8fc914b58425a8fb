"""
Aura - conversational assistant core for calendar events and reminders.
"""

__version__ = "0.1.0"
