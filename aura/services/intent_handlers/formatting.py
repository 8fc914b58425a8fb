"""
Outcome message formatting shared by the event and reminder handlers.

Times are rendered in the user's zone (settings.TIMEZONE).
"""

from datetime import datetime
from typing import List, Sequence

from aura.core.clock import to_local
from aura.schemas.records import EventRecord, ReminderRecord
from aura.services.intent_result import CLARIFICATION_MARKER, FAILURE_MARKER, SUCCESS_MARKER


def success(text: str) -> str:
    return f"{SUCCESS_MARKER} {text}"


def failure(text: str) -> str:
    return f"{FAILURE_MARKER} {text}"


def format_date(value: datetime) -> str:
    """e.g. "Monday, July 14, 2025" """
    local = to_local(value)
    return f"{local:%A}, {local:%B} {local.day}, {local.year}"


def format_time(value: datetime) -> str:
    """e.g. "9:45 AM" """
    return to_local(value).strftime("%I:%M %p").lstrip("0")


def format_when(value: datetime) -> str:
    return f"{format_date(value)} at {format_time(value)}"


def describe_event_window(event: EventRecord) -> str:
    """ "on <date> at <time>" for timed events, "from <date> to <date>" for all-day spans."""
    if event.all_day:
        first, last = format_date(event.start_time), format_date(event.end_time)
        if first == last:
            return f"on {first} (all day)"
        return f"from {first} to {last}"
    return f"on {format_date(event.start_time)} at {format_time(event.start_time)}"


def event_line(index: int, event: EventRecord, detailed: bool = True) -> str:
    if event.all_day:
        when = describe_event_window(event)
    else:
        when = format_when(event.start_time)
    line = f"{index}. {event.title} - {when}"
    if detailed and event.location:
        line += f" @ {event.location}"
    if detailed and event.description and event.description != event.title:
        line += f"\n   {event.description}"
    return line


def reminder_line(index: int, reminder: ReminderRecord, detailed: bool = True) -> str:
    line = f"{index}. {reminder.title} - {format_when(reminder.remind_at)}"
    if reminder.completed:
        line += " (done)"
    if detailed and reminder.text and reminder.text != reminder.title:
        line += f"\n   {reminder.text}"
    return line


def event_list(events: Sequence[EventRecord], detailed: bool = True) -> str:
    """Numbered (1-based) list, one event per entry."""
    return "\n".join(event_line(i, event, detailed) for i, event in enumerate(events, 1))


def reminder_list(reminders: Sequence[ReminderRecord], detailed: bool = True) -> str:
    return "\n".join(reminder_line(i, reminder, detailed) for i, reminder in enumerate(reminders, 1))


def clarification(kind_label: str, key: str, options_text: str, count: int) -> str:
    """Ask the user to pick one of several candidates."""
    if key:
        header = f'I found {count} {kind_label}s matching "{key}":'
    else:
        header = f"I found {count} {kind_label}s for today:"
    return (
        f"{CLARIFICATION_MARKER} {header}\n{options_text}\n"
        f"Which one did you mean? Please be more specific."
    )


def missing_fields(action: str, fields: List[str]) -> str:
    """Guidance naming what the user still has to provide."""
    if len(fields) == 1:
        needed = fields[0]
    else:
        needed = ", ".join(fields[:-1]) + f" and {fields[-1]}"
    return failure(f"To {action} I need the {needed}. Could you tell me?")
