"""
Relative-Date Resolver - turns temporal entities into concrete instants.

Input is the classifier's entity bag plus a reference "now" in the user's
zone; output is a ResolvedTiming with start/end and the all-day flag.

Rules:
======
Multi-day (``multiDay: true``) with a known ``dateRange``:
    this_week      Monday .. Sunday of the current week
    next_week      Monday .. Sunday of the following week
    next_3_weeks   tomorrow .. tomorrow + 21 days
    this_month     1st .. last day of the current month
    next_month     1st .. last day of next month
Unknown range token: ``date ?? today`` .. ``endDate`` if endDate is given,
otherwise the single day ``date ?? today``.
Multi-day spans are all-day: start floored to 00:00:00.000, end ceiled
to 23:59:59.999.

Single-day: ``today`` / ``tomorrow`` (relativeTime), else ``date``, else
today; then ``time`` (HH:MM) or DEFAULT_TIME_OF_DAY.

The resolver is total: unparseable dates fall back to today and
unparseable times to noon. Nothing in here raises.
"""

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from aura.ai.intent.schemas import IntentEntities
from aura.core.config import settings

logger = logging.getLogger("aura.services.date_resolver")

END_OF_DAY = time(23, 59, 59, 999000)

DATE_RANGES = ("this_week", "next_week", "next_3_weeks", "this_month", "next_month")

# Single-day events longer than this fall back to the default duration
MAX_DURATION_MINUTES = 60 * 24 * 31

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_CLOCK_TIME = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*(am|pm|a\.m\.|p\.m\.)?$")
_HOUR_ONLY = re.compile(r"^(\d{1,2})\s*(am|pm|a\.m\.|p\.m\.)$")


@dataclass
class ResolvedTiming:
    """Concrete window computed from the entities."""
    start: datetime
    end: datetime
    all_day: bool = False
    multi_day: bool = False


# ---------------------------------------------------------------------------
# PARSING HELPERS
# ---------------------------------------------------------------------------

def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse "YYYY-MM-DD" (an ISO datetime prefix is also accepted).

    Returns None for anything else, including impossible dates like 2025-02-30.
    """
    if not value or not isinstance(value, str):
        return None
    match = _ISO_DATE.match(value.strip())
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def parse_time(value: Optional[str]) -> Optional[time]:
    """
    Parse a time of day.

    Examples:
        "10:00"   -> 10:00
        "9:05"    -> 09:05
        "2:30 pm" -> 14:30
        "6 pm"    -> 18:00
        "noon"    -> 12:00
        "25:00"   -> None
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip().lower()
    if text == "noon":
        return time(12, 0)
    if text == "midnight":
        return time(0, 0)

    match = _CLOCK_TIME.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        second = int(match.group(3)) if match.group(3) else 0
        meridiem = match.group(4)
    else:
        match = _HOUR_ONLY.match(text)
        if not match:
            return None
        hour, minute, second = int(match.group(1)), 0, 0
        meridiem = match.group(2)

    if meridiem:
        if hour < 1 or hour > 12:
            return None
        if "p" in meridiem and hour != 12:
            hour += 12
        elif "a" in meridiem and hour == 12:
            hour = 0

    try:
        return time(hour, minute, second)
    except ValueError:
        return None


def default_time_of_day() -> time:
    return parse_time(settings.DEFAULT_TIME_OF_DAY) or time(12, 0)


def day_bounds(day: date, reference_now: datetime) -> Tuple[datetime, datetime]:
    """00:00:00.000 .. 23:59:59.999 of ``day`` in the reference zone."""
    tz = reference_now.tzinfo
    return (
        datetime.combine(day, time(0, 0), tzinfo=tz),
        datetime.combine(day, END_OF_DAY, tzinfo=tz),
    )


def merge_date_time(
    original: datetime,
    new_date: Optional[date] = None,
    new_time: Optional[time] = None,
) -> datetime:
    """
    Replace the date and/or the time-of-day of ``original``.

    A time-only change keeps the original date; a date-only change keeps
    the original time-of-day.
    """
    result = original
    if new_date is not None:
        result = result.replace(year=new_date.year, month=new_date.month, day=new_date.day)
    if new_time is not None:
        result = result.replace(
            hour=new_time.hour,
            minute=new_time.minute,
            second=new_time.second,
            microsecond=0,
        )
    return result


# ---------------------------------------------------------------------------
# RANGE EXPANSION
# ---------------------------------------------------------------------------

def _month_span(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def expand_date_range(token: Optional[str], today: date) -> Optional[Tuple[date, date]]:
    """Inclusive (first_day, last_day) for a known range token, else None."""
    if not token:
        return None

    token = token.strip().lower()
    if token == "this_week":
        monday = today - timedelta(days=today.weekday())
        return monday, monday + timedelta(days=6)
    if token == "next_week":
        monday = today - timedelta(days=today.weekday()) + timedelta(days=7)
        return monday, monday + timedelta(days=6)
    if token == "next_3_weeks":
        tomorrow = today + timedelta(days=1)
        return tomorrow, tomorrow + timedelta(days=21)
    if token == "this_month":
        return _month_span(today.year, today.month)
    if token == "next_month":
        if today.month == 12:
            return _month_span(today.year + 1, 1)
        return _month_span(today.year, today.month + 1)
    return None


# ---------------------------------------------------------------------------
# RESOLUTION
# ---------------------------------------------------------------------------

def _single_day_base(entities: IntentEntities, today: date) -> date:
    relative = (entities.value("relative_time") or "").lower()
    if relative == "today":
        return today
    if relative == "tomorrow":
        return today + timedelta(days=1)

    explicit = entities.value("date")
    parsed = parse_date(explicit)
    if explicit and parsed is None:
        logger.warning(f"Could not parse date '{explicit}', using today")
    return parsed or today


def requested_date(entities: IntentEntities, today: date) -> Optional[date]:
    """
    Explicit day asked for in an update, or None to keep the record's day.

    "today" / "tomorrow" win over an ISO date.
    """
    relative = (entities.value("relative_time") or "").lower()
    if relative == "today":
        return today
    if relative == "tomorrow":
        return today + timedelta(days=1)
    return parse_date(entities.value("date"))


def _multi_day_span(entities: IntentEntities, today: date) -> Tuple[date, date]:
    span = expand_date_range(entities.value("date_range"), today)
    if span is not None:
        return span

    first = parse_date(entities.value("date")) or today
    last = parse_date(entities.value("end_date"))
    if last is None:
        return first, first
    if last < first:
        logger.warning(f"endDate {last} is before {first}, collapsing to one day")
        return first, first
    return first, last


def resolve_start(entities: IntentEntities, reference_now: datetime) -> datetime:
    """
    Single-day instant: base day plus ``time`` or the default time of day.

    Used directly for reminders, which ignore the multi-day fields.
    """
    day = _single_day_base(entities, reference_now.date())

    raw_time = entities.value("time")
    clock = parse_time(raw_time)
    if raw_time and clock is None:
        logger.warning(f"Could not parse time '{raw_time}', using default time of day")
    clock = clock or default_time_of_day()

    return datetime.combine(day, clock, tzinfo=reference_now.tzinfo)


def resolve(entities: IntentEntities, reference_now: datetime) -> ResolvedTiming:
    """
    Compute the concrete window for a create/set intent.

    Args:
        entities: Classifier entities
        reference_now: Aware "now" in the user's zone

    Returns:
        ResolvedTiming. Always returns; never raises.
    """
    today = reference_now.date()

    if entities.is_multi_day:
        first, last = _multi_day_span(entities, today)
        start, _ = day_bounds(first, reference_now)
        _, end = day_bounds(last, reference_now)
        logger.debug(f"Resolved multi-day span {start.isoformat()} -> {end.isoformat()}")
        return ResolvedTiming(start=start, end=end, all_day=True, multi_day=True)

    start = resolve_start(entities, reference_now)

    duration = entities.value("duration_minutes")
    if not duration or duration <= 0 or duration > MAX_DURATION_MINUTES:
        duration = settings.DEFAULT_EVENT_DURATION_MINUTES
    end = start + timedelta(minutes=duration)

    return ResolvedTiming(start=start, end=end, all_day=False, multi_day=False)


def resolve_window(
    entities: IntentEntities, reference_now: datetime
) -> Optional[Tuple[datetime, datetime]]:
    """
    Query window for listing intents, or None for "no date bounds".

    A multi-day range wins over a single date; a date gives that day's bounds.
    """
    today = reference_now.date()

    if entities.is_multi_day:
        span = expand_date_range(entities.value("date_range"), today)
        if span is not None:
            return day_bounds(span[0], reference_now)[0], day_bounds(span[1], reference_now)[1]

    relative = (entities.value("relative_time") or "").lower()
    if relative in ("today", "tomorrow"):
        day = today if relative == "today" else today + timedelta(days=1)
        return day_bounds(day, reference_now)

    day = parse_date(entities.value("date"))
    if day is None:
        return None
    return day_bounds(day, reference_now)
