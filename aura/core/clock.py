"""
Clock helpers - the user's local zone and UTC conversions.

All instants inside the core are timezone-aware. The store writes UTC;
"today", day bounds and rendered times use settings.TIMEZONE.
"""

from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from aura.core.config import settings

logger = logging.getLogger("aura.core.clock")


def local_tz() -> tzinfo:
    """Zone configured in settings.TIMEZONE, UTC if the name is unknown."""
    try:
        return ZoneInfo(settings.TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown TIMEZONE '{settings.TIMEZONE}', falling back to UTC")
        return timezone.utc


def now_local() -> datetime:
    """Current time in the user's zone."""
    return datetime.now(local_tz())


def ensure_aware(value: datetime, assume: tzinfo = None) -> datetime:
    """Attach ``assume`` (default: local zone) to naive datetimes."""
    if value.tzinfo is None:
        return value.replace(tzinfo=assume or local_tz())
    return value


def to_utc(value: datetime) -> datetime:
    """Normalize for storage. Naive values are taken as local time."""
    return ensure_aware(value).astimezone(timezone.utc)


def from_storage(value: datetime) -> datetime:
    """Values read back from the database; naive ones were written as UTC."""
    if value is None:
        return None
    return ensure_aware(value, assume=timezone.utc)


def to_local(value: datetime) -> datetime:
    """Convert an aware instant to the user's zone for display."""
    return ensure_aware(value, assume=timezone.utc).astimezone(local_tz())
