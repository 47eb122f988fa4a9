"""Timestamp and date utilities.

All instants are handled as timezone-aware UTC datetimes. Calendar dates
(application deadlines) are plain ``date`` objects interpreted in UTC.

Storage formats:
- instants: ``YYYY-MM-DDTHH:MM:SS.ffffffZ`` (fixed width, sorts lexicographically)
- dates: ``YYYY-MM-DD``
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Optional

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
DATE_FORMAT = "%Y-%m-%d"


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def utc_today(now: Optional[datetime] = None) -> date:
    """Return the UTC calendar date for ``now`` (defaults to the current time)."""
    return ensure_utc(now or utc_now()).date()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    If the datetime is timezone-naive, it's treated as UTC.
    If the datetime has a different timezone, it's converted to UTC.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso_datetime(iso_string: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 datetime string to UTC datetime.

    Supports:
    - 2026-11-04T12:00:00Z
    - 2026-11-04T12:00:00.123456Z
    - 2026-11-04T12:00:00+00:00
    - 2026-11-04 (midnight UTC)

    Args:
        iso_string: ISO 8601 formatted string (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if the string is empty or unparseable
    """
    if not iso_string or not iso_string.strip():
        return None

    cleaned = iso_string.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        try:
            return ensure_utc(datetime.strptime(cleaned, DATE_FORMAT))
        except ValueError:
            return None


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string (or the date part of an ISO datetime)."""
    if not value or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip()[:10], DATE_FORMAT).date()
    except ValueError:
        return None


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime in the fixed-width storage format.

    Example:
        >>> format_timestamp(datetime(2026, 11, 4, 12, 0, 0, tzinfo=timezone.utc))
        '2026-11-04T12:00:00.000000Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return None
    return dt_utc.strftime(STORAGE_FORMAT)


def format_date(value: Optional[date]) -> Optional[str]:
    """Format a date as ``YYYY-MM-DD``."""
    if value is None:
        return None
    return value.strftime(DATE_FORMAT)


def format_timestamp_for_log(dt: datetime) -> str:
    """Format a datetime for structured logging (no microseconds)."""
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")


def days_until(deadline: date, now: datetime) -> int:
    """Whole days remaining until ``deadline``, rounded up.

    The deadline is taken as midnight UTC at the start of that date, so a
    posting due tomorrow evaluated at noon today has 1 day remaining and one
    due today has 0.

    Example:
        >>> days_until(date(2026, 11, 7), datetime(2026, 11, 4, 12, tzinfo=timezone.utc))
        3
    """
    deadline_start = datetime(deadline.year, deadline.month, deadline.day, tzinfo=timezone.utc)
    delta = deadline_start - ensure_utc(now)
    return math.ceil(delta / timedelta(days=1))
