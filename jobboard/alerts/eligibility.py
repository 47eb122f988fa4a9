"""Time-based eligibility rules for the alert passes.

All functions take an explicit ``now`` so a whole pass is evaluated against
one instant.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from jobboard.domain.models import AlertFrequency
from jobboard.utils.timestamps import days_until, ensure_utc

# Minimum elapsed time between two alerts for one saved search
FREQUENCY_THRESHOLDS = {
    AlertFrequency.IMMEDIATE: timedelta(hours=1),
    AlertFrequency.DAILY: timedelta(hours=24),
    AlertFrequency.WEEKLY: timedelta(hours=168),
}

DEFAULT_LOOKBACK = timedelta(hours=24)


def is_alert_due(
    frequency: AlertFrequency, last_alert_sent: Optional[datetime], now: datetime
) -> bool:
    """Decide whether a saved search should be processed in this pass.

    Unrecognized frequencies are never due, not even on the first pass. A
    search that never sent an alert is otherwise always due. After that the
    time since the last alert must reach the frequency's threshold.

    Args:
        frequency: The saved search's alert frequency
        last_alert_sent: When its last alert went out, or None if never
        now: The pass's evaluation instant

    Returns:
        True if the search should be processed now

    Example:
        >>> t0 = datetime(2026, 11, 1, tzinfo=timezone.utc)
        >>> is_alert_due(AlertFrequency.DAILY, t0, t0 + timedelta(hours=23))
        False
        >>> is_alert_due(AlertFrequency.DAILY, t0, t0 + timedelta(hours=24))
        True
    """
    threshold = FREQUENCY_THRESHOLDS.get(AlertFrequency.parse(frequency))
    if threshold is None:
        return False
    if last_alert_sent is None:
        return True
    return ensure_utc(now) - ensure_utc(last_alert_sent) >= threshold


def alert_lookback_start(
    last_alert_sent: Optional[datetime],
    now: datetime,
    lookback: timedelta = DEFAULT_LOOKBACK,
) -> datetime:
    """Earliest creation time a new posting may have to appear in an alert.

    The later of the last alert and ``now - lookback``, so a first alert only
    looks back ``lookback`` rather than over the whole history.

    Args:
        last_alert_sent: When the last alert went out, or None if never
        now: The pass's evaluation instant
        lookback: How far back a first alert may look

    Returns:
        Timezone-aware UTC datetime
    """
    floor = ensure_utc(now) - lookback
    if last_alert_sent is None:
        return floor
    return max(ensure_utc(last_alert_sent), floor)


def deadline_window(today: date, days_before: int) -> Tuple[date, date]:
    """Inclusive ``(first, last)`` deadline dates that get a reminder."""
    return today, today + timedelta(days=days_before)


def is_in_deadline_window(deadline: Optional[date], today: date, days_before: int) -> bool:
    if deadline is None:
        return False
    first, last = deadline_window(today, days_before)
    return first <= deadline <= last


def days_remaining(deadline: date, now: datetime) -> int:
    """Whole days left before ``deadline``, rounded up."""
    return days_until(deadline, now)
