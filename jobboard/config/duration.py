"""Duration parsing utilities for configuration."""

import re


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


_UNIT_SECONDS = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to seconds.

    Supports both human-readable formats and ISO-8601 durations:
    - Human-readable: "15m", "1h", "30s", "2d", "1h30m"
    - ISO-8601: "PT15M", "PT1H", "PT30S", "P2D", "P1DT12H"

    Args:
        duration_str: Duration string to parse

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the duration string is invalid or zero

    Examples:
        >>> parse_duration("24h")
        86400
        >>> parse_duration("PT1H")
        3600
    """
    if not isinstance(duration_str, str):
        raise DurationParseError(f"Duration must be a string, got {type(duration_str).__name__}")

    duration_str = duration_str.strip()

    if not duration_str:
        raise DurationParseError("Duration string cannot be empty")

    if duration_str.upper().startswith("P"):
        return _parse_iso8601_duration(duration_str)

    return _parse_human_readable_duration(duration_str)


def _parse_iso8601_duration(duration_str: str) -> int:
    """Parse ISO-8601 durations of the form P[n]DT[n]H[n]M[n]S."""
    duration_str = duration_str.upper()

    pattern = r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$"
    match = re.match(pattern, duration_str)

    if not match:
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{duration_str}'. "
            "Expected format like 'P1D', 'PT1H30M', 'PT15M', or 'PT30S'"
        )

    days, hours, minutes, seconds = match.groups()

    total_seconds = 0
    if days:
        total_seconds += int(days) * _UNIT_SECONDS["d"]
    if hours:
        total_seconds += int(hours) * _UNIT_SECONDS["h"]
    if minutes:
        total_seconds += int(minutes) * _UNIT_SECONDS["m"]
    if seconds:
        total_seconds += int(float(seconds))

    if total_seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")

    return total_seconds


def _parse_human_readable_duration(duration_str: str) -> int:
    """Parse concatenated number+unit pairs such as "1h30m"."""
    matches = re.findall(r"(\d+)\s*([smhd])", duration_str.lower())

    if not matches:
        raise DurationParseError(
            f"Invalid duration format: '{duration_str}'. "
            "Expected format like '15m', '1h', '30s', '2d', or combinations like '1h30m'"
        )

    # Reject leftovers such as "1h30x"
    parsed_str = "".join(f"{num}{unit}" for num, unit in matches)
    if parsed_str != re.sub(r"\s+", "", duration_str.lower()):
        raise DurationParseError(
            f"Invalid characters in duration: '{duration_str}'. "
            "Use only digits and units: s (seconds), m (minutes), h (hours), d (days)"
        )

    total_seconds = sum(int(num) * _UNIT_SECONDS[unit] for num, unit in matches)

    if total_seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")

    return total_seconds


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int = 300,
    max_seconds: int = 7 * 86400,
    label: str = "Interval",
) -> None:
    """
    Validate that a duration is within an acceptable range.

    Args:
        duration_seconds: Duration to validate in seconds
        min_seconds: Minimum allowed duration (default: 5 minutes)
        max_seconds: Maximum allowed duration (default: 7 days)
        label: Name used in the error message, e.g. "deadline_reminders"

    Raises:
        DurationParseError: If duration is outside the valid range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"{label} too short: {seconds_to_human_readable(duration_seconds)}. "
            f"Minimum is {seconds_to_human_readable(min_seconds)}."
        )

    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"{label} too long: {seconds_to_human_readable(duration_seconds)}. "
            f"Maximum is {seconds_to_human_readable(max_seconds)}."
        )


def seconds_to_human_readable(seconds: int) -> str:
    """
    Convert seconds to a human-readable string.

    Uses the largest whole unit (day, hour, minute or second) and drops
    the remainder.

    Args:
        seconds: Number of seconds

    Returns:
        Human-readable string like "1 hour" or "2 days"

    Examples:
        >>> seconds_to_human_readable(3600)
        '1 hour'
        >>> seconds_to_human_readable(172800)
        '2 days'
    """
    if seconds < 60:
        value, unit = seconds, "second"
    elif seconds < 3600:
        value, unit = seconds // 60, "minute"
    elif seconds < 86400:
        value, unit = seconds // 3600, "hour"
    else:
        value, unit = seconds // 86400, "day"
    return f"{value} {unit}{'s' if value != 1 else ''}"
