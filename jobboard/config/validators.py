"""Non-fatal configuration checks surfaced as Python warnings."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check a raw configuration dictionary for settings that are legal but suspicious.

    Returns:
        List of warning messages
    """
    warning_messages = []

    alerts = config_dict.get("alerts") or {}
    if isinstance(alerts, dict):
        days_before = alerts.get("reminder_days_before")
        if days_before == 0:
            warning_messages.append(
                "alerts.reminder_days_before is 0: reminders only go out on the deadline day"
            )
        max_postings = alerts.get("max_postings_per_alert")
        if isinstance(max_postings, int) and max_postings > 25:
            warning_messages.append(
                f"Large alerts.max_postings_per_alert ({max_postings}) makes for very long emails"
            )

    schedule = config_dict.get("schedule") or {}
    if isinstance(schedule, dict):
        interval = schedule.get("saved_search_alerts")
        if isinstance(interval, str):
            try:
                if parse_duration(interval) > 3600:
                    warning_messages.append(
                        f"schedule.saved_search_alerts ({interval}) is longer than 1 hour: "
                        "'immediate' subscriptions will be delayed"
                    )
            except DurationParseError:
                # Reported as an error by model validation
                pass

    email = config_dict.get("email") or {}
    if isinstance(email, dict) and email.get("use_tls") is False:
        warning_messages.append("email.use_tls is disabled: SMTP traffic will be unencrypted")

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
