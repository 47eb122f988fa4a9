"""Utility functions for time handling and text highlighting."""

from .highlighting import highlight_search_terms, humanize_label, truncate_text
from .timestamps import (
    days_until,
    ensure_utc,
    format_date,
    format_timestamp,
    format_timestamp_for_log,
    parse_date,
    parse_iso_datetime,
    utc_now,
    utc_today,
)

__all__ = [
    # Timestamps
    "utc_now",
    "utc_today",
    "ensure_utc",
    "parse_iso_datetime",
    "parse_date",
    "format_timestamp",
    "format_date",
    "format_timestamp_for_log",
    "days_until",
    # Highlighting
    "highlight_search_terms",
    "humanize_label",
    "truncate_text",
]
