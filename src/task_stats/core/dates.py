"""
Date Normalization
==================

Single source of truth for turning raw date values (Jira fields, sheet
cells) into the day-precision display key used to join aggregated stats
with spreadsheet rows.

The key format is fixed English, independent of the process locale:

    >>> format_date_key(date(2024, 6, 5))
    'Jun 5, 2024'

Both the aggregator and the sheet reconciler go through ``normalize_date``
so the two never disagree on how a date is stringified.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Final

from dateutil import parser as date_parser

# Grouping key for records whose grouping date is absent or unparseable
INVALID_DATE_KEY: Final[str] = "Invalid Date"

MONTH_ABBREVIATIONS: Final[tuple[str, ...]] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# Two defaults that differ in year, month and day. A string that parses to
# the same date under both carries all three components itself.
_DEFAULTS: Final[tuple[datetime, datetime]] = (
    datetime(2000, 1, 1),
    datetime(2001, 2, 2),
)


def _parse_text(text: str) -> date | None:
    try:
        first, second = (
            date_parser.parse(text, default=default, dayfirst=False)
            for default in _DEFAULTS
        )
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        # Year, month or day came from the default
        return None
    return first.date()


def parse_date(value: Any) -> date | None:
    """
    Parse a raw date value to a calendar date.

    Timestamps are truncated to the calendar date as written; the time of
    day and any UTC offset are dropped without timezone conversion.
    Numeric dates are read month first ("06/05/2024" is June 5).

    Args:
        value: ``date``, ``datetime`` or date text such as "2024-06-05",
            "2024-06-05T10:15:30.000+0000", "06/05/2024", "Jun 5, 2024",
            "Wednesday, June 5, 2024" or "5-Jun-2024".

    Returns:
        The calendar date, or None when the value is absent, unparseable
        or missing its year, month or day.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    return _parse_text(text)


def format_date_key(day: date) -> str:
    """Format a date as the join key, e.g. ``"Jun 5, 2024"``."""
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.day}, {day.year}"


def normalize_date(value: Any) -> str | None:
    """Parse and format a raw value; None when it cannot be parsed."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    return format_date_key(parsed)
