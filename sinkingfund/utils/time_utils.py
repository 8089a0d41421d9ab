"""
Date utility helpers.

All dates are parsed and serialised as ``"YYYY-MM-DD"``
(i.e. the Python format string ``"%Y-%m-%d"``).  Weekdays are ISO
numbered: Monday = 1 … Sunday = 7.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"

ONE_DAY = timedelta(days=1)

# Four years of 365.25 days: the shortest span with a fixed day count
# regardless of where leap years fall.
MACRO_PERIOD_DAYS = int(365.25 * 4)


def parse_date(raw: str) -> date:
    try:
        return datetime.strptime(raw, DATE_FORMAT).date()
    except (ValueError, TypeError) as exc:
        raise ValueError(
            f"Invalid date {raw!r}. Expected format: YYYY-MM-DD"
        ) from exc


def parse_optional_date(raw: Optional[str]) -> Optional[date]:
    if raw is None:
        return None
    return parse_date(raw)


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def format_optional_date(d: Optional[date]) -> Optional[str]:
    if d is None:
        return None
    return format_date(d)


def month_length(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def safe_date(year: int, month: int, day: int) -> Optional[date]:
    """Return ``date(year, month, day)`` or ``None`` when it does not exist."""
    try:
        return date(year, month, day)
    except ValueError:
        return None


def days_inclusive(start: date, end: date) -> int:
    """Number of calendar days from *start* to *end*, counting both."""
    return (end - start).days + 1


def is_within_range(d: date, start: date, end: date) -> bool:
    return start <= d <= end
