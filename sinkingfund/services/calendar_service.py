"""
Calendar day resolver.

Resolves "the nth (or last) Friday / business day / weekend day / day of
the month" to a concrete date using weekday arithmetic on day 1 of the
month.  An occurrence that does not exist in the month (e.g. a 5th Friday
in a month with four) resolves to ``None``, which callers treat as "no
payment this period" rather than an error.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from sinkingfund.models.schemas import LAST, DayRule
from sinkingfund.utils.time_utils import month_length

# ISO weekday numbers
SATURDAY = 6
SUNDAY = 7

# Shortest month length, exactly four weeks
_FOUR_WEEKS = 28


# ── Weekday arithmetic ───────────────────────────────────────────────────────

def _first_occurrence(first_weekday: int, weekday: int) -> int:
    """Day number of the first *weekday* in a month starting on *first_weekday*."""
    return 1 + (weekday - first_weekday) % 7


def _weekday_count(first_weekday: int, length: int, weekday: int) -> int:
    """How many times *weekday* occurs in a month (always 4 or 5)."""
    # Only the days beyond the fourth week can hold a fifth occurrence
    if _first_occurrence(first_weekday, weekday) <= length - _FOUR_WEEKS:
        return 5
    return 4


def _last_day_weekday(first_weekday: int, length: int) -> int:
    # Day 29 shares day 1's weekday; project forward by the month's excess
    return (first_weekday - 1 + length - 29) % 7 + 1


def max_occurrences(year: int, month: int, day_rule: DayRule) -> int:
    """Number of times *day_rule* occurs in the given month."""
    first_weekday = date(year, month, 1).isoweekday()
    length = month_length(year, month)

    if day_rule.iso_weekday is not None:
        return _weekday_count(first_weekday, length, day_rule.iso_weekday)
    if day_rule is DayRule.CALENDAR_DAY:
        return length

    counts = [_weekday_count(first_weekday, length, wd) for wd in range(1, 8)]
    if day_rule is DayRule.BUSINESS_DAY:
        return sum(counts[:5])
    return sum(counts[5:])


# ── Per-rule resolution ──────────────────────────────────────────────────────

def _nth_business_day(first_weekday: int, nth: int) -> int:
    # Roll day 1 forward off a weekend onto Monday
    if first_weekday >= SATURDAY:
        first = 1 + (8 - first_weekday)
        weekday = 1
    else:
        first = 1
        weekday = first_weekday

    # Each time the count crosses a Friday, skip the two weekend days
    steps = nth - 1
    return first + steps + 2 * ((weekday - 1 + steps) // 5)


def _last_business_day(first_weekday: int, length: int) -> int:
    last_weekday = _last_day_weekday(first_weekday, length)
    if last_weekday > 5:
        return length - (last_weekday - 5)
    return length


def _nth_weekend_day(first_weekday: int, nth: int) -> int:
    # The Saturday that opens the month's first weekend (day 0 when the
    # month starts on a Sunday)
    if first_weekday == SUNDAY:
        saturday = 0
    else:
        saturday = 1 + (SATURDAY - first_weekday) % 7

    # Position counted from that Saturday: even = Saturday, odd = Sunday;
    # consecutive weekends are five business days apart
    position = nth - 1 + (1 if first_weekday == SUNDAY else 0)
    return saturday + 7 * (position // 2) + position % 2


def _last_weekend_day(first_weekday: int, length: int) -> int:
    last_weekday = _last_day_weekday(first_weekday, length)
    if last_weekday >= SATURDAY:
        return length
    # Pull back to the preceding Sunday
    return length - last_weekday


def resolve(year: int, month: int, occurrence: int, day_rule: DayRule) -> Optional[date]:
    """
    Resolve the *occurrence*-th *day_rule* of ``year-month``.

    Parameters
    ----------
    occurrence:
        1-based index; ``0`` selects the last occurrence in the month.
    day_rule:
        A named weekday, ``CALENDAR_DAY``, ``BUSINESS_DAY`` or ``WEEKEND_DAY``.

    Returns
    -------
    date or None
        ``None`` when the month has no such occurrence.
    """
    day_rule = DayRule(day_rule)
    first_weekday = date(year, month, 1).isoweekday()
    length = month_length(year, month)
    seek_last = occurrence == LAST

    limit = max_occurrences(year, month, day_rule)
    if seek_last:
        nth = limit
    elif occurrence < 0 or occurrence > limit:
        return None
    else:
        nth = occurrence

    if day_rule.iso_weekday is not None:
        day = _first_occurrence(first_weekday, day_rule.iso_weekday) + 7 * (nth - 1)
    elif day_rule is DayRule.CALENDAR_DAY:
        day = length if seek_last else nth
    elif day_rule is DayRule.BUSINESS_DAY:
        if seek_last:
            day = _last_business_day(first_weekday, length)
        else:
            day = _nth_business_day(first_weekday, nth)
    else:
        if seek_last:
            day = _last_weekend_day(first_weekday, length)
        else:
            day = _nth_weekend_day(first_weekday, nth)

    return date(year, month, day)
