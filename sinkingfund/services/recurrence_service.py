"""
Recurrence engine.

Expands a :class:`~sinkingfund.models.schemas.RecurrenceRule` into the
concrete payment dates that fall inside a window, and sizes the default
window for each rule.

period_length(rule)
    ``Once`` → 1 day, ``Daily(n)`` → n + 1 days (both endpoints of an
    "every n days" cadence), ``Weekly(w)`` → 7w days.  Month and year based
    rules are smoothed to whole macro periods (4 × 365.25 days) because
    months and years have no fixed length.

payment_dates(rule, start, end=None)
    Ordered, distinct dates within ``[start, end]``.  Without an explicit
    *end* the window is one period long.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from fractions import Fraction
from typing import Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from sinkingfund.models.schemas import (
    Daily,
    MonthlyByDate,
    MonthlyByRule,
    Once,
    RecurrenceRule,
    Weekly,
    Yearly,
)
from sinkingfund.services.calendar_service import resolve
from sinkingfund.utils.time_utils import MACRO_PERIOD_DAYS, ONE_DAY, is_within_range, safe_date

# Months and years per macro period
_MONTHS_PER_MACRO = 48
_YEARS_PER_MACRO = 4


# ── Period length ────────────────────────────────────────────────────────────

def _to_macro_periods(fraction_of_macro: Fraction) -> timedelta:
    """Round a span (as a fraction of a macro period) up to whole macro periods."""
    return timedelta(days=math.ceil(fraction_of_macro) * MACRO_PERIOD_DAYS)


def period_length(rule: RecurrenceRule) -> timedelta:
    """Span of days used to size a default contribution window for *rule*."""
    if isinstance(rule, Once):
        return timedelta(days=1)
    if isinstance(rule, Daily):
        return timedelta(days=rule.interval_days + 1)
    if isinstance(rule, Weekly):
        return timedelta(weeks=rule.interval_weeks)
    if isinstance(rule, (MonthlyByDate, MonthlyByRule)):
        # months × 365.25 / 12 days, against 4 × 365.25 days per macro period
        return _to_macro_periods(Fraction(rule.interval_months, _MONTHS_PER_MACRO))
    if isinstance(rule, Yearly):
        return _to_macro_periods(Fraction(rule.interval_years, _YEARS_PER_MACRO))
    raise TypeError(f"Unsupported recurrence rule: {rule!r}")


# ── Helpers ──────────────────────────────────────────────────────────────────

def dates_for_interval(interval: timedelta, start: date, end: date) -> List[date]:
    """*start* and every *interval* after it, up to and including *end*."""
    dates: List[date] = []
    current = start
    while current <= end:
        dates.append(current)
        current += interval
    return dates


def months_between(start: date, end: date, interval: int) -> List[Tuple[int, int]]:
    """
    ``(month, year)`` pairs from *start*'s month, stepping *interval* months,
    up to and including *end*'s month.
    """
    current = start.replace(day=1)
    last = end.replace(day=1)
    step = relativedelta(months=interval)
    months: List[Tuple[int, int]] = []
    while current <= last:
        months.append((current.month, current.year))
        # Stop before stepping past the calendar's end on huge intervals
        remaining = relativedelta(last, current)
        if remaining.years * 12 + remaining.months < interval:
            break
        current += step
    return months


def increment_to_weekday(d: date, weekday: int, interval: timedelta) -> date:
    """
    First *weekday* (ISO number) on or after *d*.

    If *weekday* has already passed this week the search jumps ahead by
    *interval* instead of a single week, so a cadence never produces a
    date before *d*.
    """
    current = d.isoweekday()
    target = weekday
    if target < current:
        target += interval.days
    return d + timedelta(days=target - current)


def _in_window(candidates: Iterable[Optional[date]], start: date, end: date) -> List[date]:
    return sorted({d for d in candidates if d is not None and is_within_range(d, start, end)})


# ── Per-rule expansion ───────────────────────────────────────────────────────

def _weekly_dates(rule: Weekly, start: date, end: date) -> List[date]:
    weekdays = sorted({wd for wd in rule.weekdays if 1 <= wd <= 7})
    if not weekdays:
        return []

    interval = timedelta(weeks=rule.interval_weeks)

    # Starting after every requested weekday means the cadence begins next
    # week; otherwise weekdays already passed wait a full interval.
    if start.isoweekday() > max(weekdays):
        first_interval = timedelta(weeks=1)
    else:
        first_interval = interval

    dates: List[date] = []
    for weekday in weekdays:
        first = increment_to_weekday(start, weekday, first_interval)
        dates.extend(dates_for_interval(interval, first, end))
    return _in_window(dates, start, end)


def _monthly_by_date(rule: MonthlyByDate, start: date, end: date) -> List[date]:
    candidates = (
        safe_date(year, month, day)
        for month, year in months_between(start, end, rule.interval_months)
        for day in rule.days
    )
    return _in_window(candidates, start, end)


def _monthly_by_rule(rule: MonthlyByRule, start: date, end: date) -> List[date]:
    candidates = (
        resolve(year, month, rule.occurrence, rule.day_rule)
        for month, year in months_between(start, end, rule.interval_months)
    )
    return _in_window(candidates, start, end)


def _yearly(rule: Yearly, start: date, end: date) -> List[date]:
    by_rule = rule.occurrence is not None and rule.day_rule is not None
    candidates: List[Optional[date]] = []

    for year in range(start.year, end.year + 1, rule.interval_years):
        for month in rule.months:
            if not 1 <= month <= 12:
                continue
            if by_rule:
                candidates.append(resolve(year, month, rule.occurrence, rule.day_rule))
            else:
                candidates.append(safe_date(year, month, start.day))

    return _in_window(candidates, start, end)


def payment_dates(
    rule: RecurrenceRule,
    start: date,
    end: Optional[date] = None,
) -> List[date]:
    """
    Expand *rule* into its payment dates within ``[start, end]``.

    Parameters
    ----------
    rule:
        Any recurrence variant.
    start:
        First day of the window; also anchors the cadence.
    end:
        Last day of the window.  Defaults to the day before
        ``start + period_length(rule)``.

    Returns
    -------
    list of date
        Distinct dates in ascending order.

    Raises
    ------
    ValueError
        If the window or the cadence runs past the last representable date.
    """
    try:
        if end is None:
            end = start - ONE_DAY + period_length(rule)
        return _expand(rule, start, end)
    except OverflowError as exc:
        raise ValueError(
            f"Payment dates for {rule!r} run past the supported calendar."
        ) from exc


def _expand(rule: RecurrenceRule, start: date, end: date) -> List[date]:
    if isinstance(rule, Once):
        return [start]
    if isinstance(rule, Daily):
        return dates_for_interval(timedelta(days=rule.interval_days), start, end)
    if isinstance(rule, Weekly):
        return _weekly_dates(rule, start, end)
    if isinstance(rule, MonthlyByDate):
        return _monthly_by_date(rule, start, end)
    if isinstance(rule, MonthlyByRule):
        return _monthly_by_rule(rule, start, end)
    if isinstance(rule, Yearly):
        return _yearly(rule, start, end)
    raise TypeError(f"Unsupported recurrence rule: {rule!r}")
