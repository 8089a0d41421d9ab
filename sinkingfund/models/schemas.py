"""
Immutable data models / schemas for the sinking fund calculator.

These dataclasses serve as typed containers that travel between
the route → service → model layers.  Apart from thin accessors, no
business logic lives here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


# Day rules
class DayRule(str, Enum):
    """Which day of a month an nth/last occurrence counts."""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"
    CALENDAR_DAY = "CALENDAR_DAY"   # the nth day number
    BUSINESS_DAY = "BUSINESS_DAY"   # the nth Mon - Fri day
    WEEKEND_DAY = "WEEKEND_DAY"     # the nth Sat / Sun day

    @property
    def iso_weekday(self) -> Optional[int]:
        """ISO weekday number (Monday = 1) for named weekdays, else ``None``."""
        return _ISO_WEEKDAYS.get(self)


_ISO_WEEKDAYS = {
    DayRule.MONDAY: 1,
    DayRule.TUESDAY: 2,
    DayRule.WEDNESDAY: 3,
    DayRule.THURSDAY: 4,
    DayRule.FRIDAY: 5,
    DayRule.SATURDAY: 6,
    DayRule.SUNDAY: 7,
}

# Occurrence index meaning "the last one in the month"
LAST = 0


def _require_interval(value: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}.")


# Recurrence rules
@dataclass(frozen=True)
class RecurrenceRule:
    """Tag base for the closed set of recurrence variants below."""


@dataclass(frozen=True)
class Once(RecurrenceRule):
    """A single payment on the start date."""


@dataclass(frozen=True)
class Daily(RecurrenceRule):
    """Every *interval_days* days."""
    interval_days: int = 1

    def __post_init__(self) -> None:
        _require_interval(self.interval_days, "interval_days")


@dataclass(frozen=True)
class Weekly(RecurrenceRule):
    """Every *interval_weeks* weeks on each ISO weekday in *weekdays*."""
    interval_weeks: int
    weekdays: Tuple[int, ...]

    def __post_init__(self) -> None:
        _require_interval(self.interval_weeks, "interval_weeks")
        object.__setattr__(self, "weekdays", tuple(self.weekdays))


@dataclass(frozen=True)
class MonthlyByDate(RecurrenceRule):
    """Every *interval_months* months on each day number in *days*."""
    interval_months: int
    days: Tuple[int, ...]

    def __post_init__(self) -> None:
        _require_interval(self.interval_months, "interval_months")
        object.__setattr__(self, "days", tuple(self.days))


@dataclass(frozen=True)
class MonthlyByRule(RecurrenceRule):
    """Every *interval_months* months on the nth (0 = last) *day_rule*."""
    interval_months: int
    occurrence: int
    day_rule: DayRule

    def __post_init__(self) -> None:
        _require_interval(self.interval_months, "interval_months")
        object.__setattr__(self, "day_rule", DayRule(self.day_rule))


@dataclass(frozen=True)
class Yearly(RecurrenceRule):
    """
    Every *interval_years* years in each month of *months*, either on the
    nth (0 = last) *day_rule* or, when no rule is given, on the start
    date's day number.
    """
    interval_years: int
    months: Tuple[int, ...]
    occurrence: Optional[int] = None
    day_rule: Optional[DayRule] = None

    def __post_init__(self) -> None:
        _require_interval(self.interval_years, "interval_years")
        object.__setattr__(self, "months", tuple(self.months))
        if self.day_rule is not None:
            object.__setattr__(self, "day_rule", DayRule(self.day_rule))


# Contribution output
@dataclass(frozen=True)
class ContributionSegment:
    """
    A constant daily contribution over a contiguous date range.

    ``end_date = None`` means the segment repeats every ``period_length``
    days forever.  ``last_day_rate`` (when set) replaces ``regular_rate``
    on the final day of each period to absorb rounding.
    """
    regular_rate: Decimal
    last_day_rate: Optional[Decimal]
    start_date: date
    end_date: Optional[date]
    period_length: int

    def period_end(self, on: Optional[date] = None) -> date:
        """
        Last day of the period containing *on* (defaults to the first period).

        Open-ended segments roll forward to the next multiple of
        ``period_length`` counted from ``start_date``.
        """
        if self.end_date is not None:
            return self.end_date
        on = on or self.start_date
        elapsed = (on - self.start_date).days + 1
        remainder = elapsed % self.period_length
        if remainder == 0:
            return on
        return on + timedelta(days=self.period_length - remainder)

    def rate_on(self, day: date) -> Optional[Decimal]:
        """Contribution due on *day*, or ``None`` outside the segment."""
        if day < self.start_date:
            return None
        period_end = self.period_end(day)
        if day == period_end:
            return self.last_day_rate if self.last_day_rate is not None else self.regular_rate
        if day < period_end:
            return self.regular_rate
        return None

    def total_value(self) -> Decimal:
        """Exact amount contributed over one period."""
        from sinkingfund.utils.financial import split_total
        return split_total(self.regular_rate, self.last_day_rate, self.period_length)

    def to_dict(self) -> dict:
        from sinkingfund.utils.financial import decimal_to_str
        from sinkingfund.utils.time_utils import format_date, format_optional_date
        return {
            "regularRate": decimal_to_str(self.regular_rate),
            "lastDayRate": decimal_to_str(self.last_day_rate),
            "startDate": format_date(self.start_date),
            "endDate": format_optional_date(self.end_date),
            "periodLength": self.period_length,
        }


@dataclass(frozen=True)
class TransactionModel:
    """
    A modelled future payment and the contribution chain that funds it.

    ``segments`` is replaced wholesale on recalculation, never patched.
    """
    target_value: Decimal
    rule: RecurrenceRule
    start_date: date
    end_date: Optional[date]
    calculation_date: date
    segments: Tuple[ContributionSegment, ...] = field(default_factory=tuple)
    minimum_value: Optional[Decimal] = None

    def rate_on(self, day: date) -> Decimal:
        """Sum of every segment's contribution due on *day*."""
        from sinkingfund.utils.financial import ZERO
        total = ZERO
        for segment in self.segments:
            rate = segment.rate_on(day)
            if rate is not None:
                total += rate
        return total

    def to_dict(self) -> dict:
        from sinkingfund.utils.financial import decimal_to_str
        from sinkingfund.utils.time_utils import format_date, format_optional_date
        return {
            "targetValue": decimal_to_str(self.target_value),
            "minimumValue": decimal_to_str(self.minimum_value),
            "startDate": format_date(self.start_date),
            "endDate": format_optional_date(self.end_date),
            "calculationDate": format_date(self.calculation_date),
            "segments": [s.to_dict() for s in self.segments],
        }
