"""
Contribution solver.

Finds ONE constant daily contribution that funds a set of payment dates
without the running balance ever dropping below zero.

The search starts from a naive even split of every payment over the window
and, whenever that split cannot work, adjusts its own inputs and tries
again:

1. Trim idle days after the final payment (shrink the end date, or rotate
   the earliest payment one period later for open-ended windows).
2. Skip a payment that falls on the very first day, since nothing has been
   saved for it yet.
3. Simulate the balance across the payments; restart just after the point
   where a deficit recovers, or drop the earliest payment when it never does.

Each retry strictly advances the start date or pulls in the end date, and
the first window's end date fences the search so it always terminates.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from sinkingfund.models.errors import (
    ApproachingZero,
    NoPayments,
    PaymentOutOfBounds,
    TooMuchRecursion,
    Unresolvable,
)
from sinkingfund.models.schemas import ContributionSegment, RecurrenceRule
from sinkingfund.services.recurrence_service import period_length
from sinkingfund.utils.financial import ZERO, min_spacing, multiply, split_evenly
from sinkingfund.utils.time_utils import ONE_DAY, days_inclusive

logger = logging.getLogger(__name__)


def contribution_rates(value: Decimal, payments: int, days: int) -> tuple[Decimal, Optional[Decimal]]:
    """
    Regular and (optional) last-day rate covering *payments* of *value*
    over *days* days.

    Raises
    ------
    ApproachingZero
        If either rate rounds to zero at the working precision.
    """
    total = multiply(value, payments)
    logger.debug(
        "calculating contribution for %d payments of %s (total=%s) over %d days",
        payments, value, total, days,
    )
    regular, last = split_evenly(total, days)

    if regular == ZERO or last == ZERO:
        logger.error(
            "the %s contribution amount equals zero",
            "regular" if regular == ZERO else "last",
        )
        raise ApproachingZero()

    return regular, last


def _recovery_date(
    dates: List[date],
    start: date,
    spacing: Decimal,
) -> tuple[Optional[date], Decimal]:
    """
    Walk the payments measuring each gap against *spacing*.

    Returns ``(recovery, cumulative)`` where *recovery* is the payment date
    opening the positive run in which the running surplus turns from negative
    back to non-negative (or any trailing positive run), and *cumulative* is
    the running surplus at the point the walk stopped.
    """
    lag = start - ONE_DAY
    recovery: Optional[date] = None
    cumulative = ZERO

    for payment in dates:
        delta = Decimal((payment - lag).days) - spacing

        if delta <= ZERO:
            recovery = None
        elif recovery is None:
            recovery = lag

        if cumulative < ZERO and cumulative + delta >= ZERO:
            break

        lag = payment
        cumulative += delta

    return recovery, cumulative


def solve(
    value: Decimal,
    rule: RecurrenceRule,
    dates: Iterable[date],
    start: date,
    end: Optional[date] = None,
    fence: Optional[date] = None,
) -> ContributionSegment:
    """
    Find a sustainable contribution for payments of *value* on *dates*.

    Parameters
    ----------
    value:
        Amount of each payment.
    rule:
        Recurrence the dates were generated from; sizes open-ended windows.
    dates:
        Payment dates, all within ``[start, end]``.
    start:
        Earliest day the contribution may begin.
    end:
        Last day of the window, or ``None`` for a contribution that repeats
        every period forever.
    fence:
        Latest start date worth trying; defaults to the first window's end.

    Returns
    -------
    ContributionSegment

    Raises
    ------
    NoPayments, PaymentOutOfBounds, ApproachingZero, Unresolvable,
    TooMuchRecursion
    """
    payments = sorted(dates)
    rule_length = period_length(rule)

    while True:
        if fence is not None and start > fence:
            logger.error("start date %s passed the recursion limit %s", start, fence)
            raise TooMuchRecursion()

        if not payments:
            logger.error("no payment dates provided for this contribution")
            raise NoPayments()

        period_end = end if end is not None else start + rule_length - ONE_DAY
        length = days_inclusive(start, period_end)
        window = timedelta(days=length)

        logger.debug(
            "assuming contribution starts on %s and %s %s",
            start, "ends on" if end is not None else "the period ends on", period_end,
        )
        logger.debug("assuming payments on these dates: %s", payments)

        if fence is None:
            logger.debug("setting recursion limit date of %s", period_end)
            fence = period_end

        if payments[0] < start:
            logger.error("the first payment occurs before the start date")
            raise PaymentOutOfBounds(start, period_end, payments[0])
        if end is not None and payments[-1] > end:
            logger.error("the last payment occurs after the end date")
            raise PaymentOutOfBounds(start, end, payments[-1])

        if len(payments) == length:
            logger.debug("every day in this period has a payment")
            return ContributionSegment(value, None, start, end, length)

        regular, last = contribution_rates(value, len(payments), length)

        # Idle days after the final payment would be saved for nothing
        if payments[-1] < period_end:
            if end is not None:
                logger.debug("shift end date to the final payment date: %s", payments[-1])
                end = payments[-1]
            else:
                first = payments.pop(0)
                payments.append(first + window)
                logger.debug("move first payment (%s) to the end (%s)", first, first + window)
                start = first + ONE_DAY
            continue

        # Nothing has been saved yet for a payment on the first day
        if payments[0] == start:
            logger.debug("skip a payment on the first day of this contribution")
            first = payments.pop(0)
            if end is None:
                payments.append(first + window)
            start += ONE_DAY
            continue

        spacing = min_spacing(value, regular, last)
        recovery, cumulative = _recovery_date(payments, start, spacing)

        if recovery is not None:
            if recovery < start:
                logger.error("the suggested start date %s does not advance", recovery + ONE_DAY)
                raise TooMuchRecursion()

            logger.debug("choosing next viable start date: %s", recovery + ONE_DAY)
            while payments and payments[0] <= recovery:
                first = payments.pop(0)
                if end is None:
                    payments.append(first + window)
            start = recovery + ONE_DAY
            continue

        if cumulative < ZERO:
            first = payments.pop(0)
            logger.debug("remove the first payment: %s", first)
            if not payments:
                logger.error("no payments remain to balance this contribution")
                raise Unresolvable()
            start = first + ONE_DAY
            continue

        segment = ContributionSegment(regular, last, start, end, length)
        logger.debug("finalising contribution: %s", segment)
        return segment
