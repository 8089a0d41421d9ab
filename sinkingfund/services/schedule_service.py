"""
Schedule builder service.

Responsibility: chain single contributions from the solver into a full,
contiguous schedule that starts today and funds every payment.  Pure
business logic – no I/O.

The solver resolves the latest obligations first; any payments that fall
before the contribution it found are handed back to it with a window that
ends the day before, until nothing is left unfunded.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from sinkingfund.models.errors import ExcessiveDateRange, HistoricalStartDate, NoPayments
from sinkingfund.models.schemas import (
    ContributionSegment,
    Once,
    RecurrenceRule,
    TransactionModel,
)
from sinkingfund.services.contribution_service import solve
from sinkingfund.services.recurrence_service import payment_dates
from sinkingfund.utils.time_utils import ONE_DAY

logger = logging.getLogger(__name__)

# Longest supported span between a model's start and end dates (10 years)
MAX_RANGE_DAYS = int(365.25 * 10)


def build(
    value: Decimal,
    rule: RecurrenceRule,
    start: date,
    end: Optional[date],
    now: date,
) -> List[ContributionSegment]:
    """
    Derive the contribution chain funding *rule*'s payments of *value*.

    Parameters
    ----------
    value:
        Amount of each payment.
    rule:
        Recurrence of the payments.
    start, end:
        First payment window.  ``end = None`` means the payments repeat
        forever and the final segment is open-ended.
    now:
        The day saving can begin; fixing it keeps the result repeatable.

    Returns
    -------
    list of ContributionSegment
        Ordered earliest first; each segment starts the day after the
        previous one ends.

    Raises
    ------
    HistoricalStartDate
        If *now* is after *start*.
    ContributionError
        Any solver failure, unchanged.
    """
    if now > start:
        logger.error("schedule starting %s is in the past (now=%s)", start, now)
        raise HistoricalStartDate()

    payments = payment_dates(rule, start, end)
    if not payments:
        logger.error("no payment dates between %s and %s", start, end)
        raise NoPayments()

    # Fixed windows can use all the lead time up to their final payment.
    # Repeating windows cannot: uneven periods would leave a surplus.
    if isinstance(rule, Once):
        end = start
        start = now
    elif end is not None:
        start = now
        end = payments[-1]

    segments: List[ContributionSegment] = []

    while payments:
        segment = solve(value, rule, list(payments), start, end)
        logger.debug("resolved contribution from %s: %s", segment.start_date, segment)

        # Whatever falls before this contribution still needs funding
        payments = [p for p in payments if p < segment.start_date]
        start = now
        end = segment.start_date - ONE_DAY

        segments.insert(0, segment)

    return segments


def create_transaction_model(
    target_value: Decimal,
    rule: RecurrenceRule,
    start: date,
    end: Optional[date] = None,
    now: Optional[date] = None,
    minimum_value: Optional[Decimal] = None,
) -> TransactionModel:
    """
    Model a future payment and derive the contributions that fund it.

    Raises
    ------
    ExcessiveDateRange
        If *end* is more than ten years after *start*.
    ContributionError
        Any failure from :func:`build`.
    """
    if end is not None and (end - start) > timedelta(days=MAX_RANGE_DAYS):
        raise ExcessiveDateRange()

    now = now or date.today()
    segments = build(target_value, rule, start, end, now)

    return TransactionModel(
        target_value=target_value,
        rule=rule,
        start_date=start,
        end_date=end,
        calculation_date=now,
        segments=tuple(segments),
        minimum_value=minimum_value,
    )


def recalculate(model: TransactionModel, now: date) -> TransactionModel:
    """Return a copy of *model* with its segments rebuilt against *now*."""
    segments = build(model.target_value, model.rule, model.start_date, model.end_date, now)
    return dataclasses.replace(model, calculation_date=now, segments=tuple(segments))
