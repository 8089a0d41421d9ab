from datetime import date, timedelta
from decimal import Decimal, localcontext

import pytest

from sinkingfund.models.errors import (
    ApproachingZero,
    ExcessiveDateRange,
    HistoricalStartDate,
    NoPayments,
    TooMuchRecursion,
)
from sinkingfund.models.schemas import ContributionSegment, Daily, MonthlyByDate, Once, Weekly, Yearly
from sinkingfund.services.recurrence_service import payment_dates
from sinkingfund.services.schedule_service import build, create_transaction_model, recalculate

BIANNUAL = Yearly(1, (2, 8))


def _biannual_schedule():
    return build(Decimal("5.0"), BIANNUAL, date(2000, 1, 1), None, date(2000, 1, 1))


def test_every_day_has_a_payment():
    start, end = date(2000, 1, 1), date(2000, 1, 5)

    segments = build(Decimal("1"), Daily(1), start, end, start)

    assert segments == [ContributionSegment(Decimal("1"), None, start, end, 5)]


def test_once():
    segments = build(Decimal("1"), Once(), date(2000, 4, 2), None, date(2000, 4, 1))

    assert segments == [
        ContributionSegment(Decimal("0.5"), None, date(2000, 4, 1), date(2000, 4, 2), 2),
    ]


def test_historical_start_date():
    with pytest.raises(HistoricalStartDate):
        build(Decimal("1"), Once(), date(2000, 4, 1), None, date(2000, 4, 2))


def test_no_payments():
    with pytest.raises(NoPayments):
        build(Decimal("1"), Weekly(1, ()), date(2000, 4, 1), date(2000, 4, 30), date(2000, 4, 1))


def test_approaching_zero_rounds_up_last_day():
    segments = build(Decimal("0.01"), Once(), date(2000, 4, 3), None, date(2000, 4, 1))

    assert segments == [
        ContributionSegment(
            Decimal("0.0033333333333333333333333333"),
            Decimal("0.0033333333333333333333333334"),
            date(2000, 4, 1),
            date(2000, 4, 3),
            3,
        ),
    ]


def test_approaching_zero_open_ended_monthly():
    with pytest.raises(ApproachingZero):
        build(Decimal("1e-28"), MonthlyByDate(1, (1,)), date(2000, 1, 1), None, date(2000, 1, 1))


def test_daily_payment_due_today():
    segments = build(Decimal("1"), Daily(2), date(2000, 4, 2), date(2000, 4, 4), date(2000, 4, 2))

    assert segments == [
        ContributionSegment(Decimal("1"), None, date(2000, 4, 2), date(2000, 4, 2), 1),
        ContributionSegment(Decimal("0.5"), None, date(2000, 4, 3), date(2000, 4, 4), 2),
    ]


def test_daily_with_lead_time():
    segments = build(Decimal("1"), Daily(2), date(2000, 4, 2), date(2000, 4, 4), date(2000, 4, 1))

    assert segments == [
        ContributionSegment(Decimal("0.5"), None, date(2000, 4, 1), date(2000, 4, 4), 4),
    ]


def test_small_payment_biannually():
    segments = _biannual_schedule()

    assert segments == [
        ContributionSegment(
            Decimal("0.15625"), None, date(2000, 1, 1), date(2000, 2, 1), 32,
        ),
        ContributionSegment(
            Decimal("0.0274725274725274725274725275"),
            Decimal("0.0274725274725274725274725225"),
            date(2000, 2, 2), date(2000, 8, 1), 182,
        ),
        ContributionSegment(
            Decimal("0.0273972602739726027397260274"),
            Decimal("0.0273972602739726027397260244"),
            date(2000, 8, 2), date(2003, 8, 1), 1095,
        ),
        ContributionSegment(
            Decimal("0.0273785078713210130047912389"),
            Decimal("0.027378507871321013004791206"),
            date(2003, 8, 2), None, 1461,
        ),
    ]


def test_segments_are_contiguous():
    segments = _biannual_schedule()

    assert segments[0].start_date == date(2000, 1, 1)
    for previous, current in zip(segments, segments[1:]):
        assert current.start_date == previous.end_date + timedelta(days=1)
    assert segments[-1].end_date is None


def test_segment_totals_are_exact():
    segments = _biannual_schedule()

    # 1 payment, 1 payment, 6 payments, then 8 per four-year period
    assert [s.total_value() for s in segments] == [
        Decimal("5"), Decimal("5"), Decimal("30"), Decimal("40"),
    ]


def test_balance_never_negative():
    start = date(2000, 1, 1)
    horizon = date(2011, 8, 1)
    model = create_transaction_model(Decimal("5.0"), BIANNUAL, start, now=start)
    due = set(payment_dates(BIANNUAL, start, horizon))

    with localcontext() as ctx:
        ctx.prec = 60
        balance = Decimal("0")
        day = start
        while day <= horizon:
            balance += model.rate_on(day)
            if day in due:
                balance -= Decimal("5.0")
            assert balance >= 0, day
            day += timedelta(days=1)

    # Each open-ended period closes out exactly
    assert balance == 0


def test_build_is_repeatable():
    assert _biannual_schedule() == _biannual_schedule()


def test_transaction_model():
    start = date(2000, 1, 1)
    model = create_transaction_model(
        Decimal("5.0"), BIANNUAL, start, now=start, minimum_value=Decimal("4"),
    )

    assert model.calculation_date == start
    assert model.minimum_value == Decimal("4")
    assert len(model.segments) == 4
    assert model.rate_on(date(1999, 12, 31)) == 0
    assert model.rate_on(start) == Decimal("0.15625")


def test_excessive_date_range():
    with pytest.raises(ExcessiveDateRange):
        create_transaction_model(
            Decimal("1"), Daily(1), date(2000, 1, 1), date(2010, 1, 3), now=date(2000, 1, 1),
        )


def test_recalculate_replaces_segments():
    start = date(2000, 4, 2)
    model = create_transaction_model(Decimal("1"), Once(), start, now=date(2000, 3, 30))
    updated = recalculate(model, date(2000, 4, 1))

    assert updated is not model
    assert updated.calculation_date == date(2000, 4, 1)
    assert updated.segments == (
        ContributionSegment(Decimal("0.5"), None, date(2000, 4, 1), start, 2),
    )
    assert model.segments[0].start_date == date(2000, 3, 30)


def test_recalculate_after_start_fails():
    model = create_transaction_model(Decimal("1"), Once(), date(2000, 4, 2), now=date(2000, 4, 1))

    with pytest.raises(HistoricalStartDate):
        recalculate(model, date(2000, 4, 3))


def test_to_dict():
    model = create_transaction_model(Decimal("1"), Once(), date(2000, 4, 2), now=date(2000, 4, 1))

    assert model.to_dict() == {
        "targetValue": "1",
        "minimumValue": None,
        "startDate": "2000-04-02",
        "endDate": None,
        "calculationDate": "2000-04-01",
        "segments": [
            {
                "regularRate": "0.5",
                "lastDayRate": None,
                "startDate": "2000-04-01",
                "endDate": "2000-04-02",
                "periodLength": 2,
            },
        ],
    }


def test_rounded_down_rate_dips_by_one_quantum():
    start, end = date(2000, 1, 3), date(2000, 1, 23)

    segments = build(Decimal("1"), Daily(3), start, end, start)

    assert segments == [
        ContributionSegment(Decimal("1"), None, start, start, 1),
        ContributionSegment(
            Decimal("0.3333333333333333333333333333"),
            Decimal("0.3333333333333333333333333339"),
            date(2000, 1, 4), date(2000, 1, 21), 18,
        ),
    ]

    due = set(payment_dates(Daily(3), start, end))
    balances = {}
    with localcontext() as ctx:
        ctx.prec = 60
        balance = Decimal("0")
        day = start
        while day <= date(2000, 1, 21):
            balance += sum(s.rate_on(day) or 0 for s in segments)
            if day in due:
                balance -= 1
            balances[day] = balance
            day += timedelta(days=1)

    # Three days of a rate rounded down fall one quantum short of the payment
    assert balances[date(2000, 1, 6)] == Decimal("-1e-28")
    assert min(balances.values()) >= Decimal("-1e-28") * 19
    assert balances[date(2000, 1, 21)] == 0


def test_open_ended_weekly_cluster_exhausts_search():
    monday = date(2000, 1, 3)

    with pytest.raises(TooMuchRecursion):
        build(Decimal("1"), Weekly(2, (3, 4, 5)), monday, None, monday)
