from decimal import Decimal

import pytest

from sinkingfund.utils.financial import (
    decimal_to_str,
    min_spacing,
    split_evenly,
    split_total,
    to_decimal,
)


def test_split_evenly_exact():
    regular, last = split_evenly(Decimal("9"), 4)

    assert regular == Decimal("2.25")
    assert last is None


def test_split_evenly_rounding():
    regular, last = split_evenly(Decimal("0.01"), 365)

    assert regular == Decimal("0.000027397260273972602739726")
    assert last == Decimal("0.000027397260273972602739736")
    assert split_total(regular, last, 365) == Decimal("0.01")


def test_split_evenly_rejects_empty_period():
    with pytest.raises(ValueError):
        split_evenly(Decimal("1"), 0)


def test_min_spacing():
    # Two days of 0.5 fund a payment of 1
    assert min_spacing(Decimal("1"), Decimal("0.5"), None) == Decimal("2")


def test_to_decimal():
    assert to_decimal("1.10") == Decimal("1.10")
    assert to_decimal(3) == Decimal("3")

    for bad in (True, "abc", "NaN", "Infinity"):
        with pytest.raises(ValueError):
            to_decimal(bad)


def test_decimal_to_str_keeps_precision():
    assert decimal_to_str(Decimal("0.0274725274725274725274725275")) == "0.0274725274725274725274725275"
    assert decimal_to_str(Decimal("1E-28")) == "0.0000000000000000000000000001"
    assert decimal_to_str(None) is None
