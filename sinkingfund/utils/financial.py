"""
Financial utility functions.

All monetary values use :class:`decimal.Decimal` to guarantee
exact splits and avoid IEEE-754 floating-point drift.  Daily rates are
held to a fixed number of decimal places (``RATE_PLACES``); intermediate
products are evaluated in a wide context so that a rate multiplied back
over its period reproduces the original total exactly.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, localcontext
from typing import Optional, Tuple


# ── Constants ────────────────────────────────────────────────────────────────

ZERO = Decimal("0")
ONE = Decimal("1")

# Decimal places a daily rate can express
RATE_PLACES = 28
# Decimal places used when comparing payment spacing against a rate
SPACING_PLACES = 23
# Significant digits for intermediate arithmetic
WORKING_PRECISION = 60

_RATE_QUANTUM = Decimal(1).scaleb(-RATE_PLACES)
_SPACING_QUANTUM = Decimal(1).scaleb(-SPACING_PLACES)


# ── Even splits ──────────────────────────────────────────────────────────────

def split_evenly(total: Decimal, days: int) -> Tuple[Decimal, Optional[Decimal]]:
    """
    Spread *total* over *days* daily contributions.

    Returns ``(regular, last)``.  ``last`` is ``None`` when *regular* divides
    *total* exactly; otherwise it absorbs the rounding remainder so that
    ``regular * (days - 1) + last == total``.

    Examples
    --------
    >>> split_evenly(Decimal("9"), 4)
    (Decimal('2.25'), None)
    >>> split_evenly(Decimal("1"), 3)
    (Decimal('0.3333333333333333333333333333'), Decimal('0.3333333333333333333333333334'))
    """
    if days <= 0:
        raise ValueError(f"Cannot split a value over {days} days.")

    with localcontext() as ctx:
        ctx.prec = WORKING_PRECISION
        span = Decimal(days)
        regular = (total / span).quantize(_RATE_QUANTUM, rounding=ROUND_HALF_EVEN)
        if regular * span == total:
            return regular.normalize(), None
        last = total - regular * (span - ONE)
    return regular, last


def split_total(regular: Decimal, last: Optional[Decimal], days: int) -> Decimal:
    """
    Exact amount contributed by *days* days of *regular* with an optional
    final-day *last* rate.
    """
    with localcontext() as ctx:
        ctx.prec = WORKING_PRECISION
        if last is None:
            return regular * Decimal(days)
        return regular * Decimal(days - 1) + last


def min_spacing(value: Decimal, regular: Decimal, last: Optional[Decimal]) -> Decimal:
    """
    Shortest gap in days between two payments of *value* that a daily
    contribution of *regular* (closing on *last*) can keep pace with.
    """
    effective = regular if last is None else last
    with localcontext() as ctx:
        ctx.prec = WORKING_PRECISION
        spacing = (value - effective) / regular + ONE
        return spacing.quantize(_SPACING_QUANTUM, rounding=ROUND_HALF_EVEN)


def multiply(value: Decimal, count: int) -> Decimal:
    """``value * count`` without rounding at the default context precision."""
    with localcontext() as ctx:
        ctx.prec = WORKING_PRECISION
        return value * Decimal(count)


# ── Serialisation helpers ────────────────────────────────────────────────────

def decimal_to_str(value: Optional[Decimal]) -> Optional[str]:
    """Render a Decimal for JSON without losing precision."""
    if value is None:
        return None
    return format(value, "f")


def to_decimal(value: int | float | str) -> Decimal:
    """
    Safely convert a raw value to :class:`~decimal.Decimal`.

    Raises
    ------
    ValueError
        If *value* cannot be interpreted as a finite decimal number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to Decimal.")
    try:
        result = Decimal(str(value))
    except Exception as exc:
        raise ValueError(f"Cannot convert {value!r} to Decimal: {exc}") from exc
    if not result.is_finite():
        raise ValueError(f"Cannot convert {value!r} to Decimal: not finite.")
    return result
