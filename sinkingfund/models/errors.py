"""
Errors raised while deriving contribution schedules.

Every failure is a deterministic function of the inputs: nothing here is
retried, and no call that raises leaves a partial schedule behind.
"""

from __future__ import annotations

from datetime import date


class ContributionError(Exception):
    """Base class for schedule derivation failures."""

    message = "could not calculate contributions"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": self.code, "message": str(self)}


class HistoricalStartDate(ContributionError):
    message = "the start date occurs in the past"


class NoPayments(ContributionError):
    message = "there are no payments for this contribution"


class PaymentOutOfBounds(ContributionError):
    """A payment fell outside the window it was validated against."""

    def __init__(self, start: date, boundary: date, offending: date) -> None:
        self.start = start
        self.boundary = boundary
        self.offending = offending
        super().__init__(
            f"the date '{offending.isoformat()}' is beyond the range "
            f"{start.isoformat()} - {boundary.isoformat()}"
        )


class ApproachingZero(ContributionError):
    message = "contribution is approaching zero"


class Unresolvable(ContributionError):
    message = "could not resolve contribution to cover all payments"


class TooMuchRecursion(ContributionError):
    message = "too much recursion trying to find a sustainable contribution"


class ExcessiveDateRange(ContributionError):
    message = "date ranges greater than 10 years are unsupported"
