"""
Pay Schedule Models

A PaySchedule describes recurring income. The generator turns it into
concrete PaycheckEvents relative to an injected "today".
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from payplan.models.base import PlannerModel


# =============================================================================
# FREQUENCIES - the planner's own recurrence vocabulary
# =============================================================================

class Frequency(str, Enum):
    """
    Every period convention the planner understands.

    Each record type accepts only a subset (see the *_FREQUENCIES sets).
    """
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    BIANNUAL = "biannual"
    ANNUAL = "annual"


PAY_FREQUENCIES = frozenset({
    Frequency.WEEKLY,
    Frequency.BIWEEKLY,
    Frequency.SEMIMONTHLY,
    Frequency.MONTHLY,
})

BILL_FREQUENCIES = frozenset({
    Frequency.WEEKLY,
    Frequency.BIWEEKLY,
    Frequency.MONTHLY,
    Frequency.QUARTERLY,
    Frequency.BIANNUAL,
    Frequency.ANNUAL,
})

LOAN_FREQUENCIES = frozenset({
    Frequency.WEEKLY,
    Frequency.BIWEEKLY,
    Frequency.MONTHLY,
    Frequency.QUARTERLY,
    Frequency.ANNUAL,
})


def restrict_frequency(value: Frequency, allowed: frozenset, label: str) -> Frequency:
    """Reject a frequency outside the subset a record type supports."""
    if value not in allowed:
        names = sorted(f.value for f in allowed)
        raise ValueError(f"{label} frequency must be one of {names}, got {value.value!r}")
    return value


# =============================================================================
# PAY SCHEDULE
# =============================================================================

class PaySchedule(PlannerModel):
    """
    Recurring income definition.

    Anchors by frequency:
    - weekly / biweekly: next_pay_date (any past or future pay date works)
    - monthly: next_pay_date, or day_of_month when no date is known
    - semimonthly: first_pay_day / second_pay_day (default 1 and 15)
    """

    frequency: Frequency = Field(
        default=Frequency.BIWEEKLY,
        description="How often pay arrives"
    )
    pay_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Net amount of each paycheck"
    )
    next_pay_date: Optional[date] = Field(
        default=None,
        description="A known pay date used as the anchor"
    )
    day_of_month: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Monthly pay day when no anchor date is known"
    )
    first_pay_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="First semimonthly anchor day"
    )
    second_pay_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Second semimonthly anchor day"
    )

    @field_validator('frequency')
    @classmethod
    def validate_frequency(cls, v: Frequency) -> Frequency:
        return restrict_frequency(v, PAY_FREQUENCIES, "Pay")

    def anchors(self, default: tuple[int, int] = (1, 15)) -> tuple[int, int]:
        """Semimonthly anchor days, ordered, filling gaps from the default."""
        first = self.first_pay_day or default[0]
        second = self.second_pay_day or default[1]
        if first == second:
            return default
        return (min(first, second), max(first, second))


class PaycheckEvent(PlannerModel):
    """One concrete paycheck."""

    date: date
    amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Paycheck amount"
    )
