"""
Loan and Debt Models

AssetLoan and Debt are user-managed records. Amortization schedules and
payoff projections are always derived from them and never persisted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from payplan.models.base import PlannerModel
from payplan.models.bill import AssignmentPreference, new_record_id
from payplan.models.flags import PlannerFlag
from payplan.models.schedule import LOAN_FREQUENCIES, Frequency, restrict_frequency


# =============================================================================
# ASSET LOANS & AMORTIZATION
# =============================================================================

class AssetLoan(PlannerModel):
    """
    A financed asset (car, house, equipment) with a level payment.

    current_balance is optional; when absent the original loan_amount is
    amortized instead.
    """

    id: str = Field(
        default_factory=new_record_id,
        description="Unique asset id"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Asset name"
    )
    loan_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Original amount financed"
    )
    current_balance: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Outstanding principal today, if known"
    )
    interest_rate: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Annual interest rate in percent"
    )
    payment_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Level payment per period"
    )
    payment_frequency: Frequency = Frequency.MONTHLY
    start_date: date
    category: str = "loan"
    autopay: bool = False
    assignment_preference: AssignmentPreference = AssignmentPreference.AUTO

    @field_validator('payment_frequency')
    @classmethod
    def validate_frequency(cls, v: Frequency) -> Frequency:
        return restrict_frequency(v, LOAN_FREQUENCIES, "Loan payment")

    @property
    def principal(self) -> Decimal:
        """Balance to amortize: current_balance, else loan_amount."""
        if self.current_balance is not None:
            return self.current_balance
        return self.loan_amount


class AmortizationRow(PlannerModel):
    """One period of an amortization schedule."""

    period: int = Field(..., ge=1)
    date: date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    balance: Decimal


class AmortizationResult(PlannerModel):
    """
    A derived loan payment schedule.

    non_amortizing=True means the payment never reduces principal and the
    schedule is intentionally empty. truncated=True means the safety cap was
    hit and the schedule is partial.
    """

    asset_id: Optional[str] = None
    principal: Decimal = Decimal("0")
    periodic_rate: Decimal = Decimal("0")
    schedule: list[AmortizationRow] = Field(default_factory=list)
    total_interest: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    periods: int = 0
    payoff_date: Optional[date] = None
    non_amortizing: bool = False
    truncated: bool = False
    flags: list[PlannerFlag] = Field(default_factory=list)


# =============================================================================
# DEBTS & PAYOFF
# =============================================================================

class Debt(PlannerModel):
    """
    A debt tracked for payoff.

    loan_amount, loan_term (months) and start_date only feed the progress
    display; the projection runs from the current balance.
    """

    id: str = Field(
        default_factory=new_record_id,
        description="Unique debt id"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Debt name"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Outstanding balance"
    )
    rate: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Annual interest rate in percent"
    )
    payment: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Monthly payment"
    )
    loan_amount: Optional[Decimal] = Field(default=None, ge=0)
    loan_term: Optional[int] = Field(
        default=None,
        ge=0,
        description="Original term in months"
    )
    start_date: Optional[date] = None


class PayoffStatus(str, Enum):
    """Outcome of a payoff projection."""
    PAID_OFF = "paid_off"                # Nothing left to pay
    FINITE = "finite"                    # Payoff in a known number of months
    PAYMENT_TOO_LOW = "payment_too_low"  # Payment never covers interest


class PayoffResult(PlannerModel):
    """
    Debt payoff projection.

    months is None whenever status is PAYMENT_TOO_LOW; an infinite payoff
    is never expressed as a month count.
    """

    debt_id: Optional[str] = None
    status: PayoffStatus
    months: Optional[int] = Field(
        default=None,
        description="Closed-form months to payoff"
    )
    simulated_months: Optional[int] = Field(
        default=None,
        description="Months counted by the period-by-period simulation"
    )
    consistent: bool = Field(
        default=True,
        description="Simulation agrees with the closed form within one month"
    )
    total_interest: Optional[Decimal] = None
    total_paid: Optional[Decimal] = None
    payoff_date: Optional[date] = None
    truncated: bool = False
    flags: list[PlannerFlag] = Field(default_factory=list)

    @property
    def is_infinite(self) -> bool:
        return self.status == PayoffStatus.PAYMENT_TOO_LOW


class DebtProgress(PlannerModel):
    """How far along a debt is against its original loan."""

    debt_id: Optional[str] = None
    paid_percent: Decimal = Decimal("0")
    term_end_date: Optional[date] = None


class DebtSummary(PlannerModel):
    """Portfolio view over all tracked debts."""

    count: int = 0
    total_balance: Decimal = Decimal("0")
    total_payment: Decimal = Decimal("0")
    total_interest: Decimal = Field(
        default=Decimal("0"),
        description="Projected interest across debts with a finite payoff"
    )
    latest_payoff_date: Optional[date] = None
    unpayable_count: int = Field(
        default=0,
        description="Debts whose payment never covers interest"
    )
