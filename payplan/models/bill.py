"""
Bill Models

Tagged variants for everything a paycheck has to cover:
- RecurringBill: a template that repeats on a period convention
- OneTimeBill: a single dated obligation with a terminal lifecycle

Plus the derived shapes the engine hands to collaborators:
- BillInstance: one dated occurrence (calendar export payload)
- AssignedBill / PaycheckAssignment: bills split across two paychecks
- MonthlyOverview: month totals for the dashboard

DESIGN DECISION: Records are loaded through the RecordNormalizer, which
applies defensive defaults. Once a model exists it is trusted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import Field, field_validator

from payplan.models.base import PlannerModel
from payplan.models.flags import PlannerFlag
from payplan.models.schedule import BILL_FREQUENCIES, Frequency, restrict_frequency


def new_record_id() -> str:
    """Generate a fresh record id."""
    return uuid4().hex


# =============================================================================
# ENUMS
# =============================================================================

class AssignmentPreference(str, Enum):
    """
    Which paycheck a bill should come out of.

    AUTO lets the assignment engine decide (and lets the balancing pass
    move the bill). CHECK1/CHECK2 pin the bill unconditionally.
    """
    AUTO = "auto"
    CHECK1 = "check1"
    CHECK2 = "check2"


class BillSource(str, Enum):
    """Where an assignable bill came from."""
    RECURRING = "recurring"
    ASSET = "asset"
    ONE_TIME = "one_time"


# =============================================================================
# RECURRING BILLS
# =============================================================================

class HistoricalPayment(PlannerModel):
    """An amount actually paid for a variable bill."""

    date: date
    amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Amount paid"
    )


class RecurringBill(PlannerModel):
    """
    A bill template that repeats.

    For variable bills, amount_estimate tracks the rounded mean of
    historical_payments whenever that history is non-empty.
    """

    id: str = Field(
        default_factory=new_record_id,
        description="Unique bill id"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Bill name"
    )
    amount_estimate: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Expected amount per occurrence"
    )
    due_day: int = Field(
        default=1,
        ge=1,
        le=31,
        description="Day of month the bill is due (clamped to month end)"
    )
    frequency: Frequency = Field(
        default=Frequency.MONTHLY,
        description="Period convention"
    )
    start_month: Optional[int] = Field(
        default=None,
        ge=1,
        le=12,
        description="First month of the cycle for quarterly/biannual/annual bills"
    )
    category: str = Field(
        default="other",
        max_length=50,
        description="Budget category"
    )
    autopay: bool = False
    assignment_preference: AssignmentPreference = AssignmentPreference.AUTO
    variable: bool = Field(
        default=False,
        description="Amount varies; estimate follows payment history"
    )
    historical_payments: list[HistoricalPayment] = Field(default_factory=list)
    paid: bool = Field(
        default=False,
        description="Paid for the current period"
    )
    next_due_date: Optional[date] = Field(
        default=None,
        description="Next unpaid due date; also the anchor for weekly/biweekly bills"
    )
    last_paid: Optional[date] = None

    @field_validator('frequency')
    @classmethod
    def validate_frequency(cls, v: Frequency) -> Frequency:
        return restrict_frequency(v, BILL_FREQUENCIES, "Bill")

    @property
    def cycle_start_month(self) -> int:
        """Month the cycle is counted from (1-12)."""
        if self.start_month:
            return self.start_month
        if self.next_due_date:
            return self.next_due_date.month
        return 1


class OneTimeBill(PlannerModel):
    """
    A single dated obligation.

    Terminal lifecycle: toggling paid never produces a new due date.
    """

    id: str = Field(
        default_factory=new_record_id,
        description="Unique bill id"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Bill name"
    )
    amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Amount due"
    )
    due_date: date
    category: str = Field(
        default="other",
        max_length=50
    )
    paid: bool = False
    paid_date: Optional[date] = None


# =============================================================================
# DERIVED SHAPES
# =============================================================================

class BillInstance(PlannerModel):
    """
    One concrete dated occurrence of a bill.

    This is the payload handed to the calendar export collaborator.
    """

    id: str = Field(
        ...,
        description="Stable instance id: name with underscores + due date"
    )
    source_id: str
    name: str
    amount_estimate: Decimal
    due_date: date
    category: str = "other"
    paid: bool = False
    autopay: bool = False


class AssignedBill(PlannerModel):
    """A bill placed on one of the two upcoming paychecks."""

    source_id: str
    source: BillSource
    name: str
    amount: Decimal
    due_date: date = Field(
        ...,
        description="Effective due date projected into the paycheck window"
    )
    category: str = "other"
    autopay: bool = False
    preference: AssignmentPreference = AssignmentPreference.AUTO
    moved: bool = Field(
        default=False,
        description="Moved by the balancing pass"
    )


class PaycheckAssignment(PlannerModel):
    """
    Bills split across the next two paychecks.

    An empty structure (no pay dates) means no pay schedule is configured.
    """

    check1: list[AssignedBill] = Field(default_factory=list)
    check2: list[AssignedBill] = Field(default_factory=list)
    pay_dates: list[date] = Field(default_factory=list)
    pay_amounts: list[Decimal] = Field(default_factory=list)
    check1_total: Decimal = Decimal("0")
    check2_total: Decimal = Decimal("0")
    leftover1: Decimal = Decimal("0")
    leftover2: Decimal = Decimal("0")
    moved_bill_id: Optional[str] = Field(
        default=None,
        description="Bill moved by the balancing pass, if any"
    )
    flags: list[PlannerFlag] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.pay_dates

    @property
    def leftover_difference(self) -> Decimal:
        return abs(self.leftover1 - self.leftover2)


class MonthlyOverview(PlannerModel):
    """Pay vs bills for one month."""

    month_key: str
    monthly_bills: Decimal = Decimal("0")
    upcoming_one_time: Decimal = Decimal("0")
    monthly_income: Decimal = Decimal("0")
    paychecks_this_month: int = 0
    leftover: Decimal = Decimal("0")
    next_paycheck_date: Optional[date] = None
    days_until_next_paycheck: Optional[int] = None
