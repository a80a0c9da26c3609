"""
Planner State

DESIGN DECISION: There is no global mutable app state. Everything the
engine needs is one immutable PlannerState snapshot; every transition
returns a new snapshot.
"""

from typing import Optional

from pydantic import Field

from payplan.models.base import PlannerModel
from payplan.models.bill import OneTimeBill, RecurringBill
from payplan.models.budget import BudgetConfig, TransactionLike
from payplan.models.debt import AssetLoan, Debt
from payplan.models.schedule import PaySchedule


class PlannerState(PlannerModel):
    """Everything the user has entered."""

    pay_schedule: Optional[PaySchedule] = None
    recurring_bills: list[RecurringBill] = Field(default_factory=list)
    one_time_bills: list[OneTimeBill] = Field(default_factory=list)
    assets: list[AssetLoan] = Field(default_factory=list)
    debts: list[Debt] = Field(default_factory=list)
    budgets: BudgetConfig = Field(default_factory=BudgetConfig)
    transactions: list[TransactionLike] = Field(
        default_factory=list,
        description="Receipts and synced bank transactions"
    )

    def recurring_bill(self, bill_id: str) -> Optional[RecurringBill]:
        for bill in self.recurring_bills:
            if bill.id == bill_id:
                return bill
        return None

    def one_time_bill(self, bill_id: str) -> Optional[OneTimeBill]:
        for bill in self.one_time_bills:
            if bill.id == bill_id:
                return bill
        return None

    def with_recurring_bill(self, updated: RecurringBill) -> 'PlannerState':
        """New state with one recurring bill replaced by id."""
        bills = [updated if b.id == updated.id else b for b in self.recurring_bills]
        return self.model_copy(update={"recurring_bills": bills})

    def with_one_time_bill(self, updated: OneTimeBill) -> 'PlannerState':
        """New state with one one-time bill replaced by id."""
        bills = [updated if b.id == updated.id else b for b in self.one_time_bills]
        return self.model_copy(update={"one_time_bills": bills})
