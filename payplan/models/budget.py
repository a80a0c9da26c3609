"""
Budget Models

A BudgetConfig holds default category caps plus per-month overrides.
Actual spend comes from TransactionLike records (bills, receipts and
synced bank transactions), classified into a fixed category set.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from payplan.models.base import PlannerModel


class BudgetCategory(str, Enum):
    """
    The fixed budget category set.

    Anything unrecognized is classified as OTHER.
    """
    UTILITIES = "utilities"
    SUBSCRIPTION = "subscription"
    INSURANCE = "insurance"
    LOAN = "loan"
    RENT = "rent"
    GROCERIES = "groceries"
    DINING = "dining"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    OTHER = "other"


BUDGET_CATEGORIES: tuple[str, ...] = tuple(c.value for c in BudgetCategory)


class SourceKind(str, Enum):
    """Where a spend record came from."""
    BILL = "bill"
    RECEIPT = "receipt"
    SYNCED = "synced"


def default_caps() -> dict[str, Decimal]:
    """A zero cap for every category."""
    return {category: Decimal("0") for category in BUDGET_CATEGORIES}


class BudgetExclusions(PlannerModel):
    """Which transactions never count as spend."""

    exclude_transfers: bool = True
    exclude_refunds: bool = True
    excluded_ids: list[str] = Field(default_factory=list)


class BudgetConfig(PlannerModel):
    """
    Category caps.

    monthly_caps maps a "YYYY-MM" key to a full snapshot of that month's
    caps. Month entries are upserted and never deleted automatically.
    """

    version: int = 2
    default_caps: dict[str, Decimal] = Field(default_factory=default_caps)
    monthly_caps: dict[str, dict[str, Decimal]] = Field(default_factory=dict)
    exclusions: BudgetExclusions = Field(default_factory=BudgetExclusions)


class TransactionLike(PlannerModel):
    """Anything that can count against a budget."""

    id: Optional[str] = None
    date: date
    category: str = "other"
    amount: Decimal = Decimal("0")
    source_kind: SourceKind = SourceKind.SYNCED
    name: str = ""
    type: str = ""
    merchant: str = ""


class CategoryActual(PlannerModel):
    """Plan vs actual for one category."""

    category: str
    assigned: Decimal = Decimal("0")
    spent: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")
    percent: Decimal = Decimal("0")


class BudgetTotals(PlannerModel):
    """Plan vs actual across all categories."""

    assigned: Decimal = Decimal("0")
    spent: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    spent_percent: Decimal = Decimal("0")


class BudgetActuals(PlannerModel):
    """Budget report for one month."""

    month_key: str
    per_category: list[CategoryActual] = Field(default_factory=list)
    totals: BudgetTotals = Field(default_factory=BudgetTotals)

    def category(self, name: str) -> Optional[CategoryActual]:
        """Look up one category row."""
        for row in self.per_category:
            if row.category == name:
                return row
        return None
