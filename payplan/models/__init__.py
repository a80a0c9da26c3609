"""
Data Models Package

This package contains all Pydantic models used by the PayPlan engine.
Every record the engine reads or produces conforms to these schemas.
"""

from payplan.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from payplan.models.bill import (
    AssignedBill,
    AssignmentPreference,
    BillInstance,
    BillSource,
    HistoricalPayment,
    MonthlyOverview,
    OneTimeBill,
    PaycheckAssignment,
    RecurringBill,
)
from payplan.models.budget import (
    BUDGET_CATEGORIES,
    BudgetActuals,
    BudgetCategory,
    BudgetConfig,
    BudgetExclusions,
    BudgetTotals,
    CategoryActual,
    SourceKind,
    TransactionLike,
)
from payplan.models.debt import (
    AmortizationResult,
    AmortizationRow,
    AssetLoan,
    Debt,
    DebtProgress,
    DebtSummary,
    PayoffResult,
    PayoffStatus,
)
from payplan.models.flags import FlagKind, PlannerFlag, has_flag
from payplan.models.schedule import (
    BILL_FREQUENCIES,
    LOAN_FREQUENCIES,
    PAY_FREQUENCIES,
    Frequency,
    PaycheckEvent,
    PaySchedule,
)
from payplan.models.state import PlannerState

__all__ = [
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Bill models
    "AssignedBill",
    "AssignmentPreference",
    "BillInstance",
    "BillSource",
    "HistoricalPayment",
    "MonthlyOverview",
    "OneTimeBill",
    "PaycheckAssignment",
    "RecurringBill",
    # Budget models
    "BUDGET_CATEGORIES",
    "BudgetActuals",
    "BudgetCategory",
    "BudgetConfig",
    "BudgetExclusions",
    "BudgetTotals",
    "CategoryActual",
    "SourceKind",
    "TransactionLike",
    # Loan and debt models
    "AmortizationResult",
    "AmortizationRow",
    "AssetLoan",
    "Debt",
    "DebtProgress",
    "DebtSummary",
    "PayoffResult",
    "PayoffStatus",
    # Flags
    "FlagKind",
    "PlannerFlag",
    "has_flag",
    # Schedule models
    "BILL_FREQUENCIES",
    "LOAN_FREQUENCIES",
    "PAY_FREQUENCIES",
    "Frequency",
    "PaycheckEvent",
    "PaySchedule",
    # State
    "PlannerState",
]
