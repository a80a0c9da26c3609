"""
Planner Facade

This module ties the pure engine to its collaborators and defines the
operations a UI calls:
1. Load / save (storage payload -> normalize -> PlannerState -> payload)
2. Derived plans (paychecks, assignment, amortization, payoff, budgets)
3. State transitions (toggle paid, history edits, budget caps)

DESIGN DECISION: The facade enforces the boundaries:
- The engine only ever sees a normalized PlannerState snapshot
- "Today" comes from the injected Clock, once per operation
- Tunables come from EngineSettings, never from module constants
- Every transition is audited

Transitions return the new PlannerState and keep it as the current
snapshot; nothing is persisted until save_state() is called.
"""

from datetime import date
from typing import Mapping, Optional

import structlog

from payplan.audit import AuditLogger
from payplan.config import EngineSettings, get_settings
from payplan.core.amortization import amortize
from payplan.core.assignment import assign_bills
from payplan.core.budget import calculate_budget_actuals, transactions_from_instances, upsert_month_caps
from payplan.core.dates import add_months, end_of_month, parse_month_key, start_of_month
from payplan.core.money import coerce_amount, to_cents
from payplan.core.overview import monthly_overview
from payplan.core.paychecks import generate_paychecks
from payplan.core.payoff import calculate_payoff, debt_progress, summarize_debts
from payplan.core.recurrence import (
    add_historical_payment,
    remove_historical_payment,
    resolve_bill_instances,
    toggle_one_time_paid,
    toggle_recurring_paid,
)
from payplan.models.audit import AuditEventBuilder
from payplan.models.bill import (
    BillInstance,
    HistoricalPayment,
    MonthlyOverview,
    OneTimeBill,
    PaycheckAssignment,
    RecurringBill,
)
from payplan.models.budget import BudgetActuals
from payplan.models.debt import AmortizationResult, AssetLoan, Debt, DebtProgress, DebtSummary, PayoffResult
from payplan.models.flags import PlannerFlag
from payplan.models.schedule import PaycheckEvent
from payplan.models.state import PlannerState
from payplan.services.clock import Clock, SystemClock
from payplan.services.export import CalendarExporterInterface
from payplan.services.storage import PlannerStorageInterface, StorageError
from payplan.validation import RecordNormalizer

logger = structlog.get_logger(__name__)


class PlannerError(Exception):
    """Base exception for planner operations."""
    pass


class RecordNotFoundError(PlannerError):
    """A transition referenced a record id that is not in the current state."""
    pass


class PayPlanner:
    """
    Entry point for a UI or host app.

    Usage:
        planner = PayPlanner(storage=store, clock=SystemClock())
        planner.load_state()
        assignment = planner.assign_paychecks()
        planner.toggle_bill_paid(bill_id)
        planner.save_state()
    """

    def __init__(
        self,
        storage: Optional[PlannerStorageInterface] = None,
        clock: Optional[Clock] = None,
        settings: Optional[EngineSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        exporter: Optional[CalendarExporterInterface] = None,
        state: Optional[PlannerState] = None,
    ):
        self._storage = storage
        self._clock = clock or SystemClock()
        self._settings = settings or get_settings().engine
        self._audit_logger = audit_logger or AuditLogger()
        self._exporter = exporter
        self._normalizer = RecordNormalizer(history_cap=self._settings.history_cap)
        self._state = state if state is not None else PlannerState()

    @property
    def state(self) -> PlannerState:
        return self._state

    @property
    def today(self) -> date:
        return self._clock.today()

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def load_state(self) -> list[PlannerFlag]:
        """
        Load and normalize the stored payload.

        Returns:
            Data-quality flags raised while normalizing

        Raises:
            PlannerError: If no storage is configured
            StorageError: If the backend fails
        """
        if self._storage is None:
            raise PlannerError("No planner storage configured")

        try:
            payload = self._storage.load_payload()
        except StorageError as e:
            self._audit_logger.log_error("StorageError", str(e), {"operation": "load"})
            raise

        state, flags = self._normalizer.state(payload or {})
        self._state = state

        self._audit_logger.log(AuditEventBuilder.state_loaded(self._counts(), len(flags)))
        self._audit_logger.log_flags(flags)
        return flags

    def save_state(self) -> bool:
        """
        Persist the current snapshot.

        Raises:
            PlannerError: If no storage is configured
            StorageError: If the backend fails
        """
        if self._storage is None:
            raise PlannerError("No planner storage configured")

        try:
            saved = self._storage.save_payload(self._state.to_payload())
        except StorageError as e:
            self._audit_logger.log_error("StorageError", str(e), {"operation": "save"})
            raise

        if saved:
            self._audit_logger.log(AuditEventBuilder.state_saved(self._counts()))
        return saved

    def _counts(self) -> dict[str, int]:
        return {
            "recurring_bills": len(self._state.recurring_bills),
            "one_time_bills": len(self._state.one_time_bills),
            "assets": len(self._state.assets),
            "debts": len(self._state.debts),
            "transactions": len(self._state.transactions),
        }

    # =========================================================================
    # DERIVED PLANS
    # =========================================================================

    def upcoming_paychecks(self, count: Optional[int] = None) -> list[PaycheckEvent]:
        """The next paychecks on or after today."""
        return generate_paychecks(
            self._state.pay_schedule,
            count or self._settings.paycheck_count,
            self.today,
            self._settings.default_anchors,
        )

    def assign_paychecks(self) -> PaycheckAssignment:
        """Split the active bills across the next two paychecks."""
        state = self._state
        assignment = assign_bills(
            self.upcoming_paychecks(),
            state.recurring_bills,
            state.assets,
            state.one_time_bills,
            threshold=self._settings.balance_threshold,
        )
        if assignment.is_empty:
            logger.info("assignment_skipped", reason="fewer than two paychecks")
            return assignment

        self._audit_logger.log(AuditEventBuilder.paychecks_assigned(
            [d.isoformat() for d in assignment.pay_dates],
            len(assignment.check1),
            len(assignment.check2),
        ))
        self._audit_logger.log_flags(assignment.flags)
        if assignment.moved_bill_id:
            moved = next(b for b in assignment.check1 + assignment.check2 if b.moved)
            self._audit_logger.log(AuditEventBuilder.balancing_move_applied(
                moved.source_id, moved.name, str(assignment.leftover_difference)
            ))
        return assignment

    def amortization(self, asset_id: str) -> AmortizationResult:
        """Payment schedule for one asset loan."""
        result = amortize(
            self._asset(asset_id),
            iteration_cap=self._settings.amortization_iteration_cap,
        )
        self._audit_logger.log_flags(result.flags)
        return result

    def debt_payoff(self, debt_id: str) -> PayoffResult:
        """Payoff projection for one debt."""
        result = calculate_payoff(
            self._debt(debt_id),
            self.today,
            iteration_cap=self._settings.payoff_iteration_cap,
        )
        self._audit_logger.log_flags(result.flags)
        return result

    def debt_progress(self, debt_id: str) -> DebtProgress:
        return debt_progress(self._debt(debt_id))

    def debt_summary(self) -> DebtSummary:
        return summarize_debts(
            self._state.debts,
            self.today,
            iteration_cap=self._settings.payoff_iteration_cap,
        )

    def bill_instances(self, start: Optional[date] = None, end: Optional[date] = None) -> list[BillInstance]:
        """
        Bill occurrences in [start, end].

        Defaults to the current month through the end of the configured
        calendar horizon.
        """
        today = self.today
        start = start or start_of_month(today)
        end = end or end_of_month(add_months(start_of_month(today), self._settings.calendar_months_ahead))
        return resolve_bill_instances(self._state.recurring_bills, self._state.one_time_bills, start, end)

    def budget_actuals(self, month: Optional[date] = None) -> BudgetActuals:
        """
        Plan vs actual for a month (default: the current month).

        Spend includes the month's bill occurrences plus stored receipts and
        synced transactions.
        """
        month = month or self.today
        instances = resolve_bill_instances(
            self._state.recurring_bills,
            self._state.one_time_bills,
            start_of_month(month),
            end_of_month(month),
        )
        transactions = transactions_from_instances(instances) + list(self._state.transactions)
        return calculate_budget_actuals(self._state.budgets, month, transactions)

    def overview(self) -> MonthlyOverview:
        return monthly_overview(
            self._state.pay_schedule,
            self._state.recurring_bills,
            self._state.one_time_bills,
            self.today,
            self._settings.default_anchors,
        )

    def export_calendar(self) -> list[BillInstance]:
        """
        Hand the upcoming bill instances to the calendar collaborator.

        Raises:
            PlannerError: If no exporter is configured
        """
        if self._exporter is None:
            raise PlannerError("No calendar exporter configured")

        instances = self.bill_instances()
        self._exporter.export(instances)
        if instances:
            start, end = instances[0].due_date, instances[-1].due_date
            self._audit_logger.log(AuditEventBuilder.calendar_exported(
                len(instances), start.isoformat(), end.isoformat()
            ))
        return instances

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def toggle_bill_paid(self, bill_id: str) -> PlannerState:
        """Mark a recurring bill's current period paid and advance it."""
        bill = self._recurring(bill_id)
        updated = toggle_recurring_paid(bill, self.today)
        self._state = self._state.with_recurring_bill(updated)

        next_due = updated.next_due_date.isoformat() if updated.next_due_date else None
        self._audit_logger.log(AuditEventBuilder.bill_marked_paid(bill.id, bill.name, next_due))
        return self._state

    def toggle_one_time_paid(self, bill_id: str) -> PlannerState:
        """Flip a one-time bill between paid and unpaid."""
        bill = self._one_time(bill_id)
        updated = toggle_one_time_paid(bill, self.today)
        self._state = self._state.with_one_time_bill(updated)

        self._audit_logger.log(AuditEventBuilder.one_time_paid_toggled(bill.id, bill.name, updated.paid))
        return self._state

    def add_historical_payment(
        self,
        bill_id: str,
        amount: object,
        paid_on: Optional[date] = None,
    ) -> PlannerState:
        """
        Record what a variable bill actually cost.

        An unparseable or negative amount is flagged and nothing is recorded.
        """
        bill = self._recurring(bill_id)
        value, valid = coerce_amount(amount)
        if not valid or value < 0:
            self._audit_logger.log_flags([PlannerFlag.invalid_amount("amount", amount, bill.name)])
            return self._state

        payment = HistoricalPayment(date=paid_on or self.today, amount=to_cents(value))
        updated = add_historical_payment(bill, payment, cap=self._settings.history_cap)
        self._state = self._state.with_recurring_bill(updated)

        self._audit_logger.log(AuditEventBuilder.historical_payment_added(
            bill.id, str(payment.amount), str(updated.amount_estimate)
        ))
        return self._state

    def remove_historical_payment(self, bill_id: str, index: int) -> PlannerState:
        """
        Drop one history entry by position.

        Raises:
            RecordNotFoundError: If the bill or the entry does not exist
        """
        bill = self._recurring(bill_id)
        try:
            updated = remove_historical_payment(bill, index)
        except IndexError as e:
            raise RecordNotFoundError(str(e)) from e
        self._state = self._state.with_recurring_bill(updated)

        self._audit_logger.log(AuditEventBuilder.historical_payment_removed(
            bill.id, index, str(updated.amount_estimate)
        ))
        return self._state

    def upsert_month_caps(self, month_key: str, patch: Mapping[str, object]) -> PlannerState:
        """
        Set category caps for one month.

        Raises:
            PlannerError: If month_key is not YYYY-MM
        """
        if parse_month_key(month_key) is None:
            raise PlannerError(f"Invalid month key: {month_key!r}")

        budgets = upsert_month_caps(self._state.budgets, month_key, patch)
        self._state = self._state.model_copy(update={"budgets": budgets})

        self._audit_logger.log(AuditEventBuilder.budget_caps_upserted(
            month_key, {k: str(v) for k, v in patch.items()}
        ))
        return self._state

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def _recurring(self, bill_id: str) -> RecurringBill:
        bill = self._state.recurring_bill(bill_id)
        if bill is None:
            raise RecordNotFoundError(f"Recurring bill not found: {bill_id}")
        return bill

    def _one_time(self, bill_id: str) -> OneTimeBill:
        bill = self._state.one_time_bill(bill_id)
        if bill is None:
            raise RecordNotFoundError(f"One-time bill not found: {bill_id}")
        return bill

    def _asset(self, asset_id: str) -> AssetLoan:
        for asset in self._state.assets:
            if asset.id == asset_id:
                return asset
        raise RecordNotFoundError(f"Asset not found: {asset_id}")

    def _debt(self, debt_id: str) -> Debt:
        for debt in self._state.debts:
            if debt.id == debt_id:
                return debt
        raise RecordNotFoundError(f"Debt not found: {debt_id}")
