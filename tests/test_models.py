"""
Tests for PayPlan

Test strategy:
1. Unit tests for each engine component against fixed reference dates
2. Integration tests for the planner facade with in-memory collaborators
3. No wall clock in tests (use FixedClock)
"""

import pytest
from datetime import date
from decimal import Decimal

from pydantic import ValidationError

from payplan.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from payplan.models.bill import (
    AssignmentPreference,
    OneTimeBill,
    PaycheckAssignment,
    RecurringBill,
)
from payplan.models.budget import BUDGET_CATEGORIES, BudgetConfig
from payplan.models.debt import AssetLoan, PayoffResult, PayoffStatus
from payplan.models.flags import FlagKind, PlannerFlag, has_flag
from payplan.models.schedule import Frequency, PaySchedule
from payplan.models.state import PlannerState


class TestBillModels:
    """Tests for bill-related Pydantic models."""

    def test_recurring_bill_defaults(self):
        """Test RecurringBill defaults to a monthly auto-assigned bill."""
        bill = RecurringBill(name="Rent", amount_estimate=Decimal("1000"))
        assert bill.frequency == Frequency.MONTHLY
        assert bill.assignment_preference == AssignmentPreference.AUTO
        assert bill.due_day == 1
        assert bill.paid is False
        assert len(bill.id) == 32

    def test_recurring_bill_strips_whitespace(self):
        """Test that whitespace is stripped from the bill name."""
        bill = RecurringBill(name="  Electric  ")
        assert bill.name == "Electric"

    def test_recurring_bill_rejects_semimonthly(self):
        """Test that bills cannot use the pay-only semimonthly frequency."""
        with pytest.raises(ValidationError, match="Bill frequency"):
            RecurringBill(name="Odd", frequency=Frequency.SEMIMONTHLY)

    def test_recurring_bill_rejects_negative_amount(self):
        """Test that negative estimates are rejected."""
        with pytest.raises(ValidationError):
            RecurringBill(name="Test", amount_estimate=Decimal("-1"))

    def test_recurring_bill_is_frozen(self):
        """Test that records are immutable snapshots."""
        bill = RecurringBill(name="Rent")
        with pytest.raises(ValidationError):
            bill.paid = True

    def test_cycle_start_month_falls_back_to_next_due(self):
        """Test cycle start uses start_month, else next_due_date's month."""
        assert RecurringBill(name="A", start_month=4).cycle_start_month == 4
        assert RecurringBill(name="B", next_due_date=date(2024, 7, 3)).cycle_start_month == 7
        assert RecurringBill(name="C").cycle_start_month == 1

    def test_payload_uses_camel_case(self):
        """Test that payloads use camelCase keys and accept them back."""
        bill = OneTimeBill(name="Repair", amount=Decimal("80.00"), due_date=date(2024, 3, 9))
        payload = bill.to_payload()
        assert payload["dueDate"] == "2024-03-09"
        assert "due_date" not in payload

        restored = OneTimeBill.model_validate(payload)
        assert restored == bill

    def test_empty_assignment(self):
        """Test the empty assignment shape."""
        assignment = PaycheckAssignment()
        assert assignment.is_empty
        assert assignment.leftover_difference == Decimal("0")


class TestScheduleModels:
    """Tests for pay schedule models."""

    def test_anchors_default(self):
        """Test semimonthly anchors default to the 1st and 15th."""
        schedule = PaySchedule(frequency=Frequency.SEMIMONTHLY)
        assert schedule.anchors() == (1, 15)

    def test_anchors_are_ordered(self):
        """Test anchors come back ordered regardless of input order."""
        schedule = PaySchedule(frequency=Frequency.SEMIMONTHLY, first_pay_day=20, second_pay_day=5)
        assert schedule.anchors() == (5, 20)

    def test_equal_anchors_use_default(self):
        """Test that two identical anchors fall back to the default pair."""
        schedule = PaySchedule(frequency=Frequency.SEMIMONTHLY, first_pay_day=10, second_pay_day=10)
        assert schedule.anchors((1, 15)) == (1, 15)

    def test_pay_schedule_rejects_quarterly(self):
        """Test pay schedules only accept pay frequencies."""
        with pytest.raises(ValidationError, match="Pay frequency"):
            PaySchedule(frequency=Frequency.QUARTERLY)


class TestDebtModels:
    """Tests for loan and debt models."""

    def test_principal_prefers_current_balance(self):
        """Test current_balance wins over loan_amount when present."""
        asset = AssetLoan(
            name="Car",
            loan_amount=Decimal("20000"),
            current_balance=Decimal("12000"),
            start_date=date(2024, 1, 1),
        )
        assert asset.principal == Decimal("12000")

    def test_principal_falls_back_to_loan_amount(self):
        """Test loan_amount is used when no current balance is known."""
        asset = AssetLoan(name="Car", loan_amount=Decimal("20000"), start_date=date(2024, 1, 1))
        assert asset.principal == Decimal("20000")

    def test_loan_rejects_biannual(self):
        """Test loans only accept loan frequencies."""
        with pytest.raises(ValidationError, match="Loan payment frequency"):
            AssetLoan(name="Boat", payment_frequency=Frequency.BIANNUAL, start_date=date(2024, 1, 1))

    def test_payoff_result_infinite(self):
        """Test is_infinite follows the PAYMENT_TOO_LOW status."""
        assert PayoffResult(status=PayoffStatus.PAYMENT_TOO_LOW).is_infinite
        assert not PayoffResult(status=PayoffStatus.FINITE, months=3).is_infinite


class TestBudgetAndStateModels:
    """Tests for budget config and planner state."""

    def test_budget_config_defaults(self):
        """Test the default config has a zero cap for every category."""
        config = BudgetConfig()
        assert config.version == 2
        assert set(config.default_caps) == set(BUDGET_CATEGORIES)
        assert all(cap == Decimal("0") for cap in config.default_caps.values())
        assert config.exclusions.exclude_transfers is True
        assert config.exclusions.exclude_refunds is True

    def test_with_recurring_bill_returns_new_state(self):
        """Test state transitions leave the original snapshot untouched."""
        bill = RecurringBill(name="Rent")
        state = PlannerState(recurring_bills=[bill])
        updated = state.with_recurring_bill(bill.model_copy(update={"paid": True}))

        assert state.recurring_bill(bill.id).paid is False
        assert updated.recurring_bill(bill.id).paid is True

    def test_lookup_missing_record(self):
        """Test lookups return None for unknown ids."""
        state = PlannerState()
        assert state.recurring_bill("nope") is None
        assert state.one_time_bill("nope") is None


class TestFlags:
    """Tests for outcome flags."""

    def test_invalid_amount_flag(self):
        """Test the invalid amount constructor."""
        flag = PlannerFlag.invalid_amount("amount", "abc", "Water")
        assert flag.kind == FlagKind.INVALID_AMOUNT
        assert flag.record == "Water"
        assert "abc" in flag.message

    def test_has_flag(self):
        """Test has_flag matches by kind."""
        flags = [PlannerFlag.unsupported_frequency("frequency", "fortnightly")]
        assert has_flag(flags, FlagKind.UNSUPPORTED_FREQUENCY)
        assert not has_flag(flags, FlagKind.INVALID_AMOUNT)

    def test_flag_severity_validation(self):
        """Test severity must be error, warning or info."""
        with pytest.raises(ValidationError):
            PlannerFlag(kind=FlagKind.NON_AMORTIZING, message="x", severity="fatal")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            description="State loaded",
        )
        assert event.event_type == AuditEventType.STATE_LOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_CAPS_UPSERTED,
            description="Caps updated",
            details={"patch": {"rent": "1400"}},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "budget_caps_upserted"
        assert log_dict["details"]["patch"]["rent"] == "1400"

    def test_audit_event_to_row(self):
        """Test conversion to a tabular row."""
        event = AuditEvent(
            event_type=AuditEventType.BILL_MARKED_PAID,
            description="Bill marked paid",
            is_user_action=True,
        )
        row = event.to_row()
        assert len(row) == 10
        assert row[2] == "bill_marked_paid"
        assert row[9] == "True"

    def test_builder_bill_marked_paid(self):
        """Test AuditEventBuilder.bill_marked_paid."""
        event = AuditEventBuilder.bill_marked_paid("b1", "Rent", "2024-02-01")
        assert event.event_type == AuditEventType.BILL_MARKED_PAID
        assert event.entity_id == "b1"
        assert event.details["next_due_date"] == "2024-02-01"
        assert event.is_user_action is True

    def test_builder_state_loaded_severity(self):
        """Test a load with flags is recorded as a warning."""
        clean = AuditEventBuilder.state_loaded({"debts": 1}, 0)
        flagged = AuditEventBuilder.state_loaded({"debts": 1}, 2)
        assert clean.severity == AuditSeverity.INFO
        assert flagged.severity == AuditSeverity.WARNING
