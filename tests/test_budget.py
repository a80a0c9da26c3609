"""Tests for the budget actuals aggregator."""

from datetime import date
from decimal import Decimal

from payplan.core.budget import (
    calculate_budget_actuals,
    classify_category,
    is_refund,
    is_transfer,
    resolve_caps,
    transactions_from_instances,
    upsert_month_caps,
)
from payplan.models.bill import BillInstance
from payplan.models.budget import BudgetConfig, BudgetExclusions, SourceKind, TransactionLike
from payplan.validation import RecordNormalizer


def _config(**caps):
    config, _ = RecordNormalizer().budget_config(caps)
    return config


def _txn(day, category, amount, **kwargs):
    return TransactionLike(date=date(2026, 2, day), category=category, amount=Decimal(str(amount)), **kwargs)


class TestCaps:
    """Tests for cap resolution and monthly snapshots."""

    def test_month_snapshot_keeps_history(self):
        """Test month caps override defaults for that month only."""
        config = upsert_month_caps(_config(rent=1200), "2026-02", {"rent": 1400, "groceries": 350})

        feb = resolve_caps(config, "2026-02")
        mar = resolve_caps(config, "2026-03")

        assert feb["rent"] == Decimal("1400.00")
        assert feb["groceries"] == Decimal("350.00")
        assert mar["rent"] == Decimal("1200.00")

    def test_snapshot_survives_default_change(self):
        """Test a stored month is unaffected by later default edits."""
        config = upsert_month_caps(_config(rent=1200), "2026-02", {"groceries": 300})
        changed = config.model_copy(update={"default_caps": {**config.default_caps, "rent": Decimal("999")}})
        assert resolve_caps(changed, "2026-02")["rent"] == Decimal("1200.00")
        assert resolve_caps(changed, "2026-03")["rent"] == Decimal("999")

    def test_upsert_ignores_unknown_and_zeroes_invalid(self):
        """Test unknown categories are dropped and garbage amounts become 0."""
        config = upsert_month_caps(BudgetConfig(), "2026-02", {"yachts": 5000, "dining": "lots"})
        caps = resolve_caps(config, "2026-02")
        assert "yachts" not in caps
        assert caps["dining"] == Decimal("0.00")

    def test_upsert_does_not_mutate(self):
        """Test the input config is left unchanged."""
        config = BudgetConfig()
        upsert_month_caps(config, "2026-02", {"rent": 100})
        assert config.monthly_caps == {}


class TestClassification:
    """Tests for category and exclusion classification."""

    def test_unknown_category_is_other(self):
        """Test unrecognized categories fall into other."""
        assert classify_category("Groceries") == "groceries"
        assert classify_category("boats") == "other"
        assert classify_category(None) == "other"

    def test_transfer_and_refund_keywords(self):
        """Test keyword matching across the descriptive fields."""
        assert is_transfer(_txn(1, "other", 100, name="Transfer to savings"))
        assert is_transfer(_txn(1, "other", 100, type="TRANSFER"))
        assert is_refund(_txn(1, "other", 10, merchant="Refund desk"))
        assert is_refund(_txn(1, "other", -10))
        assert not is_refund(_txn(1, "groceries", 10, name="Store"))

    def test_bill_instances_as_spend(self):
        """Test bill occurrences become bill-kind spend records."""
        instance = BillInstance(
            id="Rent_2026-02-03",
            source_id="rent-1",
            name="Rent",
            amount_estimate=Decimal("1200"),
            due_date=date(2026, 2, 3),
            category="rent",
        )
        [txn] = transactions_from_instances([instance])
        assert txn.source_kind == SourceKind.BILL
        assert txn.date == date(2026, 2, 3)
        assert txn.amount == Decimal("1200")


class TestCalculateBudgetActuals:
    """Tests for calculate_budget_actuals."""

    def test_plan_vs_actual_with_exclusions(self):
        """Test spend per category with the transfer skipped and the refund counted as income."""
        config = upsert_month_caps(_config(rent=1200, groceries=300), "2026-02", {"groceries": 400})
        transactions = [
            _txn(3, "rent", 1200, source_kind=SourceKind.BILL),
            _txn(6, "groceries", 120, source_kind=SourceKind.RECEIPT),
            _txn(10, "groceries", 50, id="t-1", name="Store"),
            _txn(11, "other", 100, id="t-2", name="Transfer to savings"),
            _txn(12, "other", -20, id="t-3", name="Refund from merchant"),
        ]

        result = calculate_budget_actuals(config, date(2026, 2, 1), transactions)

        groceries = result.category("groceries")
        rent = result.category("rent")
        assert result.month_key == "2026-02"
        assert groceries.assigned == Decimal("400.00")
        assert groceries.spent == Decimal("170.00")
        assert groceries.remaining == Decimal("230.00")
        assert groceries.percent == Decimal("42.50")
        assert rent.spent == Decimal("1200.00")
        assert result.category("other").spent == Decimal("0.00")
        assert result.totals.spent == Decimal("1370.00")
        assert result.totals.total_income == Decimal("20.00")

    def test_other_months_ignored(self):
        """Test only transactions dated in the month count."""
        outside = TransactionLike(date=date(2026, 3, 1), category="rent", amount=Decimal("500"))
        result = calculate_budget_actuals(_config(rent=1000), date(2026, 2, 14), [outside])
        assert result.totals.spent == Decimal("0")

    def test_excluded_ids(self):
        """Test explicitly excluded transactions never count."""
        config = BudgetConfig(exclusions=BudgetExclusions(excluded_ids=["t-9"]))
        result = calculate_budget_actuals(config, date(2026, 2, 1), [_txn(4, "dining", 40, id="t-9")])
        assert result.category("dining").spent == Decimal("0.00")

    def test_transfers_counted_when_not_excluded(self):
        """Test transfers are ordinary spend when the exclusion is off."""
        config = BudgetConfig(exclusions=BudgetExclusions(exclude_transfers=False))
        result = calculate_budget_actuals(config, date(2026, 2, 1), [_txn(4, "other", 100, name="Transfer")])
        assert result.category("other").spent == Decimal("100.00")

    def test_bills_and_receipts_skip_exclusions(self):
        """Test keyword exclusions only filter synced transactions."""
        transactions = [
            _txn(5, "loan", 250, id="b-1", name="Balance Transfer Card", source_kind=SourceKind.BILL),
            _txn(8, "shopping", 40, id="r-1", name="Refund-eligible store", source_kind=SourceKind.RECEIPT),
        ]

        result = calculate_budget_actuals(BudgetConfig(), date(2026, 2, 1), transactions)

        assert result.category("loan").spent == Decimal("250.00")
        assert result.category("shopping").spent == Decimal("40.00")
        assert result.totals.total_income == Decimal("0.00")

    def test_percent_with_zero_cap(self):
        """Test spend against a zero cap reads 100% and no spend reads 0%."""
        result = calculate_budget_actuals(BudgetConfig(), date(2026, 2, 1), [_txn(4, "dining", 15)])
        assert result.category("dining").percent == Decimal("100.00")
        assert result.category("dining").remaining == Decimal("-15.00")
        assert result.category("shopping").percent == Decimal("0")
        assert result.totals.spent_percent == Decimal("0")

    def test_one_row_per_category(self):
        """Test every category is reported in a fixed order."""
        result = calculate_budget_actuals(BudgetConfig(), date(2026, 2, 1), [])
        assert [row.category for row in result.per_category][:3] == ["utilities", "subscription", "insurance"]
        assert len(result.per_category) == 10
