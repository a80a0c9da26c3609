"""Tests for the amortization simulator."""

from datetime import date
from decimal import Decimal

from payplan.core.amortization import amortize, periodic_rate
from payplan.models.debt import AssetLoan
from payplan.models.flags import FlagKind, has_flag
from payplan.models.schedule import Frequency


def _loan(principal="10000", rate="6", payment="200", frequency=Frequency.MONTHLY, **kwargs):
    return AssetLoan(
        name="Car",
        loan_amount=Decimal(principal),
        interest_rate=Decimal(rate),
        payment_amount=Decimal(payment),
        payment_frequency=frequency,
        start_date=kwargs.pop("start_date", date(2024, 1, 1)),
        **kwargs,
    )


class TestAmortize:
    """Tests for amortize."""

    def test_first_row(self):
        """Test 10000 at 6% with a 200 monthly payment."""
        result = amortize(_loan())
        first = result.schedule[0]
        assert first.period == 1
        assert first.date == date(2024, 2, 1)
        assert first.interest == Decimal("50.00")
        assert first.principal == Decimal("150.00")
        assert first.balance == Decimal("9850.00")
        assert first.payment == Decimal("200.00")

    def test_balance_chain(self):
        """Test each balance is the previous balance minus principal, never increasing."""
        result = amortize(_loan())
        previous = Decimal("10000.00")
        for row in result.schedule:
            assert row.balance == previous - row.principal
            assert row.balance <= previous
            previous = row.balance

    def test_principal_sums_to_original(self):
        """Test total principal repaid matches the loan within a cent per period."""
        result = amortize(_loan())
        repaid = sum(row.principal for row in result.schedule)
        assert abs(repaid - Decimal("10000")) <= Decimal("0.01") * result.periods
        assert result.truncated is False
        assert result.payoff_date == result.schedule[-1].date

    def test_totals(self):
        """Test total paid equals principal plus interest."""
        result = amortize(_loan())
        repaid = sum(row.principal for row in result.schedule)
        assert result.total_paid == repaid + result.total_interest
        assert result.total_interest > 0

    def test_zero_rate(self):
        """Test a zero-rate loan is simple division."""
        result = amortize(_loan(principal="1000", rate="0", payment="300"))
        assert result.periods == 4
        assert result.total_interest == Decimal("0.00")
        assert result.schedule[-1].payment == Decimal("100.00")
        assert result.schedule[-1].balance == Decimal("0.00")

    def test_current_balance_preferred(self):
        """Test current_balance is amortized when present."""
        result = amortize(_loan(principal="10000", rate="0", payment="500", current_balance=Decimal("1000")))
        assert result.principal == Decimal("1000.00")
        assert result.periods == 2

    def test_weekly_dates(self):
        """Test weekly rows step seven days from the start date."""
        result = amortize(_loan(principal="100", rate="0", payment="40", frequency=Frequency.WEEKLY))
        assert [row.date for row in result.schedule] == [
            date(2024, 1, 8),
            date(2024, 1, 15),
            date(2024, 1, 22),
        ]

    def test_month_end_start_does_not_drift(self):
        """Test rows from a 31st start return to the 31st after short months."""
        result = amortize(_loan(principal="300", rate="0", payment="100", start_date=date(2024, 1, 31)))
        assert [row.date for row in result.schedule] == [
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
        ]

    def test_non_amortizing(self):
        """Test a payment that only covers interest yields an empty, flagged schedule."""
        result = amortize(_loan(principal="10000", rate="12", payment="100"))
        assert result.schedule == []
        assert result.non_amortizing is True
        assert has_flag(result.flags, FlagKind.NON_AMORTIZING)

    def test_zero_principal(self):
        """Test a paid-off loan yields an empty schedule without flags."""
        result = amortize(_loan(principal="0"))
        assert result.schedule == []
        assert result.flags == []
        assert result.non_amortizing is False

    def test_iteration_cap(self):
        """Test the safety cap returns a partial, flagged schedule."""
        result = amortize(_loan(), iteration_cap=5)
        assert result.periods == 5
        assert result.truncated is True
        assert has_flag(result.flags, FlagKind.ITERATION_CAP_REACHED)

    def test_periodic_rate(self):
        """Test annual percent to per-period fraction."""
        assert periodic_rate(Decimal("6"), Frequency.MONTHLY) == Decimal("0.005")
        assert periodic_rate(Decimal("52"), Frequency.WEEKLY) == Decimal("0.01")
