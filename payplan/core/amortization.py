"""
Amortization Simulator

Period-by-period level-payment schedule for an AssetLoan. Every step is
rounded to cents, so the rows always reconcile:
balance[n] = balance[n-1] - principal[n].
"""

from decimal import Decimal

import structlog

from payplan.core.dates import advance_period
from payplan.core.money import CENT, ZERO, to_cents
from payplan.models.debt import AmortizationResult, AmortizationRow, AssetLoan
from payplan.models.flags import FlagKind, PlannerFlag
from payplan.models.schedule import Frequency

logger = structlog.get_logger(__name__)

PERIODS_PER_YEAR = {
    Frequency.WEEKLY: 52,
    Frequency.BIWEEKLY: 26,
    Frequency.MONTHLY: 12,
    Frequency.QUARTERLY: 4,
    Frequency.ANNUAL: 1,
}

DEFAULT_ITERATION_CAP = 1000


def periodic_rate(annual_percent: Decimal, frequency: Frequency) -> Decimal:
    """Annual percentage rate converted to a per-period fraction."""
    return annual_percent / Decimal(100) / PERIODS_PER_YEAR.get(frequency, 12)


def amortize(asset: AssetLoan, *, iteration_cap: int = DEFAULT_ITERATION_CAP) -> AmortizationResult:
    """
    Simulate an asset loan's payment schedule.

    Row dates are start_date + period x frequency, each computed from the
    start date so month-end clamping never accumulates.

    Args:
        asset: The loan to simulate
        iteration_cap: Maximum number of periods

    Returns:
        AmortizationResult. The schedule is empty for a zero principal or a
        payment that never reduces principal (non_amortizing); truncated
        is set when the cap cuts the schedule short.
    """
    principal = to_cents(asset.principal)
    rate = periodic_rate(asset.interest_rate, asset.payment_frequency)
    payment = to_cents(asset.payment_amount)

    if principal <= 0:
        return AmortizationResult(asset_id=asset.id, principal=principal, periodic_rate=rate)

    if payment <= to_cents(principal * rate):
        logger.warning(
            "non_amortizing_loan",
            asset_id=asset.id,
            payment=str(payment),
            first_interest=str(to_cents(principal * rate)),
        )
        return AmortizationResult(
            asset_id=asset.id,
            principal=principal,
            periodic_rate=rate,
            non_amortizing=True,
            flags=[PlannerFlag(
                kind=FlagKind.NON_AMORTIZING,
                field="paymentAmount",
                record=asset.name,
                message=f"Payment {payment} does not cover the first period's interest",
            )],
        )

    rows = []
    balance = principal
    total_interest = ZERO
    period = 0
    while balance > CENT and period < iteration_cap:
        period += 1
        interest = to_cents(balance * rate)
        principal_paid = to_cents(min(payment - interest, balance))
        balance = to_cents(balance - principal_paid)
        total_interest += interest
        rows.append(AmortizationRow(
            period=period,
            date=advance_period(asset.start_date, asset.payment_frequency, period),
            payment=interest + principal_paid,
            principal=principal_paid,
            interest=interest,
            balance=max(balance, ZERO),
        ))

    truncated = balance > CENT
    flags = []
    if truncated:
        logger.warning("amortization_truncated", asset_id=asset.id, periods=period, balance=str(balance))
        flags.append(PlannerFlag(
            kind=FlagKind.ITERATION_CAP_REACHED,
            record=asset.name,
            message=f"Schedule stopped after {period} periods with {balance} outstanding",
        ))

    return AmortizationResult(
        asset_id=asset.id,
        principal=principal,
        periodic_rate=rate,
        schedule=rows,
        total_interest=to_cents(total_interest),
        total_paid=to_cents(sum((r.payment for r in rows), ZERO)),
        periods=len(rows),
        payoff_date=rows[-1].date if rows else None,
        non_amortizing=False,
        truncated=truncated,
        flags=flags,
    )
