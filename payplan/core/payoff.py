"""
Debt Payoff Calculator

Closed-form months-to-payoff for a fixed monthly payment, cross-checked by
a capped period-by-period simulation that also accumulates total interest.

    r = rate / 100 / 12
    r == 0: months = ceil(balance / payment)
    r > 0:  months = ceil(-ln(1 - r * balance / payment) / ln(1 + r))

A payment that never covers the first month's interest has no finite
payoff. That case is a PAYMENT_TOO_LOW result, never a month count.
"""

import math
from datetime import date
from decimal import ROUND_CEILING, Decimal
from typing import Iterable, Optional

import structlog

from payplan.core.dates import add_months
from payplan.core.money import CENT, ZERO, to_cents
from payplan.models.debt import Debt, DebtProgress, DebtSummary, PayoffResult, PayoffStatus
from payplan.models.flags import FlagKind, PlannerFlag

logger = structlog.get_logger(__name__)

DEFAULT_ITERATION_CAP = 1200


def monthly_rate(annual_percent: Decimal) -> Decimal:
    return annual_percent / Decimal(100) / 12


def closed_form_months(balance: Decimal, payment: Decimal, rate: Decimal) -> int:
    """Months to payoff; assumes payment > balance x rate."""
    if rate == 0:
        return int((balance / payment).to_integral_value(rounding=ROUND_CEILING))
    ratio = float(rate * balance / payment)
    return math.ceil(-math.log(1 - ratio) / math.log(1 + float(rate)))


def simulate_payoff(
    balance: Decimal,
    payment: Decimal,
    rate: Decimal,
    iteration_cap: int = DEFAULT_ITERATION_CAP,
) -> tuple[int, Decimal, Decimal]:
    """
    Month-by-month payoff with cent rounding.

    Returns (months, total_interest, remaining_balance). A remaining balance
    above one cent means the cap was hit.
    """
    remaining = to_cents(balance)
    total_interest = ZERO
    months = 0
    while remaining > CENT and months < iteration_cap:
        months += 1
        interest = to_cents(remaining * rate)
        principal = to_cents(min(payment - interest, remaining))
        total_interest += interest
        remaining = to_cents(remaining - principal)
    return months, total_interest, remaining


def calculate_payoff(
    debt: Debt,
    today: date,
    *,
    iteration_cap: int = DEFAULT_ITERATION_CAP,
) -> PayoffResult:
    """
    Project when a debt is paid off.

    Args:
        debt: The debt to project
        today: Injected reference date; payoff_date = today + months
        iteration_cap: Maximum months simulated

    Returns:
        PayoffResult with status PAID_OFF, FINITE or PAYMENT_TOO_LOW.
    """
    balance = to_cents(debt.balance)
    payment = to_cents(debt.payment)
    rate = monthly_rate(debt.rate)

    if balance <= 0:
        return PayoffResult(
            debt_id=debt.id,
            status=PayoffStatus.PAID_OFF,
            months=0,
            simulated_months=0,
            total_interest=ZERO,
            total_paid=ZERO,
        )

    if payment <= 0 or (rate > 0 and payment <= balance * rate):
        logger.warning("infinite_payoff", debt_id=debt.id, balance=str(balance), payment=str(payment))
        return PayoffResult(
            debt_id=debt.id,
            status=PayoffStatus.PAYMENT_TOO_LOW,
            flags=[PlannerFlag(
                kind=FlagKind.INFINITE_PAYOFF,
                field="payment",
                record=debt.name,
                message=f"Payment {payment} never covers the monthly interest on {balance}",
            )],
        )

    months = closed_form_months(balance, payment, rate)
    simulated, total_interest, remaining = simulate_payoff(balance, payment, rate, iteration_cap)
    truncated = remaining > CENT
    consistent = not truncated and abs(simulated - months) <= 1

    flags = []
    if truncated:
        flags.append(PlannerFlag(
            kind=FlagKind.ITERATION_CAP_REACHED,
            record=debt.name,
            message=f"Payoff simulation stopped after {simulated} months with {remaining} outstanding",
        ))
    if not consistent:
        logger.warning(
            "payoff_simulation_mismatch",
            debt_id=debt.id,
            closed_form=months,
            simulated=simulated,
            truncated=truncated,
        )

    total_interest = to_cents(total_interest)
    return PayoffResult(
        debt_id=debt.id,
        status=PayoffStatus.FINITE,
        months=months,
        simulated_months=simulated,
        consistent=consistent,
        total_interest=total_interest,
        total_paid=to_cents(balance + total_interest),
        payoff_date=add_months(today, months),
        truncated=truncated,
        flags=flags,
    )


def debt_progress(debt: Debt) -> DebtProgress:
    """Share of the original loan repaid (0-100) and the scheduled term end."""
    paid_percent = ZERO
    if debt.loan_amount:
        paid = (debt.loan_amount - debt.balance) / debt.loan_amount * 100
        paid_percent = to_cents(max(ZERO, min(Decimal(100), paid)))

    term_end: Optional[date] = None
    if debt.start_date is not None and debt.loan_term:
        term_end = add_months(debt.start_date, debt.loan_term)

    return DebtProgress(debt_id=debt.id, paid_percent=paid_percent, term_end_date=term_end)


def summarize_debts(
    debts: Iterable[Debt],
    today: date,
    *,
    iteration_cap: int = DEFAULT_ITERATION_CAP,
) -> DebtSummary:
    """
    Portfolio totals across debts.

    Interest and the latest payoff date only count debts with a finite
    payoff; the rest are counted as unpayable.
    """
    count = 0
    total_balance = ZERO
    total_payment = ZERO
    total_interest = ZERO
    latest: Optional[date] = None
    unpayable = 0

    for debt in debts:
        count += 1
        total_balance += debt.balance
        total_payment += debt.payment
        result = calculate_payoff(debt, today, iteration_cap=iteration_cap)
        if result.is_infinite:
            unpayable += 1
            continue
        total_interest += result.total_interest or ZERO
        if result.payoff_date and (latest is None or result.payoff_date > latest):
            latest = result.payoff_date

    return DebtSummary(
        count=count,
        total_balance=to_cents(total_balance),
        total_payment=to_cents(total_payment),
        total_interest=to_cents(total_interest),
        latest_payoff_date=latest,
        unpayable_count=unpayable,
    )
