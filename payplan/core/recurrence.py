"""
Bill Recurrence Normalizer

Projects RecurringBill templates into concrete due dates and implements
the bill lifecycle transitions:

- monthly: every month on due_day (clamped to month end)
- quarterly / biannual / annual: only in months on the start_month cycle
- weekly / biweekly: every 7 / 14 days from the stored next_due_date

DESIGN DECISION: Transitions never mutate. Every toggle or history change
returns a new model built with model_copy(update=...).
"""

import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from payplan.core.dates import (
    DAY_STEPS,
    MONTH_STEPS,
    advance_period,
    clamp_day,
    months_between,
    shift_month,
)
from payplan.core.money import to_cents
from payplan.models.bill import BillInstance, HistoricalPayment, OneTimeBill, RecurringBill
from payplan.models.schedule import Frequency

logger = structlog.get_logger(__name__)


# =============================================================================
# PROJECTION
# =============================================================================

def is_due_in_month(bill: RecurringBill, year: int, month: int) -> bool:
    """
    Whether a bill has an occurrence in year/month.

    Month-cycle bills count months from start_month:
    (month - start_month) mod 12 must be a multiple of the cycle length.
    """
    freq = bill.frequency
    if freq in DAY_STEPS:
        return due_date_in_month(bill, year, month) is not None
    step = MONTH_STEPS[freq]
    return ((month - bill.cycle_start_month) % 12) % step == 0


def _first_aligned(anchor: date, step: int, reference: date) -> date:
    """First date >= reference on the anchor's step grid, in either direction."""
    return reference + timedelta(days=(anchor - reference).days % step)


def due_date_in_month(bill: RecurringBill, year: int, month: int) -> Optional[date]:
    """The bill's first due date in year/month, or None if it is not due."""
    freq = bill.frequency
    if freq in DAY_STEPS:
        if bill.next_due_date is None:
            return None
        candidate = _first_aligned(bill.next_due_date, DAY_STEPS[freq], date(year, month, 1))
        if candidate.month != month or candidate.year != year:
            return None
        return candidate
    if not is_due_in_month(bill, year, month):
        return None
    return clamp_day(year, month, bill.due_day)


def occurrences_between(bill: RecurringBill, start: date, end: date) -> list[date]:
    """Every due date with start <= due <= end, ascending."""
    if end < start:
        return []

    freq = bill.frequency
    if freq in DAY_STEPS:
        if bill.next_due_date is None:
            return []
        step = DAY_STEPS[freq]
        current = _first_aligned(bill.next_due_date, step, start)
        dates = []
        while current <= end:
            dates.append(current)
            current += timedelta(days=step)
        return dates

    dates = []
    for offset in range(months_between(start, end) + 1):
        year, month = shift_month(start.year, start.month, offset)
        due = due_date_in_month(bill, year, month)
        if due is not None and start <= due <= end:
            dates.append(due)
    return dates


def next_due_on_or_after(bill: RecurringBill, reference: date) -> Optional[date]:
    """First due date on or after reference, or None when the bill has no anchor."""
    freq = bill.frequency
    if freq in DAY_STEPS:
        if bill.next_due_date is None:
            return None
        return _first_aligned(bill.next_due_date, DAY_STEPS[freq], reference)

    # Every month-cycle bill is due at least once in 13 consecutive months.
    for offset in range(13):
        year, month = shift_month(reference.year, reference.month, offset)
        due = due_date_in_month(bill, year, month)
        if due is not None and due >= reference:
            return due
    return None


# =============================================================================
# LIFECYCLE TRANSITIONS
# =============================================================================

def toggle_recurring_paid(bill: RecurringBill, today: date) -> RecurringBill:
    """
    Mark the current period of a recurring bill paid.

    next_due_date advances by exactly one period and paid resets to False
    for the new period. A bill stored with paid=True is simply reopened.
    """
    if bill.paid:
        return bill.model_copy(update={"paid": False})

    base = bill.next_due_date or next_due_on_or_after(bill, today) or today
    anchor_day = None if bill.frequency in DAY_STEPS else bill.due_day
    next_due = advance_period(base, bill.frequency, 1, anchor_day=anchor_day)

    logger.debug("bill_period_advanced", bill_id=bill.id, paid_due=base.isoformat(), next_due=next_due.isoformat())
    return bill.model_copy(update={
        "next_due_date": next_due,
        "paid": False,
        "last_paid": today,
    })


def toggle_one_time_paid(bill: OneTimeBill, today: date) -> OneTimeBill:
    """Flip a one-time bill's paid flag. The due date never changes."""
    paid = not bill.paid
    return bill.model_copy(update={
        "paid": paid,
        "paid_date": today if paid else None,
    })


def estimate_from_history(payments: Iterable[HistoricalPayment]) -> Optional[Decimal]:
    """Mean of the positive recorded amounts rounded to cents; None when there are none."""
    amounts = [p.amount for p in payments if p.amount > 0]
    if not amounts:
        return None
    return to_cents(sum(amounts, Decimal("0")) / len(amounts))


def add_historical_payment(bill: RecurringBill, payment: HistoricalPayment, cap: int = 12) -> RecurringBill:
    """
    Record an actual payment and recompute the estimate.

    Only the most recent `cap` entries are kept. Recording history marks
    the bill variable.
    """
    history = [*bill.historical_payments, payment][-cap:]
    estimate = estimate_from_history(history)
    return bill.model_copy(update={
        "historical_payments": history,
        "amount_estimate": bill.amount_estimate if estimate is None else estimate,
        "variable": True,
    })


def remove_historical_payment(bill: RecurringBill, index: int) -> RecurringBill:
    """
    Drop one history entry by position.

    Removing the last remaining entry keeps the current estimate.

    Raises:
        IndexError: If index is outside the history
    """
    if not 0 <= index < len(bill.historical_payments):
        raise IndexError(f"Bill {bill.id} has no historical payment #{index}")

    history = [p for i, p in enumerate(bill.historical_payments) if i != index]
    estimate = estimate_from_history(history)
    return bill.model_copy(update={
        "historical_payments": history,
        "amount_estimate": bill.amount_estimate if estimate is None else estimate,
    })


# =============================================================================
# BILL INSTANCES
# =============================================================================

def instance_id(name: str, due: date) -> str:
    """Stable instance id: whitespace in the name becomes '_', then the due date."""
    slug = re.sub(r"\s+", "_", name)
    return f"{slug}_{due.isoformat()}"


def resolve_bill_instances(
    bills: Iterable[RecurringBill],
    one_time_bills: Iterable[OneTimeBill],
    start: date,
    end: date,
) -> list[BillInstance]:
    """
    Concrete occurrences of every bill in [start, end], ordered by due date.

    Recurring occurrences before the bill's next_due_date are reported as
    already paid.
    """
    instances = []

    for bill in bills:
        for due in occurrences_between(bill, start, end):
            paid = bill.next_due_date is not None and due < bill.next_due_date
            instances.append(BillInstance(
                id=instance_id(bill.name, due),
                source_id=bill.id,
                name=bill.name,
                amount_estimate=to_cents(bill.amount_estimate),
                due_date=due,
                category=bill.category,
                paid=paid,
                autopay=bill.autopay,
            ))

    for bill in one_time_bills:
        if start <= bill.due_date <= end:
            instances.append(BillInstance(
                id=instance_id(bill.name, bill.due_date),
                source_id=bill.id,
                name=bill.name,
                amount_estimate=to_cents(bill.amount),
                due_date=bill.due_date,
                category=bill.category,
                paid=bill.paid,
            ))

    instances.sort(key=lambda i: (i.due_date, i.name))
    return instances
