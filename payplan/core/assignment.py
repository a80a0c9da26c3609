"""
Paycheck Assignment Engine

Splits the active bill set (recurring bills, asset loan payments and
unpaid one-time bills) across the next two paychecks, then runs a single
balancing pass so the two leftovers end up roughly even.

Rules:
1. Each bill's due date is projected into paycheck 1's month; a due day
   that falls before paycheck 1 rolls into the following month.
2. A check1/check2 preference is unconditional. An auto bill goes to
   check 1 when paycheck1 < due <= paycheck2, otherwise to check 2.
3. If |leftover1 - leftover2| exceeds the threshold, at most one movable
   bill moves off the check with the smaller leftover.

Bills with no amount still take a slot and are flagged on the result.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

import structlog

from payplan.core.dates import DAY_STEPS, clamp_day, shift_month
from payplan.core.money import ZERO, to_cents
from payplan.core.recurrence import is_due_in_month, next_due_on_or_after
from payplan.models.bill import (
    AssignedBill,
    AssignmentPreference,
    BillSource,
    OneTimeBill,
    PaycheckAssignment,
    RecurringBill,
)
from payplan.models.debt import AssetLoan
from payplan.models.flags import FlagKind, PlannerFlag
from payplan.models.schedule import PaycheckEvent

logger = structlog.get_logger(__name__)

DEFAULT_BALANCE_THRESHOLD = Decimal("200")


# =============================================================================
# DUE DATE PROJECTION
# =============================================================================

def project_due_day(due_day: int, first_pay: date) -> date:
    """due_day in paycheck 1's month, rolled forward a month if it falls before paycheck 1."""
    due = clamp_day(first_pay.year, first_pay.month, due_day)
    if due < first_pay:
        year, month = shift_month(first_pay.year, first_pay.month, 1)
        due = clamp_day(year, month, due_day)
    return due


def project_recurring_due(bill: RecurringBill, first_pay: date) -> Optional[date]:
    """
    Effective due date of a recurring bill for the current window.

    Returns None when the bill is not active in the window.
    """
    if bill.frequency in DAY_STEPS:
        return next_due_on_or_after(bill, first_pay)

    due = project_due_day(bill.due_day, first_pay)
    if not is_due_in_month(bill, due.year, due.month):
        return None

    # Already paid through a later period.
    if bill.next_due_date is not None and bill.next_due_date > due:
        return bill.next_due_date
    return due


def collect_active_bills(
    first_pay: date,
    recurring_bills: Iterable[RecurringBill],
    assets: Iterable[AssetLoan] = (),
    one_time_bills: Iterable[OneTimeBill] = (),
) -> list[AssignedBill]:
    """Every bill active in the window with its effective due date, stable-sorted by due date."""
    active = []

    for bill in recurring_bills:
        due = project_recurring_due(bill, first_pay)
        if due is None:
            continue
        active.append(AssignedBill(
            source_id=bill.id,
            source=BillSource.RECURRING,
            name=bill.name,
            amount=to_cents(bill.amount_estimate),
            due_date=due,
            category=bill.category,
            autopay=bill.autopay,
            preference=bill.assignment_preference,
        ))

    for asset in assets:
        if asset.principal <= 0:
            continue
        active.append(AssignedBill(
            source_id=asset.id,
            source=BillSource.ASSET,
            name=f"{asset.name} Payment",
            amount=to_cents(asset.payment_amount),
            due_date=project_due_day(asset.start_date.day, first_pay),
            category=asset.category,
            autopay=asset.autopay,
            preference=asset.assignment_preference,
        ))

    for bill in one_time_bills:
        if bill.paid:
            continue
        active.append(AssignedBill(
            source_id=bill.id,
            source=BillSource.ONE_TIME,
            name=bill.name,
            amount=to_cents(bill.amount),
            due_date=bill.due_date,
            category=bill.category,
        ))

    active.sort(key=lambda b: b.due_date)
    return active


# =============================================================================
# ASSIGNMENT
# =============================================================================

def _choose_check(bill: AssignedBill, first_pay: date, second_pay: date) -> int:
    if bill.preference == AssignmentPreference.CHECK1:
        return 1
    if bill.preference == AssignmentPreference.CHECK2:
        return 2
    if first_pay < bill.due_date <= second_pay:
        return 1
    return 2


def _total(bills: Sequence[AssignedBill]) -> Decimal:
    return to_cents(sum((b.amount for b in bills), ZERO))


def _is_movable(bill: AssignedBill, first_pay: date) -> bool:
    return (
        not bill.autopay
        and bill.preference == AssignmentPreference.AUTO
        and bill.due_date.day > first_pay.day
    )


def _balance(
    check1: list[AssignedBill],
    check2: list[AssignedBill],
    pay1: Decimal,
    pay2: Decimal,
    first_pay: date,
    threshold: Decimal,
) -> tuple[list[AssignedBill], list[AssignedBill], Optional[AssignedBill]]:
    """Single-move balancing pass. Returns the new checks and the moved bill, if any."""
    leftover1 = pay1 - _total(check1)
    leftover2 = pay2 - _total(check2)
    difference = abs(leftover1 - leftover2)
    if difference <= threshold:
        return check1, check2, None

    # Move off the heavier check (smaller leftover).
    from_first = leftover1 < leftover2
    source = check1 if from_first else check2

    best: Optional[AssignedBill] = None
    best_difference = difference
    for bill in source:
        if not _is_movable(bill, first_pay):
            continue
        if from_first:
            new_difference = abs((leftover1 + bill.amount) - (leftover2 - bill.amount))
        else:
            new_difference = abs((leftover1 - bill.amount) - (leftover2 + bill.amount))
        if new_difference < best_difference and new_difference <= threshold:
            best, best_difference = bill, new_difference

    if best is None:
        return check1, check2, None

    moved = best.model_copy(update={"moved": True})
    remaining = [b for b in source if b is not best]
    if from_first:
        check1, check2 = remaining, sorted([*check2, moved], key=lambda b: b.due_date)
    else:
        check1, check2 = sorted([*check1, moved], key=lambda b: b.due_date), remaining

    logger.debug(
        "balancing_move",
        bill_id=best.source_id,
        before=str(difference),
        after=str(best_difference),
    )
    return check1, check2, moved


def _unpriced_flags(bills: Iterable[AssignedBill]) -> list[PlannerFlag]:
    return [
        PlannerFlag(
            kind=FlagKind.INVALID_AMOUNT,
            field="amount",
            record=bill.name,
            severity="info",
            message="No amount set; counted as 0",
        )
        for bill in bills
        if bill.amount == 0
    ]


def assign_bills(
    paychecks: Sequence[PaycheckEvent],
    recurring_bills: Iterable[RecurringBill],
    assets: Iterable[AssetLoan] = (),
    one_time_bills: Iterable[OneTimeBill] = (),
    *,
    threshold: Decimal = DEFAULT_BALANCE_THRESHOLD,
) -> PaycheckAssignment:
    """
    Assign every active bill to one of the next two paychecks.

    Args:
        paychecks: Upcoming paychecks; only the first two are used
        recurring_bills: Recurring bill templates
        assets: Asset loans, each contributing one payment
        one_time_bills: One-time bills; paid ones are skipped
        threshold: Leftover difference above which balancing runs

    Returns:
        PaycheckAssignment. Empty when fewer than two paychecks exist.
    """
    if len(paychecks) < 2:
        return PaycheckAssignment()

    first, second = paychecks[0], paychecks[1]
    active = collect_active_bills(first.date, recurring_bills, assets, one_time_bills)

    check1: list[AssignedBill] = []
    check2: list[AssignedBill] = []
    for bill in active:
        if _choose_check(bill, first.date, second.date) == 1:
            check1.append(bill)
        else:
            check2.append(bill)

    check1, check2, moved = _balance(check1, check2, first.amount, second.amount, first.date, threshold)

    total1 = _total(check1)
    total2 = _total(check2)
    return PaycheckAssignment(
        check1=check1,
        check2=check2,
        pay_dates=[first.date, second.date],
        pay_amounts=[first.amount, second.amount],
        check1_total=total1,
        check2_total=total2,
        leftover1=to_cents(first.amount - total1),
        leftover2=to_cents(second.amount - total2),
        moved_bill_id=moved.source_id if moved else None,
        flags=_unpriced_flags(active),
    )
