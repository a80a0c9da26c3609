"""Monthly overview: pay vs bills for the reference month."""

from datetime import date
from typing import Iterable, Optional

from payplan.core.dates import DEFAULT_ANCHORS, end_of_month, month_key, start_of_month
from payplan.core.money import ZERO, to_cents
from payplan.core.paychecks import generate_paychecks, paychecks_between
from payplan.core.recurrence import resolve_bill_instances
from payplan.models.bill import MonthlyOverview, OneTimeBill, RecurringBill
from payplan.models.schedule import PaySchedule


def monthly_overview(
    schedule: Optional[PaySchedule],
    recurring_bills: Iterable[RecurringBill],
    one_time_bills: Iterable[OneTimeBill],
    today: date,
    default_anchors: tuple[int, int] = DEFAULT_ANCHORS,
) -> MonthlyOverview:
    """
    Summarize today's month.

    monthly_bills counts every recurring occurrence due this month, paid or
    not; upcoming_one_time counts all unpaid one-time bills regardless of date.
    """
    first_day, last_day = start_of_month(today), end_of_month(today)

    instances = resolve_bill_instances(recurring_bills, (), first_day, last_day)
    monthly_bills = to_cents(sum((i.amount_estimate for i in instances), ZERO))
    upcoming = to_cents(sum((b.amount for b in one_time_bills if not b.paid), ZERO))

    this_month = paychecks_between(schedule, first_day, last_day, default_anchors)
    income = to_cents(sum((p.amount for p in this_month), ZERO))

    upcoming_pay = generate_paychecks(schedule, 1, today, default_anchors)
    next_pay = upcoming_pay[0].date if upcoming_pay else None

    return MonthlyOverview(
        month_key=month_key(today),
        monthly_bills=monthly_bills,
        upcoming_one_time=upcoming,
        monthly_income=income,
        paychecks_this_month=len(this_month),
        leftover=income - monthly_bills,
        next_paycheck_date=next_pay,
        days_until_next_paycheck=(next_pay - today).days if next_pay else None,
    )
