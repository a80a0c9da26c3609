"""
Scheduling & Projection Engine

Pure functions over immutable models. Every function takes its reference
date and tunables as arguments; nothing here reads the clock, settings or
storage.
"""

from payplan.core.amortization import amortize
from payplan.core.assignment import assign_bills
from payplan.core.budget import calculate_budget_actuals, resolve_caps, upsert_month_caps
from payplan.core.dates import advance_period, next_on_or_after
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

__all__ = [
    "add_historical_payment",
    "advance_period",
    "amortize",
    "assign_bills",
    "calculate_budget_actuals",
    "calculate_payoff",
    "debt_progress",
    "generate_paychecks",
    "monthly_overview",
    "next_on_or_after",
    "remove_historical_payment",
    "resolve_bill_instances",
    "resolve_caps",
    "summarize_debts",
    "toggle_one_time_paid",
    "toggle_recurring_paid",
    "upsert_month_caps",
]
