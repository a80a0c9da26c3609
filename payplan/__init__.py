"""
PayPlan - Financial Scheduling & Projection Engine

The calculation core of a personal bill/paycheck planner:
pay dates, bill recurrence, paycheck assignment, loan amortization,
debt payoff and category budgets.

DESIGN PRINCIPLES:
1. Pure functions over immutable snapshots
2. "Today" is always injected, never read from the wall clock in the core
3. Malformed input becomes a flag, never an exception
4. Every state transition is auditable
5. Storage, calendar export and UI are swappable collaborators
"""

__version__ = "1.0.0"
__author__ = "PayPlan Team"
