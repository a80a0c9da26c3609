"""
Budget Actuals Aggregator

Plan vs actual per budget category for one month.

Caps: default_caps overridden by the month's monthly_caps entry.
Spend: every TransactionLike dated in the month. Bills and receipts always
count in their category. Synced bank transactions pass the exclusions first:
1. ids listed in exclusions.excluded_ids are skipped
2. transfer-like records are skipped when exclude_transfers is set
3. refund-like records are skipped when exclude_refunds is set; their
   absolute value counts as month income instead
A remaining negative synced amount is income too; positive amounts are spend.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping

import structlog

from payplan.core.dates import month_key as month_key_for, same_month
from payplan.core.money import ZERO, coerce_amount, percent_of, to_cents
from payplan.models.bill import BillInstance
from payplan.models.budget import (
    BUDGET_CATEGORIES,
    BudgetActuals,
    BudgetCategory,
    BudgetConfig,
    BudgetTotals,
    CategoryActual,
    SourceKind,
    TransactionLike,
)

logger = structlog.get_logger(__name__)

TRANSFER_KEYWORD = "transfer"
REFUND_KEYWORD = "refund"


# =============================================================================
# CAPS
# =============================================================================

def resolve_caps(config: BudgetConfig, month_key: str) -> dict[str, Decimal]:
    """Caps in force for a month: defaults overridden by that month's entry."""
    caps = {category: config.default_caps.get(category, ZERO) for category in BUDGET_CATEGORIES}
    caps.update(config.monthly_caps.get(month_key, {}))
    return caps


def upsert_month_caps(config: BudgetConfig, month_key: str, patch: Mapping[str, object]) -> BudgetConfig:
    """
    Store a month's caps as a full snapshot merged with the patch.

    The snapshot keeps the month stable when default caps change later.
    Unknown categories in the patch are ignored; unparseable amounts become 0.
    """
    caps = resolve_caps(config, month_key)
    for category, value in patch.items():
        if category not in BUDGET_CATEGORIES:
            logger.debug("unknown_budget_category", category=category, month=month_key)
            continue
        amount, valid = coerce_amount(value)
        if not valid:
            logger.warning("invalid_cap_amount", category=category, value=repr(value), month=month_key)
        caps[category] = to_cents(amount)

    monthly = {**config.monthly_caps, month_key: caps}
    return config.model_copy(update={"monthly_caps": monthly})


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify_category(category: object) -> str:
    """Known categories pass through (case-insensitively); everything else is 'other'."""
    if isinstance(category, str) and category.strip().lower() in BUDGET_CATEGORIES:
        return category.strip().lower()
    return BudgetCategory.OTHER.value


def _haystack(transaction: TransactionLike) -> str:
    parts = (transaction.type, transaction.category, transaction.merchant, transaction.name)
    return " ".join(parts).lower()


def is_transfer(transaction: TransactionLike) -> bool:
    return TRANSFER_KEYWORD in _haystack(transaction)


def is_refund(transaction: TransactionLike) -> bool:
    return transaction.amount < 0 or REFUND_KEYWORD in _haystack(transaction)


def transactions_from_instances(instances: Iterable[BillInstance]) -> list[TransactionLike]:
    """Bill occurrences as budget spend records."""
    return [
        TransactionLike(
            id=instance.id,
            date=instance.due_date,
            category=instance.category,
            amount=instance.amount_estimate,
            source_kind=SourceKind.BILL,
            name=instance.name,
        )
        for instance in instances
    ]


# =============================================================================
# AGGREGATION
# =============================================================================

def calculate_budget_actuals(
    config: BudgetConfig,
    month: date,
    transactions: Iterable[TransactionLike],
) -> BudgetActuals:
    """
    Aggregate one month's spend against its caps.

    Args:
        config: Budget configuration
        month: Any date in the month to report
        transactions: Bills, receipts and synced transactions

    Returns:
        BudgetActuals with one row per category, in category order.
    """
    key = month_key_for(month)
    caps = resolve_caps(config, key)
    exclusions = config.exclusions
    excluded_ids = set(exclusions.excluded_ids)

    spent = {category: ZERO for category in BUDGET_CATEGORIES}
    income = ZERO
    skipped = 0

    for transaction in transactions:
        if not same_month(transaction.date, month):
            continue
        if transaction.source_kind != SourceKind.SYNCED:
            spent[classify_category(transaction.category)] += transaction.amount
            continue
        if transaction.id is not None and transaction.id in excluded_ids:
            skipped += 1
            continue
        if exclusions.exclude_transfers and is_transfer(transaction):
            skipped += 1
            continue
        if exclusions.exclude_refunds and is_refund(transaction):
            income += abs(transaction.amount)
            skipped += 1
            continue

        if transaction.amount < 0:
            income += abs(transaction.amount)
        else:
            spent[classify_category(transaction.category)] += transaction.amount

    rows = []
    for category in BUDGET_CATEGORIES:
        assigned = to_cents(caps[category])
        category_spent = to_cents(spent[category])
        if assigned > 0:
            percent = percent_of(category_spent, assigned)
        else:
            percent = Decimal("100.00") if category_spent > 0 else ZERO
        rows.append(CategoryActual(
            category=category,
            assigned=assigned,
            spent=category_spent,
            remaining=assigned - category_spent,
            percent=percent,
        ))

    total_assigned = sum((r.assigned for r in rows), ZERO)
    total_spent = sum((r.spent for r in rows), ZERO)
    logger.debug("budget_aggregated", month=key, excluded=skipped, spent=str(total_spent))

    return BudgetActuals(
        month_key=key,
        per_category=rows,
        totals=BudgetTotals(
            assigned=total_assigned,
            spent=total_spent,
            remaining=total_assigned - total_spent,
            total_income=to_cents(income),
            spent_percent=percent_of(total_spent, total_assigned),
        ),
    )
