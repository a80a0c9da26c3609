"""
Record Normalizer

The persistence boundary. Stored payloads are loose dicts written by many
versions of the app; this turns them into trusted, typed models.

DESIGN DECISION: Normalization is defensive, never strict:
- Unparseable amounts become 0 and raise an INVALID_AMOUNT flag
- Unknown frequencies become monthly and raise an UNSUPPORTED_FREQUENCY flag
- Records missing a date they cannot exist without are skipped and logged
- Legacy flat budget caps are upgraded to the version 2 config

Both camelCase and snake_case keys are accepted, plus the legacy key names
older payloads used (amount, isVariable, dueDate as a day number, assetName,
postedAt, excludedTransactionIds, billTemplates, debtPayoff).

Flags are returned next to the result, never raised. The caller decides
how to present them.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, TypeVar

import structlog
from pydantic import ValidationError

from payplan.core.dates import coerce_frequency, parse_date
from payplan.core.money import ZERO, coerce_amount, parse_amount, to_cents
from payplan.core.recurrence import estimate_from_history
from payplan.models.bill import AssignmentPreference, HistoricalPayment, OneTimeBill, RecurringBill
from payplan.models.budget import (
    BUDGET_CATEGORIES,
    BudgetConfig,
    BudgetExclusions,
    SourceKind,
    TransactionLike,
    default_caps,
)
from payplan.models.debt import AssetLoan, Debt
from payplan.models.flags import PlannerFlag
from payplan.models.schedule import (
    BILL_FREQUENCIES,
    LOAN_FREQUENCIES,
    PAY_FREQUENCIES,
    Frequency,
    PaySchedule,
)
from payplan.models.state import PlannerState

logger = structlog.get_logger(__name__)

T = TypeVar("T")

UNNAMED = "Untitled"


def _pick(raw: dict, *keys: str, default: Any = None) -> Any:
    """First key present with a non-empty value."""
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y"}
    return bool(value)


def _as_int(value: Any, low: int, high: int) -> Optional[int]:
    """Integer within [low, high], or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    if low <= number <= high:
        return number
    return None


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


class RecordNormalizer:
    """
    Converts raw stored records into domain models.

    Every public method returns (result, flags). A result of None means the
    record could not be salvaged.
    """

    def __init__(self, history_cap: int = 12):
        """
        Initialize normalizer.

        Args:
            history_cap: Number of historical payments kept per bill
        """
        self._history_cap = history_cap

    # -------------------------------------------------------------------------
    # Field helpers
    # -------------------------------------------------------------------------

    def _amount(
        self,
        raw: dict,
        keys: tuple[str, ...],
        field: str,
        record: str,
        flags: list[PlannerFlag],
        *,
        allow_negative: bool = False,
    ) -> Decimal:
        value = _pick(raw, *keys)
        if value is None:
            return ZERO
        amount, valid = coerce_amount(value)
        if not valid or (amount < 0 and not allow_negative):
            flags.append(PlannerFlag.invalid_amount(field, value, record))
            return ZERO
        return amount

    def _optional_amount(
        self,
        raw: dict,
        keys: tuple[str, ...],
        field: str,
        record: str,
        flags: list[PlannerFlag],
    ) -> Optional[Decimal]:
        value = _pick(raw, *keys)
        if value is None:
            return None
        amount = parse_amount(value)
        if amount is None or amount < 0:
            flags.append(PlannerFlag.invalid_amount(field, value, record))
            return None
        return amount

    def _frequency(
        self,
        raw: dict,
        keys: tuple[str, ...],
        allowed: frozenset,
        field: str,
        record: str,
        flags: list[PlannerFlag],
        default: Frequency = Frequency.MONTHLY,
    ) -> Frequency:
        value = _pick(raw, *keys)
        if value is None:
            return default
        frequency, supported = coerce_frequency(value)
        if not supported or frequency not in allowed:
            flags.append(PlannerFlag.unsupported_frequency(field, value, record))
            return Frequency.MONTHLY
        return frequency

    @staticmethod
    def _preference(raw: dict) -> AssignmentPreference:
        value = _pick(raw, "assignmentPreference", "assignment_preference", default="auto")
        try:
            return AssignmentPreference(str(value).strip().lower())
        except ValueError:
            return AssignmentPreference.AUTO

    @staticmethod
    def _build(factory: Callable[..., T], record: str, **fields: Any) -> Optional[T]:
        """Construct a model; a record that still fails validation is skipped."""
        try:
            return factory(**fields)
        except ValidationError as e:
            logger.warning("record_skipped", record=record, errors=e.error_count(), detail=str(e))
            return None

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def pay_schedule(self, raw: Any) -> tuple[Optional[PaySchedule], list[PlannerFlag]]:
        """Normalize the pay schedule; None when nothing is configured."""
        flags: list[PlannerFlag] = []
        if not isinstance(raw, dict) or not raw:
            return None, flags

        record = "paySchedule"
        schedule = self._build(
            PaySchedule,
            record,
            frequency=self._frequency(
                raw, ("frequency",), PAY_FREQUENCIES, "frequency", record, flags,
                default=Frequency.BIWEEKLY,
            ),
            pay_amount=self._amount(raw, ("payAmount", "pay_amount"), "payAmount", record, flags),
            next_pay_date=parse_date(_pick(raw, "nextPayDate", "next_pay_date", "firstPayDate")),
            day_of_month=_as_int(_pick(raw, "dayOfMonth", "day_of_month"), 1, 31),
            first_pay_day=_as_int(_pick(raw, "firstPayDay", "first_pay_day"), 1, 31),
            second_pay_day=_as_int(_pick(raw, "secondPayDay", "second_pay_day"), 1, 31),
        )
        return schedule, flags

    def recurring_bill(self, raw: dict) -> tuple[Optional[RecurringBill], list[PlannerFlag]]:
        """Normalize a recurring bill template."""
        flags: list[PlannerFlag] = []
        name = str(_pick(raw, "name", default=UNNAMED))

        history = []
        for entry in _as_list(_pick(raw, "historicalPayments", "historical_payments")):
            if not isinstance(entry, dict):
                continue
            paid_on = parse_date(entry.get("date"))
            if paid_on is None:
                logger.debug("history_entry_skipped", record=name, value=repr(entry.get("date")))
                continue
            amount = self._optional_amount(entry, ("amount",), "historicalPayments.amount", name, flags)
            if amount is None:
                continue
            history.append(HistoricalPayment(date=paid_on, amount=amount))
        history = history[-self._history_cap:]

        estimate = self._amount(
            raw, ("amountEstimate", "amount_estimate", "amount"), "amountEstimate", name, flags
        )
        variable = _as_bool(_pick(raw, "variable", "isVariable", "is_variable", default=False))
        if variable:
            mean = estimate_from_history(history)
            if mean is not None:
                estimate = mean

        fields: dict[str, Any] = dict(
            name=name,
            amount_estimate=to_cents(estimate),
            due_day=_as_int(_pick(raw, "dueDay", "due_day", "dueDate"), 1, 31) or 1,
            frequency=self._frequency(raw, ("frequency",), BILL_FREQUENCIES, "frequency", name, flags),
            start_month=_as_int(_pick(raw, "startMonth", "start_month"), 1, 12),
            category=str(_pick(raw, "category", default="other")),
            autopay=_as_bool(raw.get("autopay", False)),
            assignment_preference=self._preference(raw),
            variable=variable,
            historical_payments=history,
            paid=_as_bool(raw.get("paid", False)),
            next_due_date=parse_date(_pick(raw, "nextDueDate", "next_due_date", "firstDueDate")),
            last_paid=parse_date(_pick(raw, "lastPaid", "last_paid")),
        )
        if _pick(raw, "id") is not None:
            fields["id"] = str(raw["id"])
        return self._build(RecurringBill, name, **fields), flags

    def one_time_bill(self, raw: dict) -> tuple[Optional[OneTimeBill], list[PlannerFlag]]:
        """Normalize a one-time bill. Records without a due date are skipped."""
        flags: list[PlannerFlag] = []
        name = str(_pick(raw, "name", default=UNNAMED))

        due = parse_date(_pick(raw, "dueDate", "due_date"))
        if due is None:
            logger.warning("record_skipped", record=name, reason="missing due date")
            return None, flags

        fields: dict[str, Any] = dict(
            name=name,
            amount=to_cents(self._amount(raw, ("amount",), "amount", name, flags)),
            due_date=due,
            category=str(_pick(raw, "category", default="other")),
            paid=_as_bool(raw.get("paid", False)),
            paid_date=parse_date(_pick(raw, "paidDate", "paid_date")),
        )
        if _pick(raw, "id") is not None:
            fields["id"] = str(raw["id"])
        return self._build(OneTimeBill, name, **fields), flags

    def asset_loan(self, raw: dict) -> tuple[Optional[AssetLoan], list[PlannerFlag]]:
        """Normalize an asset loan. Records without a start date are skipped."""
        flags: list[PlannerFlag] = []
        name = str(_pick(raw, "name", "assetName", "asset_name", default=UNNAMED))

        start = parse_date(_pick(raw, "startDate", "start_date"))
        if start is None:
            logger.warning("record_skipped", record=name, reason="missing start date")
            return None, flags

        fields: dict[str, Any] = dict(
            name=name,
            loan_amount=self._amount(raw, ("loanAmount", "loan_amount"), "loanAmount", name, flags),
            current_balance=self._optional_amount(
                raw, ("currentBalance", "current_balance"), "currentBalance", name, flags
            ),
            interest_rate=self._amount(raw, ("interestRate", "interest_rate"), "interestRate", name, flags),
            payment_amount=self._amount(raw, ("paymentAmount", "payment_amount"), "paymentAmount", name, flags),
            payment_frequency=self._frequency(
                raw, ("paymentFrequency", "payment_frequency"), LOAN_FREQUENCIES,
                "paymentFrequency", name, flags,
            ),
            start_date=start,
            category=str(_pick(raw, "category", default="loan")),
            autopay=_as_bool(raw.get("autopay", False)),
            assignment_preference=self._preference(raw),
        )
        if _pick(raw, "id") is not None:
            fields["id"] = str(raw["id"])
        return self._build(AssetLoan, name, **fields), flags

    def debt(self, raw: dict) -> tuple[Optional[Debt], list[PlannerFlag]]:
        """Normalize a tracked debt."""
        flags: list[PlannerFlag] = []
        name = str(_pick(raw, "name", default=UNNAMED))

        fields: dict[str, Any] = dict(
            name=name,
            balance=self._amount(raw, ("balance",), "balance", name, flags),
            rate=self._amount(raw, ("rate",), "rate", name, flags),
            payment=self._amount(raw, ("payment",), "payment", name, flags),
            loan_amount=self._optional_amount(raw, ("loanAmount", "loan_amount"), "loanAmount", name, flags),
            loan_term=_as_int(_pick(raw, "loanTerm", "loan_term"), 0, 1200),
            start_date=parse_date(_pick(raw, "startDate", "start_date")),
        )
        if _pick(raw, "id") is not None:
            fields["id"] = str(raw["id"])
        return self._build(Debt, name, **fields), flags

    def budget_config(self, raw: Any) -> tuple[BudgetConfig, list[PlannerFlag]]:
        """
        Normalize budget caps, upgrading legacy configs.

        A legacy config is a flat {category: cap} dict; it becomes the
        default caps of a version 2 config.
        """
        flags: list[PlannerFlag] = []
        if not isinstance(raw, dict) or not raw:
            return BudgetConfig(), flags

        def caps_from(source: Any, record: str) -> dict[str, Decimal]:
            caps = {}
            if not isinstance(source, dict):
                return caps
            for category, value in source.items():
                if category not in BUDGET_CATEGORIES:
                    continue
                amount, valid = coerce_amount(value)
                if not valid:
                    flags.append(PlannerFlag.invalid_amount(category, value, record))
                caps[category] = to_cents(amount)
            return caps

        version = _as_int(raw.get("version"), 1, 99)
        structured = any(key in raw for key in ("defaultCaps", "default_caps", "monthlyCaps", "monthly_caps"))
        if version != 2 and not structured:
            logger.info("budget_config_upgraded", from_version=version or 1)
            return BudgetConfig(default_caps={**default_caps(), **caps_from(raw, "budgets")}), flags

        monthly = {}
        monthly_raw = _pick(raw, "monthlyCaps", "monthly_caps", default={})
        if isinstance(monthly_raw, dict):
            for key, caps in monthly_raw.items():
                monthly[str(key)] = caps_from(caps, f"budgets.{key}")

        exclusions_raw = _pick(raw, "exclusions", default={})
        if not isinstance(exclusions_raw, dict):
            exclusions_raw = {}
        excluded_ids = _pick(exclusions_raw, "excludedIds", "excluded_ids", "excludedTransactionIds")
        exclusions = BudgetExclusions(
            exclude_transfers=_as_bool(_pick(exclusions_raw, "excludeTransfers", "exclude_transfers", default=True)),
            exclude_refunds=_as_bool(_pick(exclusions_raw, "excludeRefunds", "exclude_refunds", default=True)),
            excluded_ids=[str(i) for i in _as_list(excluded_ids)],
        )

        defaults = {**default_caps(), **caps_from(_pick(raw, "defaultCaps", "default_caps"), "budgets")}
        return BudgetConfig(default_caps=defaults, monthly_caps=monthly, exclusions=exclusions), flags

    def transaction(
        self,
        raw: dict,
        default_kind: SourceKind = SourceKind.SYNCED,
    ) -> tuple[Optional[TransactionLike], list[PlannerFlag]]:
        """Normalize a receipt or synced transaction. Undated records are skipped."""
        flags: list[PlannerFlag] = []
        name = str(_pick(raw, "name", default=""))
        record = str(_pick(raw, "id", default=name or "transaction"))

        posted = parse_date(_pick(raw, "date", "postedAt", "postedDate", "posted_at"))
        if posted is None:
            logger.debug("record_skipped", record=record, reason="missing date")
            return None, flags

        try:
            kind = SourceKind(str(_pick(raw, "sourceKind", "source_kind", default=default_kind.value)))
        except ValueError:
            kind = default_kind

        identifier = _pick(raw, "id")
        return self._build(
            TransactionLike,
            record,
            id=str(identifier) if identifier is not None else None,
            date=posted,
            category=str(_pick(raw, "category", default="other")),
            amount=self._amount(raw, ("amount",), "amount", record, flags, allow_negative=True),
            source_kind=kind,
            name=name,
            type=str(_pick(raw, "type", default="")),
            merchant=str(_pick(raw, "merchant", default="")),
        ), flags

    # -------------------------------------------------------------------------
    # Whole payload
    # -------------------------------------------------------------------------

    def _collect(
        self,
        items: Iterable[Any],
        normalize: Callable[[dict], tuple[Optional[T], list[PlannerFlag]]],
        flags: list[PlannerFlag],
    ) -> list[T]:
        results = []
        for item in items:
            if not isinstance(item, dict):
                logger.debug("record_skipped", reason="not a mapping", value=repr(item)[:80])
                continue
            result, item_flags = normalize(item)
            flags.extend(item_flags)
            if result is not None:
                results.append(result)
        return results

    def state(self, payload: Any) -> tuple[PlannerState, list[PlannerFlag]]:
        """
        Normalize a complete stored payload into a PlannerState.

        Returns:
            (state, flags). An empty or malformed payload yields an empty state.
        """
        flags: list[PlannerFlag] = []
        if not isinstance(payload, dict):
            return PlannerState(), flags

        schedule, schedule_flags = self.pay_schedule(_pick(payload, "paySchedule", "pay_schedule"))
        flags.extend(schedule_flags)

        recurring = self._collect(
            _as_list(_pick(payload, "recurringBills", "recurring_bills", "billTemplates")),
            self.recurring_bill,
            flags,
        )
        one_time = self._collect(
            _as_list(_pick(payload, "oneTimeBills", "one_time_bills")), self.one_time_bill, flags
        )
        assets = self._collect(_as_list(payload.get("assets")), self.asset_loan, flags)
        debts = self._collect(_as_list(_pick(payload, "debts", "debtPayoff")), self.debt, flags)

        budgets, budget_flags = self.budget_config(payload.get("budgets"))
        flags.extend(budget_flags)

        transactions = self._collect(_as_list(payload.get("transactions")), self.transaction, flags)
        transactions += self._collect(
            _as_list(payload.get("receipts")),
            lambda raw: self.transaction(raw, SourceKind.RECEIPT),
            flags,
        )
        transactions += self._collect(
            _as_list(_pick(payload, "syncedTransactions", "synced_transactions")), self.transaction, flags
        )

        for flag in flags:
            logger.warning("data_quality_flag", kind=flag.kind.value, field=flag.field, record=flag.record)

        state = PlannerState(
            pay_schedule=schedule,
            recurring_bills=recurring,
            one_time_bills=one_time,
            assets=assets,
            debts=debts,
            budgets=budgets,
            transactions=transactions,
        )
        return state, flags
