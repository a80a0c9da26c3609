"""
Audit Models for PayPlan

Every state transition and every derived plan the planner hands out is
recorded as an AuditEvent. This provides:
1. Traceability of what the user changed and when
2. Debugging information when a plan looks wrong
3. A record of every data-quality flag raised at the persistence boundary

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from payplan.models.flags import PlannerFlag


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Persistence boundary
    STATE_LOADED = "state_loaded"
    STATE_SAVED = "state_saved"
    DATA_QUALITY_FLAGGED = "data_quality_flagged"

    # Bill lifecycle
    BILL_MARKED_PAID = "bill_marked_paid"
    ONE_TIME_PAID_TOGGLED = "one_time_paid_toggled"
    HISTORICAL_PAYMENT_ADDED = "historical_payment_added"
    HISTORICAL_PAYMENT_REMOVED = "historical_payment_removed"

    # Budgets
    BUDGET_CAPS_UPSERTED = "budget_caps_upserted"

    # Derived plans
    PAYCHECKS_ASSIGNED = "paychecks_assigned"
    BALANCING_MOVE_APPLIED = "balancing_move_applied"
    CALENDAR_EXPORTED = "calendar_exported"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'recurring_bill', 'budget', 'state')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_row(self) -> list:
        """
        Flatten to a row for tabular audit storage.

        Columns: [event_id, timestamp, event_type, severity, entity_type,
        entity_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.bill_marked_paid(bill_id, name, next_due)
    """

    @staticmethod
    def state_loaded(counts: dict[str, int], flag_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            severity=AuditSeverity.WARNING if flag_count else AuditSeverity.INFO,
            entity_type="state",
            description=f"Planner state loaded with {flag_count} data-quality flag(s)",
            details={"counts": counts, "flag_count": flag_count},
        )

    @staticmethod
    def state_saved(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_SAVED,
            entity_type="state",
            description="Planner state saved",
            details={"counts": counts},
        )

    @staticmethod
    def data_quality_flagged(flag: PlannerFlag) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_QUALITY_FLAGGED,
            severity=AuditSeverity.WARNING,
            entity_type="record",
            entity_id=flag.record,
            description=flag.message,
            details={"kind": flag.kind.value, "field": flag.field},
        )

    @staticmethod
    def bill_marked_paid(bill_id: str, name: str, next_due: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_MARKED_PAID,
            entity_type="recurring_bill",
            entity_id=bill_id,
            description=f"Bill marked paid: {name}",
            details={"next_due_date": next_due},
            is_user_action=True,
        )

    @staticmethod
    def one_time_paid_toggled(bill_id: str, name: str, paid: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ONE_TIME_PAID_TOGGLED,
            entity_type="one_time_bill",
            entity_id=bill_id,
            description=f"One-time bill {'paid' if paid else 'reopened'}: {name}",
            details={"paid": paid},
            is_user_action=True,
        )

    @staticmethod
    def historical_payment_added(bill_id: str, amount: str, estimate: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORICAL_PAYMENT_ADDED,
            entity_type="recurring_bill",
            entity_id=bill_id,
            description=f"Historical payment of {amount} recorded",
            details={"amount": amount, "amount_estimate": estimate},
            is_user_action=True,
        )

    @staticmethod
    def historical_payment_removed(bill_id: str, index: int, estimate: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORICAL_PAYMENT_REMOVED,
            entity_type="recurring_bill",
            entity_id=bill_id,
            description=f"Historical payment #{index} removed",
            details={"index": index, "amount_estimate": estimate},
            is_user_action=True,
        )

    @staticmethod
    def budget_caps_upserted(month_key: str, patch: dict[str, str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CAPS_UPSERTED,
            entity_type="budget",
            entity_id=month_key,
            description=f"Budget caps updated for {month_key}",
            details={"patch": patch},
            is_user_action=True,
        )

    @staticmethod
    def paychecks_assigned(pay_dates: list[str], check1: int, check2: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYCHECKS_ASSIGNED,
            entity_type="assignment",
            description=f"Assigned {check1 + check2} bill(s) to the next two paychecks",
            details={"pay_dates": pay_dates, "check1": check1, "check2": check2},
        )

    @staticmethod
    def balancing_move_applied(bill_id: str, name: str, difference: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCING_MOVE_APPLIED,
            entity_type="assignment",
            entity_id=bill_id,
            description=f"Balancing moved {name} to the other paycheck",
            details={"leftover_difference": difference},
        )

    @staticmethod
    def calendar_exported(instance_count: int, start: str, end: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CALENDAR_EXPORTED,
            entity_type="calendar",
            description=f"Exported {instance_count} bill instance(s)",
            details={"start": start, "end": end, "instances": instance_count},
            is_user_action=True,
        )

    @staticmethod
    def system_error(error_type: str, error_message: str, details: Optional[dict] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
