"""
Abstract Storage Interface

DESIGN DECISION: The engine never talks to a concrete store. Storage is a
narrow interface exchanging plain dicts:
1. Swap browser storage, a file or a database without touching the engine
2. Use in-memory storage for testing
3. Keep all defensive defaulting in the Record Normalizer, not the store

The interface is synchronous; the engine has no concurrency of its own.
"""

from abc import ABC, abstractmethod
from typing import Optional

from payplan.models.audit import AuditEvent


class PlannerStorageInterface(ABC):
    """
    Abstract interface for planner state persistence.

    Implementations store one camelCase payload per user.
    """

    @abstractmethod
    def load_payload(self) -> Optional[dict]:
        """
        Load the stored planner payload.

        Returns:
            The raw payload, or None if nothing has been saved yet

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save_payload(self, payload: dict) -> bool:
        """
        Replace the stored planner payload.

        Args:
            payload: JSON-safe dict produced by PlannerState.to_payload()

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'recurring_bill', 'budget')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
