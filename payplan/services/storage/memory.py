"""
In-Memory Storage

Dict-backed implementations of the storage interfaces, for tests and for
embedding the planner in a host that persists the payload itself.
"""

import copy
from typing import Optional

from payplan.models.audit import AuditEvent
from payplan.services.storage.interface import AuditStorageInterface, PlannerStorageInterface


class InMemoryPlannerStorage(PlannerStorageInterface):
    """Keeps a deep copy of the last saved payload."""

    def __init__(self, payload: Optional[dict] = None):
        self._payload = copy.deepcopy(payload) if payload is not None else None
        self.save_count = 0

    def load_payload(self) -> Optional[dict]:
        if self._payload is None:
            return None
        return copy.deepcopy(self._payload)

    def save_payload(self, payload: dict) -> bool:
        self._payload = copy.deepcopy(payload)
        self.save_count += 1
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(self, entity_type: str, entity_id: str) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
