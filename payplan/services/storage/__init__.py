"""
Storage Services Package

Provides abstract interfaces and an in-memory implementation for planner
state and audit persistence. Concrete backends live with the host app.
"""

from payplan.services.storage.interface import (
    AuditStorageInterface,
    PlannerStorageInterface,
    StorageError,
)
from payplan.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryPlannerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "PlannerStorageInterface",
    # Exceptions
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryPlannerStorage",
]
