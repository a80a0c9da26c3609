"""
Audit Logger

DESIGN DECISION: Every state transition and every derived plan is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. A history the user can review

The audit logger:
- Is synchronous, like the engine it records
- Gracefully handles failures (a broken audit store never breaks planning)
"""

import logging
from typing import Optional

import structlog

from payplan.config import LoggingSettings
from payplan.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from payplan.models.flags import PlannerFlag
from payplan.services.storage import AuditStorageInterface


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog for local logging.

    Call once at startup. The renderer is JSON unless settings ask for
    the console renderer.
    """
    settings = settings or LoggingSettings()
    logging.basicConfig(format="%(message)s", level=getattr(logging, settings.level))

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.renderer == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store (for persistence and user visibility), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_flags(self, flags: list[PlannerFlag]) -> None:
        """Record each data-quality flag as its own event."""
        for flag in flags:
            self.log(AuditEventBuilder.data_quality_flagged(flag))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))
