"""Audit logging package."""

from payplan.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
