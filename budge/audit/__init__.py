"""Audit logging package."""

from budge.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
