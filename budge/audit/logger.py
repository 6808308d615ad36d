"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. Traceability of how the balance got where it is
2. A record of partial failures in multi-step operations
3. Debugging capability without a debugger attached

The audit logger never raises. A broken log sink must not turn a
successful ledger write into a failure.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

from budge.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from budge.services.storage import StorageError


_SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _configure_structlog(json_logs: bool) -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure structlog on top of the stdlib logging backend.

    Called once at process start. Safe to call again; the last call wins.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )
    _configure_structlog(json_logs)


# Configure structlog for local logging
_configure_structlog(json_logs=True)


class AuditLogger:
    """Central audit logging service for ledger events."""

    def __init__(self, logger_name: str = "budge.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event at the level matching its severity.

        Returns True if the event was written.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Logging must never break a ledger operation
            print(f"WARNING: Failed to write audit event: {e}", file=sys.stderr)
            return False
        return True

    def log_storage_error(self, operation: str, error: Exception) -> None:
        """Log a storage failure."""
        self.log(AuditEventBuilder.storage_error(operation, str(error)))

    @contextmanager
    def storage_errors(self, operation: str) -> Iterator[None]:
        """Log a StorageError raised inside the block, then let it propagate."""
        try:
            yield
        except StorageError as e:
            self.log_storage_error(operation, e)
            raise

    def log_validation_failed(self, entity_type: str, issues: list[dict]) -> None:
        """Log a validation failure."""
        self.log(AuditEventBuilder.validation_failed(entity_type, issues))

    def log_partial_failure(
        self,
        operation: str,
        completed_step: str,
        failed_step: str,
        error: Exception,
        entity_id: Optional[str] = None,
    ) -> None:
        """Log a multi-step operation that stopped half way."""
        self.log(AuditEventBuilder.partial_failure(
            operation=operation,
            completed_step=completed_step,
            failed_step=failed_step,
            error_message=str(error),
            entity_id=entity_id,
        ))
