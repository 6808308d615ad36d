"""
Audit Models for Budge

Every ledger mutation and every derived-state change (alerts created,
expired, dismissed) is described by an AuditEvent and written to the
structured log.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from budge.models.ledger import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions and balance
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    BALANCE_ADJUSTED = "balance_adjusted"
    BALANCE_SKIPPED = "balance_skipped"

    # Subscriptions
    SUBSCRIPTION_SAVED = "subscription_saved"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    SUBSCRIPTION_PAID = "subscription_paid"

    # Income
    RECURRING_INCOME_PROCESSED = "recurring_income_processed"

    # Alerts
    ALERT_CREATED = "alert_created"
    ALERT_DISMISSED = "alert_dismissed"
    ALERT_EXPIRED = "alert_expired"

    # Reference data
    PROFILE_SAVED = "profile_saved"
    CATEGORIES_SEEDED = "categories_seeded"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    PARTIAL_FAILURE = "partial_failure"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Collection the entity lives in (e.g. 'transactions')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

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
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(tx.id, "expense", "12.50")
        event = AuditEventBuilder.alert_dismissed(alert_id)
    """

    @staticmethod
    def transaction_created(transaction_id: str, tx_type: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transactions",
            entity_id=transaction_id,
            description=f"Transaction recorded: {tx_type} {amount}",
            details={"type": tx_type, "amount": amount},
        )

    @staticmethod
    def transaction_updated(transaction_id: str, old_amount: str, new_amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transactions",
            entity_id=transaction_id,
            description="Transaction edited",
            details={"old_amount": old_amount, "new_amount": new_amount},
        )

    @staticmethod
    def transaction_deleted(transaction_id: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transactions",
            entity_id=transaction_id,
            description="Transaction deleted",
            details={"amount": amount},
        )

    @staticmethod
    def balance_adjusted(delta: str, new_balance: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_ADJUSTED,
            entity_type="profile",
            description=f"Balance adjusted by {delta} ({reason})",
            details={"delta": delta, "balance": new_balance, "reason": reason},
        )

    @staticmethod
    def balance_skipped(delta: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_SKIPPED,
            severity=AuditSeverity.WARNING,
            entity_type="profile",
            description="Balance not adjusted: no profile exists",
            details={"delta": delta, "reason": reason},
        )

    @staticmethod
    def subscription_saved(subscription_id: str, name: str, next_payment_date: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_SAVED,
            entity_type="subscriptions",
            entity_id=subscription_id,
            description=f"Subscription saved: {name}",
            details={"next_payment_date": next_payment_date},
        )

    @staticmethod
    def subscription_deleted(
        subscription_id: str,
        transactions_removed: int,
        alerts_removed: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_DELETED,
            entity_type="subscriptions",
            entity_id=subscription_id,
            description="Subscription deleted with its transactions and alerts",
            details={
                "transactions_removed": transactions_removed,
                "alerts_removed": alerts_removed,
            },
        )

    @staticmethod
    def subscription_paid(
        subscription_id: str,
        transaction_id: str,
        next_payment_date: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_PAID,
            entity_type="subscriptions",
            entity_id=subscription_id,
            description=f"Subscription paid, next payment on {next_payment_date}",
            details={
                "transaction_id": transaction_id,
                "next_payment_date": next_payment_date,
            },
        )

    @staticmethod
    def recurring_income_processed(
        source_id: str,
        transaction_id: str,
        next_date: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_INCOME_PROCESSED,
            entity_type="income_sources",
            entity_id=source_id,
            description="Recurring income recorded",
            details={"transaction_id": transaction_id, "next_date": next_date},
        )

    @staticmethod
    def alert_created(alert_id: str, subscription_id: str, days_until_due: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALERT_CREATED,
            entity_type="alerts",
            entity_id=alert_id,
            description=f"Payment due in {days_until_due} day(s)",
            details={"subscription_id": subscription_id, "days_until_due": days_until_due},
        )

    @staticmethod
    def alert_dismissed(alert_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALERT_DISMISSED,
            entity_type="alerts",
            entity_id=alert_id,
            description="Alert dismissed",
        )

    @staticmethod
    def alert_expired(alert_id: str, due_date: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALERT_EXPIRED,
            entity_type="alerts",
            entity_id=alert_id,
            description="Alert removed after its due date passed",
            details={"due_date": due_date},
        )

    @staticmethod
    def profile_saved(name: str, currency: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_SAVED,
            entity_type="profile",
            description=f"Profile saved for {name}",
            details={"currency": currency},
        )

    @staticmethod
    def categories_seeded(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_SEEDED,
            entity_type="categories",
            description=f"Seeded {count} default categories",
            details={"count": count},
        )

    @staticmethod
    def validation_failed(entity_type: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            description=f"Validation failed with {len(issues)} issue(s)",
            details={"issues": issues},
        )

    @staticmethod
    def partial_failure(
        operation: str,
        completed_step: str,
        failed_step: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTIAL_FAILURE,
            severity=AuditSeverity.ERROR,
            entity_id=entity_id,
            description=f"{operation}: '{completed_step}' applied, '{failed_step}' failed",
            details={
                "operation": operation,
                "completed_step": completed_step,
                "failed_step": failed_step,
            },
            error_message=error_message,
        )

    @staticmethod
    def storage_error(operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            details={"operation": operation},
            error_message=error_message,
        )
