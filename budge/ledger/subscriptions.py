"""
Subscription Flow

CRUD for subscriptions plus the two multi-step operations:

MARK AS PAID (two phases, no rollback):
1. Record a subscription-type transaction through TransactionFlow,
   which decrements the balance
2. Advance next_payment_date one billing cycle from its current value

DELETE (cascade):
1. Delete every transaction referencing the subscription
2. Delete every alert referencing the subscription
3. Delete the subscription itself

The cascade removes the payment transactions without reversing their
balance effect. Money that was paid stays paid. After a cascade the
balance no longer equals the opening balance plus the signed sum of the
stored transactions; that gap is expected, not drift.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from budge.audit import AuditLogger
from budge.config import get_settings
from budge.ledger.base import LedgerFlow
from budge.ledger.transactions import TransactionFlow
from budge.models.audit import AuditEventBuilder
from budge.models.ledger import (
    BillingCycle,
    Subscription,
    Transaction,
    TransactionType,
    utcnow,
)
from budge.recurrence import next_occurrence
from budge.services.storage import (
    Collection,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from budge.validation import LedgerValidator


class MarkPaidResult(BaseModel):
    """The payment that was recorded and the rescheduled subscription."""

    transaction: Transaction
    subscription: Subscription


def upcoming_subscriptions(
    subscriptions: Iterable[Subscription],
    today: date,
    days: int = 30,
    limit: int = 5,
) -> list[Subscription]:
    """Subscriptions due in the next `days` days, soonest first."""
    horizon = today + timedelta(days=days)
    due = [s for s in subscriptions if today <= s.next_payment_date <= horizon]
    due.sort(key=lambda s: s.next_payment_date)
    return due[:limit]


def monthly_subscription_total(subscriptions: Iterable[Subscription]) -> Decimal:
    """Sum of the subscriptions billed monthly. Other cycles are not converted."""
    return sum(
        (s.amount for s in subscriptions if s.billing_cycle == BillingCycle.MONTHLY),
        Decimal("0"),
    )


class SubscriptionFlow(LedgerFlow):
    """Subscription CRUD, mark-as-paid and cascade delete."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        transactions: Optional[TransactionFlow] = None,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(store, validator, audit_logger)
        self._transactions = transactions or TransactionFlow(
            store, validator=self._validator, audit_logger=self._audit
        )
        self._snapshot: list[Subscription] = []

    async def create(self, data: dict[str, Any], today: Optional[date] = None) -> Subscription:
        subscription = self._validated(self._validator.subscription, data, today=today)
        with self._audit.storage_errors("create subscription"):
            await self._store.add(Collection.SUBSCRIPTIONS, subscription)
        self._audit.log(AuditEventBuilder.subscription_saved(
            subscription.id, subscription.name,
            subscription.next_payment_date.isoformat(),
        ))
        return subscription

    async def edit(
        self,
        subscription_id: str,
        updates: dict[str, Any],
        today: Optional[date] = None,
    ) -> Subscription:
        """
        Apply edits to a subscription.

        Raises:
            NotFoundError: No such subscription
            LedgerValidationError: Nothing was written
        """
        existing = await self.get(subscription_id)
        if existing is None:
            raise NotFoundError(f"Subscription not found: {subscription_id}")

        payload = {
            **existing.model_dump(),
            **updates,
            "id": existing.id,
            "created_at": existing.created_at,
            "updated_at": utcnow(),
        }
        subscription = self._validated(self._validator.subscription, payload, today=today)
        with self._audit.storage_errors("update subscription"):
            await self._store.update(Collection.SUBSCRIPTIONS, subscription)
        self._audit.log(AuditEventBuilder.subscription_saved(
            subscription.id, subscription.name,
            subscription.next_payment_date.isoformat(),
        ))
        return subscription

    async def get(self, subscription_id: str) -> Optional[Subscription]:
        with self._audit.storage_errors("load subscription"):
            return await self._store.get(Collection.SUBSCRIPTIONS, subscription_id)

    async def remove(self, subscription_id: str) -> bool:
        """
        Delete a subscription and everything that references it.

        Returns False if the subscription did not exist. Dependent
        records are still cleaned up in that case.
        """
        with self._audit.storage_errors("delete subscription"):
            transactions = await self._store.get_by_index(
                Collection.TRANSACTIONS, "subscription_id", subscription_id
            )
            for t in transactions:
                await self._store.delete(Collection.TRANSACTIONS, t.id)

            alerts = await self._store.get_by_index(
                Collection.ALERTS, "subscription_id", subscription_id
            )
            for alert in alerts:
                await self._store.delete(Collection.ALERTS, alert.id)

            deleted = await self._store.delete(Collection.SUBSCRIPTIONS, subscription_id)

        self._audit.log(AuditEventBuilder.subscription_deleted(
            subscription_id, len(transactions), len(alerts)
        ))
        self._snapshot = [s for s in self._snapshot if s.id != subscription_id]
        return deleted

    async def mark_as_paid(
        self,
        subscription_id: str,
        today: Optional[date] = None,
    ) -> MarkPaidResult:
        """
        Record a payment and move the subscription on by one cycle.

        The next payment date advances from its stored value, not from
        today, and only once per call.

        Raises:
            NotFoundError: No such subscription
            StorageError: A phase failed; the earlier phase is not undone
        """
        today = today or date.today()
        subscription = await self.get(subscription_id)
        if subscription is None:
            raise NotFoundError(f"Subscription not found: {subscription_id}")

        # Phase 1: payment transaction and balance
        transaction = await self._transactions.create({
            "type": TransactionType.SUBSCRIPTION,
            "amount": subscription.amount,
            "description": f"{subscription.name} - {subscription.billing_cycle.value} payment",
            "category": subscription.category,
            "subscription_id": subscription.id,
            "date": today,
        }, today=today)

        # Phase 2: reschedule
        subscription.next_payment_date = next_occurrence(
            subscription.next_payment_date, subscription.billing_cycle
        )
        subscription.updated_at = utcnow()
        try:
            await self._store.update(Collection.SUBSCRIPTIONS, subscription)
        except StorageError as e:
            self._audit.log_partial_failure(
                operation="mark subscription paid",
                completed_step="record payment",
                failed_step="advance next payment date",
                error=e,
                entity_id=subscription.id,
            )
            raise

        self._audit.log(AuditEventBuilder.subscription_paid(
            subscription.id, transaction.id,
            subscription.next_payment_date.isoformat(),
        ))
        return MarkPaidResult(transaction=transaction, subscription=subscription)

    async def upcoming(
        self,
        today: Optional[date] = None,
        days: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[Subscription]:
        """Payments coming up on the dashboard horizon."""
        alerts = get_settings().alerts
        return upcoming_subscriptions(
            await self.list(),
            today or date.today(),
            days=days if days is not None else alerts.upcoming_days,
            limit=limit if limit is not None else alerts.upcoming_limit,
        )

    async def monthly_total(self) -> Decimal:
        return monthly_subscription_total(await self.list())

    async def list(self) -> list[Subscription]:
        """All subscriptions, soonest payment first."""
        try:
            subscriptions = await self._store.list_all(Collection.SUBSCRIPTIONS)
        except StorageError as e:
            self._audit.log_storage_error("load subscriptions", e)
            return list(self._snapshot)
        self._snapshot = sorted(subscriptions, key=lambda s: s.next_payment_date)
        return list(self._snapshot)
