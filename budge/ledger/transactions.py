"""
Transaction Flow

Creates, edits and deletes ledger entries, keeping the profile balance in
step through the BalanceLedger.

Order of writes for every mutation: the transaction record first, the
balance second. If the balance write fails, the record stays and the
failure is logged as a partial failure.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from budge.audit import AuditLogger
from budge.ledger.balance import BalanceLedger, signed_effect
from budge.ledger.base import LedgerFlow
from budge.models.analytics import DayGroup, TransactionFilters
from budge.models.audit import AuditEventBuilder
from budge.models.ledger import Transaction
from budge.services.storage import (
    Collection,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from budge.validation import LedgerValidator


def filter_transactions(
    transactions: Iterable[Transaction],
    filters: Optional[TransactionFilters] = None,
) -> list[Transaction]:
    """
    Apply every set filter and sort newest first.

    The search term matches description or category id, case-insensitively.
    """
    results = list(transactions)
    if filters is not None:
        if filters.type is not None:
            results = [t for t in results if t.type == filters.type]
        if filters.category is not None:
            results = [t for t in results if t.category == filters.category]
        if filters.start_date is not None:
            results = [t for t in results if t.date >= filters.start_date]
        if filters.end_date is not None:
            results = [t for t in results if t.date <= filters.end_date]
        if filters.search_term:
            term = filters.search_term.lower()
            results = [
                t for t in results
                if term in t.description.lower()
                or (t.category is not None and term in t.category.lower())
            ]
        if filters.min_amount is not None:
            results = [t for t in results if t.amount >= filters.min_amount]
        if filters.max_amount is not None:
            results = [t for t in results if t.amount <= filters.max_amount]

    results.sort(key=lambda t: t.date, reverse=True)
    return results


def group_by_day(transactions: Iterable[Transaction]) -> list[DayGroup]:
    """Group by calendar day, newest day first, with signed daily totals."""
    days: dict[date, list[Transaction]] = defaultdict(list)
    for t in transactions:
        days[t.date].append(t)
    return [
        DayGroup(
            day=day,
            transactions=items,
            net_total=sum((signed_effect(t) for t in items), Decimal("0")),
        )
        for day, items in sorted(days.items(), key=lambda kv: kv[0], reverse=True)
    ]


class TransactionFlow(LedgerFlow):
    """Transaction CRUD with balance upkeep."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        balance: Optional[BalanceLedger] = None,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(store, validator, audit_logger)
        self._balance = balance or BalanceLedger(store, self._audit)
        self._snapshot: list[Transaction] = []

    async def create(self, data: dict[str, Any], today: Optional[date] = None) -> Transaction:
        """
        Validate and record a new transaction, then adjust the balance.

        Raises:
            LedgerValidationError: Nothing was written
            StorageError: The record or the balance write failed
        """
        transaction = self._validated(self._validator.transaction, data, today=today)

        with self._audit.storage_errors("create transaction"):
            await self._store.add(Collection.TRANSACTIONS, transaction)
        self._audit.log(AuditEventBuilder.transaction_created(
            transaction.id, transaction.type.value, str(transaction.amount)
        ))

        try:
            await self._balance.on_create(transaction)
        except StorageError as e:
            self._audit.log_partial_failure(
                operation="create transaction",
                completed_step="store transaction",
                failed_step="adjust balance",
                error=e,
                entity_id=transaction.id,
            )
            raise
        return transaction

    async def edit(
        self,
        transaction_id: str,
        updates: dict[str, Any],
        today: Optional[date] = None,
    ) -> Transaction:
        """
        Apply edits to a transaction and rebalance.

        The id and creation time cannot be edited.

        Raises:
            NotFoundError: No such transaction
            LedgerValidationError: Nothing was written
            StorageError: The record or a balance write failed
        """
        with self._audit.storage_errors("load transaction"):
            existing = await self._store.get(Collection.TRANSACTIONS, transaction_id)
        if existing is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        payload = {
            **existing.model_dump(),
            **updates,
            "id": existing.id,
            "created_at": existing.created_at,
        }
        updated = self._validated(self._validator.transaction, payload, today=today)

        with self._audit.storage_errors("update transaction"):
            await self._store.update(Collection.TRANSACTIONS, updated)
        self._audit.log(AuditEventBuilder.transaction_updated(
            updated.id, str(existing.amount), str(updated.amount)
        ))

        try:
            await self._balance.on_update(existing, updated)
        except StorageError as e:
            self._audit.log_partial_failure(
                operation="edit transaction",
                completed_step="update transaction",
                failed_step="rebalance",
                error=e,
                entity_id=updated.id,
            )
            raise
        return updated

    async def remove(self, transaction_id: str) -> bool:
        """
        Delete a transaction and reverse its balance effect.

        Returns False if there was nothing to delete.
        """
        with self._audit.storage_errors("delete transaction"):
            existing = await self._store.get(Collection.TRANSACTIONS, transaction_id)
            if existing is None:
                return False
            await self._store.delete(Collection.TRANSACTIONS, transaction_id)
        self._audit.log(AuditEventBuilder.transaction_deleted(
            transaction_id, str(existing.amount)
        ))

        try:
            await self._balance.on_delete(existing)
        except StorageError as e:
            self._audit.log_partial_failure(
                operation="delete transaction",
                completed_step="delete transaction",
                failed_step="reverse balance",
                error=e,
                entity_id=transaction_id,
            )
            raise
        return True

    async def get(self, transaction_id: str) -> Optional[Transaction]:
        with self._audit.storage_errors("load transaction"):
            return await self._store.get(Collection.TRANSACTIONS, transaction_id)

    async def by_subscription(self, subscription_id: str) -> list[Transaction]:
        with self._audit.storage_errors("load subscription transactions"):
            return await self._store.get_by_index(
                Collection.TRANSACTIONS, "subscription_id", subscription_id
            )

    async def list(self, filters: Optional[TransactionFilters] = None) -> list[Transaction]:
        """
        Transactions matching `filters`, newest first.

        Uses an index for the first selective filter, then filters the
        rest in Python. Returns the last good list on storage failure.
        """
        try:
            if filters is not None and filters.type is not None:
                candidates = await self._store.get_by_index(
                    Collection.TRANSACTIONS, "type", filters.type
                )
            elif filters is not None and filters.category is not None:
                candidates = await self._store.get_by_index(
                    Collection.TRANSACTIONS, "category", filters.category
                )
            elif filters is not None and filters.start_date and filters.end_date:
                candidates = await self._store.get_by_range(
                    Collection.TRANSACTIONS, "date", filters.start_date, filters.end_date
                )
            else:
                candidates = await self._store.list_all(Collection.TRANSACTIONS)
        except StorageError as e:
            self._audit.log_storage_error("load transactions", e)
            return list(self._snapshot)

        self._snapshot = filter_transactions(candidates, filters)
        return list(self._snapshot)
