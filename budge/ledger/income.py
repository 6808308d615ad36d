"""
Income Flow

Income source CRUD and processing of recurring payouts.

A recurring source is due when its next_date is on or before today.
Each processing pass spawns at most one income transaction per source and
moves next_date forward a single step. A source that fell several periods
behind needs several passes to catch up.
"""

from datetime import date
from typing import Any, Optional

from budge.audit import AuditLogger
from budge.ledger.base import LedgerFlow
from budge.ledger.transactions import TransactionFlow
from budge.models.audit import AuditEventBuilder
from budge.models.ledger import IncomeSource, Transaction, TransactionType, utcnow
from budge.recurrence import next_occurrence
from budge.services.storage import (
    Collection,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from budge.validation import LedgerValidator


class IncomeFlow(LedgerFlow):
    """Income sources and recurring income processing."""

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
        self._snapshot: list[IncomeSource] = []

    async def create(self, data: dict[str, Any], today: Optional[date] = None) -> IncomeSource:
        source = self._validated(self._validator.income_source, data, today=today)
        with self._audit.storage_errors("create income source"):
            await self._store.add(Collection.INCOME_SOURCES, source)
        return source

    async def edit(
        self,
        source_id: str,
        updates: dict[str, Any],
        today: Optional[date] = None,
    ) -> IncomeSource:
        with self._audit.storage_errors("load income source"):
            existing = await self._store.get(Collection.INCOME_SOURCES, source_id)
        if existing is None:
            raise NotFoundError(f"Income source not found: {source_id}")

        payload = {
            **existing.model_dump(),
            **updates,
            "id": existing.id,
            "created_at": existing.created_at,
            "updated_at": utcnow(),
        }
        source = self._validated(self._validator.income_source, payload, today=today)
        with self._audit.storage_errors("update income source"):
            await self._store.update(Collection.INCOME_SOURCES, source)
        return source

    async def remove(self, source_id: str) -> bool:
        """Delete a source. Transactions it already spawned are kept."""
        with self._audit.storage_errors("delete income source"):
            deleted = await self._store.delete(Collection.INCOME_SOURCES, source_id)
        self._snapshot = [s for s in self._snapshot if s.id != source_id]
        return deleted

    async def list_recurring(self) -> list[IncomeSource]:
        with self._audit.storage_errors("load recurring income"):
            return await self._store.get_by_index(
                Collection.INCOME_SOURCES, "is_recurring", True
            )

    async def process_recurring(self, today: Optional[date] = None) -> list[Transaction]:
        """
        Spawn income transactions for every recurring source that is due.

        Returns the transactions created by this pass.
        """
        today = today or date.today()
        created: list[Transaction] = []

        for source in await self.list_recurring():
            if source.next_date is None or source.next_date > today:
                continue

            transaction = await self._transactions.create({
                "type": TransactionType.INCOME,
                "amount": source.amount,
                "description": f"{source.name} - Recurring Income",
                "category": source.category_id,
                "income_source_id": source.id,
                "date": today,
            }, today=today)
            created.append(transaction)

            if source.frequency is not None:
                source.next_date = next_occurrence(source.next_date, source.frequency)
                source.updated_at = utcnow()
                try:
                    await self._store.update(Collection.INCOME_SOURCES, source)
                except StorageError as e:
                    self._audit.log_partial_failure(
                        operation="process recurring income",
                        completed_step="record income",
                        failed_step="advance next date",
                        error=e,
                        entity_id=source.id,
                    )
                    raise

            self._audit.log(AuditEventBuilder.recurring_income_processed(
                source.id, transaction.id,
                source.next_date.isoformat() if source.next_date else None,
            ))

        return created

    async def list(self) -> list[IncomeSource]:
        try:
            sources = await self._store.list_all(Collection.INCOME_SOURCES)
        except StorageError as e:
            self._audit.log_storage_error("load income sources", e)
            return list(self._snapshot)
        self._snapshot = sources
        return list(sources)
