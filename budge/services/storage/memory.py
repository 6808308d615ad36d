"""
In-Memory Storage Implementation

Used by the test suite and for throwaway sessions. Behaves like the
SQLite store: records are copied in and out, indexes are checked,
and an optional record quota can be set to exercise quota failures.
"""

from typing import Any, Optional

from pydantic import BaseModel

from budge.services.storage.interface import (
    COLLECTIONS,
    Collection,
    DuplicateError,
    LedgerStoreInterface,
    NotFoundError,
    QuotaExceededError,
    StorageError,
    StoreUnavailableError,
    check_index,
    index_value,
)


class InMemoryLedgerStore(LedgerStoreInterface):
    """Dictionary-backed record store."""

    def __init__(self, max_records: Optional[int] = None):
        """
        Args:
            max_records: Total records the store will hold before raising
                         QuotaExceededError. None means unlimited.
        """
        self._max_records = max_records
        self._closed = False
        self._data: dict[Collection, dict[str, BaseModel]] = {
            collection: {} for collection in Collection
        }

    def _table(self, collection: Collection) -> dict[str, BaseModel]:
        if self._closed:
            raise StoreUnavailableError("Store has been closed")
        return self._data[collection]

    def _check_record(self, collection: Collection, record: BaseModel) -> None:
        model = COLLECTIONS[collection].model
        if not isinstance(record, model):
            raise StorageError(
                f"Collection '{collection.value}' stores {model.__name__}, "
                f"got {type(record).__name__}"
            )

    def _check_quota(self) -> None:
        if self._max_records is None:
            return
        total = sum(len(table) for table in self._data.values())
        if total >= self._max_records:
            raise QuotaExceededError(
                f"Store is full ({self._max_records} records)"
            )

    async def add(self, collection: Collection, record):
        self._check_record(collection, record)
        table = self._table(collection)
        if record.id in table:
            raise DuplicateError(f"{collection.value} already has id {record.id}")
        self._check_quota()
        table[record.id] = record.model_copy(deep=True)
        return record

    async def update(self, collection: Collection, record):
        self._check_record(collection, record)
        table = self._table(collection)
        if record.id not in table:
            raise NotFoundError(f"{collection.value} has no id {record.id}")
        table[record.id] = record.model_copy(deep=True)
        return record

    async def put(self, collection: Collection, record):
        self._check_record(collection, record)
        table = self._table(collection)
        if record.id not in table:
            self._check_quota()
        table[record.id] = record.model_copy(deep=True)
        return record

    async def delete(self, collection: Collection, record_id: str) -> bool:
        return self._table(collection).pop(record_id, None) is not None

    async def get(self, collection: Collection, record_id: str) -> Optional[Any]:
        record = self._table(collection).get(record_id)
        return record.model_copy(deep=True) if record is not None else None

    async def list_all(self, collection: Collection) -> list[Any]:
        return [r.model_copy(deep=True) for r in self._table(collection).values()]

    async def get_by_index(self, collection: Collection, index: str, value: Any) -> list[Any]:
        check_index(collection, index)
        wanted = index_value(value)
        return [
            r.model_copy(deep=True)
            for r in self._table(collection).values()
            if index_value(getattr(r, index)) == wanted
        ]

    async def get_by_range(
        self,
        collection: Collection,
        index: str,
        lower: Any,
        upper: Any,
    ) -> list[Any]:
        check_index(collection, index)
        results = []
        for r in self._table(collection).values():
            value = getattr(r, index)
            # Like IndexedDB, records with no key value never match a range
            if value is None:
                continue
            if lower <= value <= upper:
                results.append(r.model_copy(deep=True))
        return results

    async def clear(self, collection: Collection) -> int:
        table = self._table(collection)
        count = len(table)
        table.clear()
        return count

    async def close(self) -> None:
        self._closed = True
