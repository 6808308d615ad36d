"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the local record store.
This allows us to:
1. Persist to SQLite on the device
2. Use in-memory storage for testing
3. Keep business logic decoupled from the storage engine

The interface is intentionally simple - we're not building a full ORM.
Keyed collections with add/update/delete/get and lookups on a fixed set
of indexes. Anything fancier is filtered in Python.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel

from budge.models.ledger import (
    Alert,
    Budget,
    Category,
    IncomeSource,
    Profile,
    Subscription,
    Transaction,
)


RecordT = TypeVar("RecordT", bound=BaseModel)


class Collection(str, Enum):
    """Keyed collections kept in the store."""
    PROFILE = "profile"
    SUBSCRIPTIONS = "subscriptions"
    TRANSACTIONS = "transactions"
    ALERTS = "alerts"
    CATEGORIES = "categories"
    BUDGETS = "budgets"
    INCOME_SOURCES = "income_sources"


@dataclass(frozen=True)
class CollectionSpec:
    """Record type and indexed fields of one collection."""
    model: type[BaseModel]
    indexes: tuple[str, ...] = ()


COLLECTIONS: dict[Collection, CollectionSpec] = {
    Collection.PROFILE: CollectionSpec(Profile),
    Collection.SUBSCRIPTIONS: CollectionSpec(Subscription, ("next_payment_date",)),
    Collection.TRANSACTIONS: CollectionSpec(
        Transaction, ("date", "subscription_id", "category", "type")
    ),
    Collection.ALERTS: CollectionSpec(Alert, ("subscription_id", "dismissed")),
    Collection.CATEGORIES: CollectionSpec(Category, ("type",)),
    Collection.BUDGETS: CollectionSpec(Budget, ("category_id",)),
    Collection.INCOME_SOURCES: CollectionSpec(IncomeSource, ("is_recurring", "next_date")),
}


def check_index(collection: Collection, index: str) -> None:
    """Raise StorageError if `index` is not declared for `collection`."""
    if index not in COLLECTIONS[collection].indexes:
        raise StorageError(f"Collection '{collection.value}' has no index '{index}'")


def index_value(value: Any) -> Any:
    """Normalise a field value so it compares the same way in every backend."""
    if isinstance(value, Enum):
        return value.value
    return value


class LedgerStoreInterface(ABC):
    """
    Abstract interface for the local record store.

    Any storage implementation must implement these methods.
    Records go in and come out as the pydantic model declared for their
    collection in COLLECTIONS. Returned records are copies; mutating them
    does not change the store.
    """

    @abstractmethod
    async def add(self, collection: Collection, record: RecordT) -> RecordT:
        """
        Insert a new record.

        Raises:
            DuplicateError: If a record with the same id exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update(self, collection: Collection, record: RecordT) -> RecordT:
        """
        Replace an existing record.

        Raises:
            NotFoundError: If no record with that id exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def put(self, collection: Collection, record: RecordT) -> RecordT:
        """Insert or replace a record."""
        pass

    @abstractmethod
    async def delete(self, collection: Collection, record_id: str) -> bool:
        """
        Delete a record by id.

        Returns:
            True if a record was deleted, False if none existed
        """
        pass

    @abstractmethod
    async def get(self, collection: Collection, record_id: str) -> Optional[Any]:
        """Retrieve a record by id, or None."""
        pass

    @abstractmethod
    async def list_all(self, collection: Collection) -> list[Any]:
        """All records of a collection in insertion order."""
        pass

    @abstractmethod
    async def get_by_index(
        self,
        collection: Collection,
        index: str,
        value: Any,
    ) -> list[Any]:
        """
        Records whose indexed field equals `value`.

        Raises:
            StorageError: If `index` is not declared for the collection
        """
        pass

    @abstractmethod
    async def get_by_range(
        self,
        collection: Collection,
        index: str,
        lower: Any,
        upper: Any,
    ) -> list[Any]:
        """Records whose indexed field lies in [lower, upper] (inclusive)."""
        pass

    @abstractmethod
    async def clear(self, collection: Collection) -> int:
        """Delete every record in a collection. Returns the number removed."""
        pass

    async def close(self) -> None:
        """Release any resources held by the store."""
        return None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StoreUnavailableError(StorageError):
    """The store could not be opened or has been closed."""
    pass


class QuotaExceededError(StorageError):
    """The device ran out of room for the store."""
    pass
