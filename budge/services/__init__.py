"""Services package."""

from budge.services.storage import (
    COLLECTIONS,
    Collection,
    DuplicateError,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    QuotaExceededError,
    SQLiteLedgerStore,
    StorageError,
    StoreUnavailableError,
)

__all__ = [
    "COLLECTIONS",
    "Collection",
    "DuplicateError",
    "InMemoryLedgerStore",
    "LedgerStoreInterface",
    "NotFoundError",
    "QuotaExceededError",
    "SQLiteLedgerStore",
    "StorageError",
    "StoreUnavailableError",
]
