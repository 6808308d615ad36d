"""
Storage Services Package

Provides the abstract record store interface and its implementations.
SQLite is the on-device backend; the in-memory store backs the tests.
"""

from budge.services.storage.interface import (
    COLLECTIONS,
    Collection,
    CollectionSpec,
    DuplicateError,
    LedgerStoreInterface,
    NotFoundError,
    QuotaExceededError,
    StorageError,
    StoreUnavailableError,
)
from budge.services.storage.memory import InMemoryLedgerStore
from budge.services.storage.sqlite import SQLiteLedgerStore

__all__ = [
    # Interface
    "COLLECTIONS",
    "Collection",
    "CollectionSpec",
    "LedgerStoreInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "QuotaExceededError",
    "StorageError",
    "StoreUnavailableError",
    # Implementations
    "InMemoryLedgerStore",
    "SQLiteLedgerStore",
]
