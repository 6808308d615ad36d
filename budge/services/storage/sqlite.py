"""
SQLite Storage Implementation

DESIGN DECISION: SQLite is the on-device backend because:
1. It ships with Python - nothing to install or run
2. A single file is easy to back up or move
3. Real indexes for the lookups the ledger needs

Each collection gets its own table:
    id        TEXT PRIMARY KEY
    ix_<name> one column per declared index (ISO dates, 0/1 booleans)
    data      the full record as JSON

TRADEOFFS:
- No cross-table transactions are exposed; every call commits on its own
- Anything beyond equality/range lookups is filtered in Python
"""

import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Iterator, Optional, Union

import structlog
from pydantic import BaseModel
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budge.config import get_settings
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


logger = structlog.get_logger(__name__)


def _column(index: str) -> str:
    return f"ix_{index}"


def _sql_value(value: Any) -> Any:
    """Encode a field value for an index column."""
    value = index_value(value)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def _schema_statements() -> list[str]:
    statements = []
    for collection, spec in COLLECTIONS.items():
        table = collection.value
        index_columns = "".join(f", {_column(ix)}" for ix in spec.indexes)
        statements.append(
            f"CREATE TABLE IF NOT EXISTS {table} "
            f"(id TEXT PRIMARY KEY{index_columns}, data TEXT NOT NULL)"
        )
        for ix in spec.indexes:
            statements.append(
                f"CREATE INDEX IF NOT EXISTS {table}_{ix} ON {table} ({_column(ix)})"
            )
    return statements


class SQLiteLedgerStore(LedgerStoreInterface):
    """
    SQLite implementation of the ledger store.

    The connection is opened lazily on first use and kept for the life
    of the store.
    """

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        timeout_seconds: Optional[float] = None,
        connect_attempts: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._db_path = Path(db_path) if db_path is not None else settings.db_path
        self._timeout = timeout_seconds or settings.connect_timeout_seconds
        self._attempts = connect_attempts or settings.connect_attempts
        self._conn: Optional[sqlite3.Connection] = None
        self._closed = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    def connect(self) -> sqlite3.Connection:
        """
        Open the database and create the schema if needed.

        Opening is retried with exponential backoff, since another process
        may briefly hold a lock on the file.
        """
        if self._closed:
            raise StoreUnavailableError("Store has been closed")
        if self._conn is not None:
            return self._conn

        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            for attempt in Retrying(
                stop=stop_after_attempt(self._attempts),
                wait=wait_exponential(multiplier=0.1, max=2),
                retry=retry_if_exception_type(sqlite3.OperationalError),
                reraise=True,
            ):
                with attempt:
                    conn = sqlite3.connect(str(self._db_path), timeout=self._timeout)
                    try:
                        with conn:
                            for statement in _schema_statements():
                                conn.execute(statement)
                    except sqlite3.Error:
                        conn.close()
                        raise
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"Could not open store at {self._db_path}: {e}")

        logger.debug("store_opened", path=str(self._db_path))
        self._conn = conn
        return conn

    @contextmanager
    def _cursor(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Run one committed unit of work and translate sqlite errors."""
        conn = self.connect()
        try:
            with conn:
                yield conn
        except sqlite3.IntegrityError as e:
            raise DuplicateError(f"{operation}: {e}")
        except sqlite3.OperationalError as e:
            message = str(e).lower()
            if "full" in message:
                raise QuotaExceededError(f"{operation}: {e}")
            if "locked" in message or "unable to open" in message:
                raise StoreUnavailableError(f"{operation}: {e}")
            raise StorageError(f"{operation}: {e}")
        except sqlite3.Error as e:
            raise StorageError(f"{operation}: {e}")

    def _check_record(self, collection: Collection, record: BaseModel) -> None:
        model = COLLECTIONS[collection].model
        if not isinstance(record, model):
            raise StorageError(
                f"Collection '{collection.value}' stores {model.__name__}, "
                f"got {type(record).__name__}"
            )

    def _row_values(self, collection: Collection, record: BaseModel) -> list:
        spec = COLLECTIONS[collection]
        return (
            [record.id]
            + [_sql_value(getattr(record, ix)) for ix in spec.indexes]
            + [record.model_dump_json()]
        )

    def _row_to_record(self, collection: Collection, data: str):
        return COLLECTIONS[collection].model.model_validate_json(data)

    def _insert(self, conn: sqlite3.Connection, collection: Collection, record: BaseModel) -> None:
        spec = COLLECTIONS[collection]
        columns = ["id"] + [_column(ix) for ix in spec.indexes] + ["data"]
        placeholders = ", ".join("?" for _ in columns)
        conn.execute(
            f"INSERT INTO {collection.value} ({', '.join(columns)}) VALUES ({placeholders})",
            self._row_values(collection, record),
        )

    def _replace(self, conn: sqlite3.Connection, collection: Collection, record: BaseModel) -> int:
        spec = COLLECTIONS[collection]
        assignments = [f"{_column(ix)} = ?" for ix in spec.indexes] + ["data = ?"]
        values = self._row_values(collection, record)
        cursor = conn.execute(
            f"UPDATE {collection.value} SET {', '.join(assignments)} WHERE id = ?",
            values[1:] + [values[0]],
        )
        return cursor.rowcount

    async def add(self, collection: Collection, record):
        self._check_record(collection, record)
        with self._cursor(f"add {collection.value}") as conn:
            self._insert(conn, collection, record)
        return record

    async def update(self, collection: Collection, record):
        self._check_record(collection, record)
        with self._cursor(f"update {collection.value}") as conn:
            if self._replace(conn, collection, record) == 0:
                raise NotFoundError(f"{collection.value} has no id {record.id}")
        return record

    async def put(self, collection: Collection, record):
        self._check_record(collection, record)
        with self._cursor(f"put {collection.value}") as conn:
            if self._replace(conn, collection, record) == 0:
                self._insert(conn, collection, record)
        return record

    async def delete(self, collection: Collection, record_id: str) -> bool:
        with self._cursor(f"delete {collection.value}") as conn:
            cursor = conn.execute(
                f"DELETE FROM {collection.value} WHERE id = ?", (record_id,)
            )
            return cursor.rowcount > 0

    async def get(self, collection: Collection, record_id: str) -> Optional[Any]:
        with self._cursor(f"get {collection.value}") as conn:
            row = conn.execute(
                f"SELECT data FROM {collection.value} WHERE id = ?", (record_id,)
            ).fetchone()
        return self._row_to_record(collection, row[0]) if row else None

    async def list_all(self, collection: Collection) -> list[Any]:
        with self._cursor(f"list {collection.value}") as conn:
            rows = conn.execute(
                f"SELECT data FROM {collection.value} ORDER BY rowid"
            ).fetchall()
        return [self._row_to_record(collection, row[0]) for row in rows]

    async def get_by_index(self, collection: Collection, index: str, value: Any) -> list[Any]:
        check_index(collection, index)
        sql_value = _sql_value(value)
        if sql_value is None:
            where, params = f"{_column(index)} IS NULL", ()
        else:
            where, params = f"{_column(index)} = ?", (sql_value,)
        with self._cursor(f"query {collection.value}.{index}") as conn:
            rows = conn.execute(
                f"SELECT data FROM {collection.value} WHERE {where} ORDER BY rowid",
                params,
            ).fetchall()
        return [self._row_to_record(collection, row[0]) for row in rows]

    async def get_by_range(
        self,
        collection: Collection,
        index: str,
        lower: Any,
        upper: Any,
    ) -> list[Any]:
        check_index(collection, index)
        with self._cursor(f"range {collection.value}.{index}") as conn:
            rows = conn.execute(
                f"SELECT data FROM {collection.value} "
                f"WHERE {_column(index)} BETWEEN ? AND ? ORDER BY rowid",
                (_sql_value(lower), _sql_value(upper)),
            ).fetchall()
        return [self._row_to_record(collection, row[0]) for row in rows]

    async def clear(self, collection: Collection) -> int:
        with self._cursor(f"clear {collection.value}") as conn:
            cursor = conn.execute(f"DELETE FROM {collection.value}")
            return cursor.rowcount

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        self._closed = True
