"""
Tests for the ledger store backends.

The same behaviour is checked against the in-memory store and a SQLite
database in a temporary directory.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from budge.models.icons import CategoryIcon
from budge.models.ledger import (
    Alert,
    Category,
    CategoryType,
    IncomeFrequency,
    IncomeSource,
    Profile,
    TransactionType,
)
from budge.config import get_settings
from budge.orchestrator import create_store
from budge.services.storage import (
    Collection,
    DuplicateError,
    InMemoryLedgerStore,
    NotFoundError,
    QuotaExceededError,
    SQLiteLedgerStore,
    StorageError,
    StoreUnavailableError,
)

from tests.factories import TODAY, make_subscription, make_transaction


@pytest.fixture(params=["memory", "sqlite"])
def backend(request, tmp_path):
    if request.param == "memory":
        return InMemoryLedgerStore()
    return SQLiteLedgerStore(db_path=tmp_path / "ledger.db")


class TestStoreContract:
    """Behaviour every backend shares."""

    async def test_add_and_get_round_trip(self, backend):
        """Test a record comes back equal to what was stored."""
        t = make_transaction(
            TransactionType.EXPENSE, "12.34", category="food",
            notes="lunch", tags=["work"],
        )
        await backend.add(Collection.TRANSACTIONS, t)

        assert await backend.get(Collection.TRANSACTIONS, t.id) == t

    async def test_get_missing(self, backend):
        """Test a missing id gives None."""
        assert await backend.get(Collection.TRANSACTIONS, "nope") is None

    async def test_add_duplicate(self, backend):
        """Test adding the same id twice fails."""
        t = make_transaction()
        await backend.add(Collection.TRANSACTIONS, t)
        with pytest.raises(DuplicateError):
            await backend.add(Collection.TRANSACTIONS, t)

    async def test_update_missing(self, backend):
        """Test updating an unknown record fails."""
        with pytest.raises(NotFoundError):
            await backend.update(Collection.TRANSACTIONS, make_transaction())

    async def test_update_replaces_index_values(self, backend):
        """Test index lookups follow an update."""
        t = make_transaction(category="old")
        await backend.add(Collection.TRANSACTIONS, t)
        t.category = "new"
        await backend.update(Collection.TRANSACTIONS, t)

        assert await backend.get_by_index(Collection.TRANSACTIONS, "category", "old") == []
        assert len(await backend.get_by_index(Collection.TRANSACTIONS, "category", "new")) == 1

    async def test_put_inserts_then_replaces(self, backend):
        """Test put works with and without an existing record."""
        profile = Profile(name="Sam", currency="USD")
        await backend.put(Collection.PROFILE, profile)
        profile.current_balance = Decimal("-12.5")
        await backend.put(Collection.PROFILE, profile)

        [stored] = await backend.list_all(Collection.PROFILE)
        assert stored.current_balance == Decimal("-12.5")

    async def test_delete(self, backend):
        """Test delete reports whether something was removed."""
        t = make_transaction()
        await backend.add(Collection.TRANSACTIONS, t)

        assert await backend.delete(Collection.TRANSACTIONS, t.id) is True
        assert await backend.delete(Collection.TRANSACTIONS, t.id) is False

    async def test_list_all_insertion_order(self, backend):
        """Test list_all keeps insertion order."""
        ids = []
        for i in range(3):
            t = make_transaction(description=f"t{i}")
            ids.append(t.id)
            await backend.add(Collection.TRANSACTIONS, t)

        assert [t.id for t in await backend.list_all(Collection.TRANSACTIONS)] == ids

    async def test_enum_and_bool_indexes(self, backend):
        """Test lookups on enum and boolean indexed fields."""
        await backend.add(Collection.TRANSACTIONS, make_transaction(TransactionType.INCOME))
        await backend.add(Collection.TRANSACTIONS, make_transaction(TransactionType.EXPENSE))
        await backend.add(Collection.ALERTS, Alert(
            subscription_id="s", subscription_name="S", amount=Decimal("1"),
            due_date=TODAY, days_until_due=0, dismissed=True,
        ))

        income = await backend.get_by_index(Collection.TRANSACTIONS, "type", TransactionType.INCOME)
        assert [t.type for t in income] == [TransactionType.INCOME]
        assert await backend.get_by_index(Collection.ALERTS, "dismissed", False) == []
        assert len(await backend.get_by_index(Collection.ALERTS, "dismissed", True)) == 1

    async def test_none_index_value(self, backend):
        """Test a None lookup matches records without a value."""
        await backend.add(Collection.TRANSACTIONS, make_transaction())
        await backend.add(Collection.TRANSACTIONS, make_transaction(subscription_id="s1"))

        assert len(await backend.get_by_index(Collection.TRANSACTIONS, "subscription_id", None)) == 1

    async def test_date_range_inclusive(self, backend):
        """Test range queries include both bounds."""
        for offset in range(-2, 3):
            await backend.add(
                Collection.TRANSACTIONS, make_transaction(day=TODAY + timedelta(days=offset))
            )

        results = await backend.get_by_range(
            Collection.TRANSACTIONS, "date", TODAY - timedelta(days=1), TODAY + timedelta(days=1)
        )
        assert sorted(t.date for t in results) == [
            TODAY - timedelta(days=1), TODAY, TODAY + timedelta(days=1),
        ]

    async def test_range_skips_missing_values(self, backend):
        """Test records without the field never match a range."""
        await backend.add(Collection.INCOME_SOURCES, IncomeSource(name="None", amount=Decimal("1")))
        await backend.add(Collection.INCOME_SOURCES, IncomeSource(
            name="Due", amount=Decimal("1"), is_recurring=True,
            frequency=IncomeFrequency.MONTHLY, next_date=TODAY,
        ))

        results = await backend.get_by_range(
            Collection.INCOME_SOURCES, "next_date", date(2000, 1, 1), TODAY
        )
        assert [s.name for s in results] == ["Due"]

    async def test_unknown_index(self, backend):
        """Test querying an undeclared index fails."""
        with pytest.raises(StorageError):
            await backend.get_by_index(Collection.TRANSACTIONS, "description", "x")

    async def test_wrong_record_type(self, backend):
        """Test a record of the wrong model is refused."""
        with pytest.raises(StorageError):
            await backend.add(Collection.TRANSACTIONS, make_subscription("Wrong", 1))

    async def test_clear(self, backend):
        """Test clear empties a collection and reports the count."""
        for _ in range(2):
            await backend.add(Collection.TRANSACTIONS, make_transaction())
        await backend.add(Collection.SUBSCRIPTIONS, make_subscription("Keep", 1))

        assert await backend.clear(Collection.TRANSACTIONS) == 2
        assert await backend.list_all(Collection.TRANSACTIONS) == []
        assert len(await backend.list_all(Collection.SUBSCRIPTIONS)) == 1

    async def test_returned_records_are_copies(self, backend):
        """Test mutating a fetched record does not change the store."""
        sub = make_subscription("Copy", 1)
        await backend.add(Collection.SUBSCRIPTIONS, sub)
        fetched = await backend.get(Collection.SUBSCRIPTIONS, sub.id)
        fetched.amount = Decimal("1000")

        assert (await backend.get(Collection.SUBSCRIPTIONS, sub.id)).amount == sub.amount

    async def test_closed_store_unavailable(self, backend):
        """Test every call fails once the store is closed."""
        await backend.close()
        with pytest.raises(StoreUnavailableError):
            await backend.list_all(Collection.TRANSACTIONS)


class TestSQLiteLedgerStore:
    """SQLite specifics."""

    async def test_data_survives_reopen(self, tmp_path):
        """Test records persist across store instances."""
        path = tmp_path / "persist.db"
        first = SQLiteLedgerStore(db_path=path)
        category = Category(
            name="Travel", type=CategoryType.EXPENSE, icon="Plane", color="#14b8a6",
        )
        await first.add(Collection.CATEGORIES, category)
        await first.close()

        second = SQLiteLedgerStore(db_path=path)
        [stored] = await second.get_by_index(Collection.CATEGORIES, "type", CategoryType.EXPENSE)
        await second.close()

        assert stored.icon == CategoryIcon.PLANE
        assert stored == category

    async def test_creates_parent_directory(self, tmp_path):
        """Test the database directory is created on first use."""
        path = tmp_path / "nested" / "dir" / "ledger.db"
        store = SQLiteLedgerStore(db_path=path)
        await store.list_all(Collection.PROFILE)
        await store.close()

        assert path.exists()

    async def test_unopenable_path(self, tmp_path):
        """Test a path that cannot be opened maps to StoreUnavailableError."""
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        store = SQLiteLedgerStore(db_path=blocker / "ledger.db", connect_attempts=1)

        with pytest.raises(StoreUnavailableError):
            await store.list_all(Collection.PROFILE)


class TestInMemoryLedgerStore:
    """In-memory specifics."""

    async def test_quota(self):
        """Test the record quota raises QuotaExceededError."""
        store = InMemoryLedgerStore(max_records=1)
        await store.add(Collection.TRANSACTIONS, make_transaction())

        with pytest.raises(QuotaExceededError):
            await store.add(Collection.TRANSACTIONS, make_transaction())


class TestCreateStore:
    """Tests for backend selection."""

    def test_memory_backend(self, monkeypatch):
        """Test the memory backend is selectable from the environment."""
        monkeypatch.setenv("BUDGE_STORAGE_BACKEND", "memory")
        get_settings.cache_clear()

        assert isinstance(create_store(), InMemoryLedgerStore)

    def test_sqlite_backend(self, monkeypatch, tmp_path):
        """Test the SQLite backend uses the configured path."""
        monkeypatch.setenv("BUDGE_STORAGE_DB_PATH", str(tmp_path / "x.db"))
        get_settings.cache_clear()

        store = create_store()
        assert isinstance(store, SQLiteLedgerStore)
        assert store.db_path == tmp_path / "x.db"
