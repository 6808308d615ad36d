"""Tests for component wiring."""

from decimal import Decimal

from budge.config import get_settings
from budge.orchestrator import create_app_components
from budge.services.storage import Collection, InMemoryLedgerStore, SQLiteLedgerStore

from tests.factories import TODAY


class TestCreateAppComponents:
    """Tests for create_app_components."""

    def test_single_shared_store(self):
        """Test every service is handed the same store."""
        store = InMemoryLedgerStore()
        app = create_app_components(store=store, configure_logs=False)

        for flow in (app.profile, app.transactions, app.subscriptions,
                     app.income, app.categories, app.budgets):
            assert flow.store is store

    def test_store_built_from_settings(self, monkeypatch):
        """Test the backend comes from settings when no store is passed."""
        monkeypatch.setenv("BUDGE_STORAGE_BACKEND", "memory")
        get_settings.cache_clear()

        app = create_app_components(configure_logs=False)
        assert isinstance(app.store, InMemoryLedgerStore)

    async def test_end_to_end_session(self, tmp_path, monkeypatch):
        """Test onboarding, seeding, paying and summarising on SQLite."""
        monkeypatch.setenv("BUDGE_STORAGE_DB_PATH", str(tmp_path / "session.db"))
        get_settings.cache_clear()
        app = create_app_components(configure_logs=False)

        await app.profile.create_profile({"name": "Sam", "currency": "USD",
                                          "current_balance": "100"})
        await app.categories.initialize_defaults()
        sub = await app.subscriptions.create({
            "name": "Video", "amount": "12", "next_payment_date": TODAY,
        }, today=TODAY)

        [alert] = await app.alerts.refresh(today=TODAY)
        await app.subscriptions.mark_as_paid(sub.id, today=TODAY)
        summary = await app.analytics.monthly_summary(TODAY)
        profile = await app.profile.get_profile()
        await app.close()

        assert alert.subscription_id == sub.id
        assert profile.current_balance == Decimal("88")
        assert summary.total_expenses == Decimal("12")
        assert len(await _reopen_transactions(tmp_path / "session.db")) == 1


async def _reopen_transactions(path):
    store = SQLiteLedgerStore(db_path=path)
    try:
        return await store.list_all(Collection.TRANSACTIONS)
    finally:
        await store.close()
