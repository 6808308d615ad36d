"""
Shared fixtures.

Every test gets its own in-memory store; no test touches the user's
database or the network.
"""

from decimal import Decimal

import pytest

from budge.config import get_settings
from budge.orchestrator import create_app_components
from budge.services.storage import InMemoryLedgerStore


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    """Isolate settings from the developer's environment and .env file."""
    monkeypatch.chdir(tmp_path)
    for name in ("BUDGE_STORAGE_BACKEND", "BUDGE_STORAGE_DB_PATH", "BUDGE_ALERTS_WINDOW_DAYS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def app(store):
    return create_app_components(store=store, configure_logs=False)


@pytest.fixture
async def onboarded(app):
    """Components with a profile whose opening balance is 1000."""
    await app.profile.create_profile({
        "name": "Sam",
        "currency": "usd",
        "current_balance": Decimal("1000"),
    })
    return app

