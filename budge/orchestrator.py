"""
Main Orchestrator for Budge

This module ties together all the components. The store is constructed
exactly once here and handed to every service that needs persistence.
Nothing else opens a store.

DESIGN DECISION: Services never reach for a global store handle.
Tests build their own components around an in-memory store.
"""

from dataclasses import dataclass
from typing import Optional

from budge.alerts import AlertService
from budge.analytics import AnalyticsService
from budge.audit import AuditLogger, configure_logging
from budge.config import Settings, get_settings
from budge.ledger import (
    BalanceLedger,
    BudgetFlow,
    CategoryFlow,
    IncomeFlow,
    ProfileFlow,
    SubscriptionFlow,
    TransactionFlow,
)
from budge.services.storage import (
    InMemoryLedgerStore,
    LedgerStoreInterface,
    SQLiteLedgerStore,
)
from budge.validation import LedgerValidator


@dataclass
class AppComponents:
    """Every service of one session, sharing a single store."""
    store: LedgerStoreInterface
    audit_logger: AuditLogger
    validator: LedgerValidator
    balance: BalanceLedger
    profile: ProfileFlow
    transactions: TransactionFlow
    subscriptions: SubscriptionFlow
    income: IncomeFlow
    categories: CategoryFlow
    budgets: BudgetFlow
    alerts: AlertService
    analytics: AnalyticsService

    async def close(self) -> None:
        await self.store.close()


def create_store(settings: Optional[Settings] = None) -> LedgerStoreInterface:
    """Construct the store backend selected in the storage settings."""
    storage = (settings or get_settings()).storage
    if storage.backend == "memory":
        return InMemoryLedgerStore()
    return SQLiteLedgerStore(
        db_path=storage.db_path,
        timeout_seconds=storage.connect_timeout_seconds,
        connect_attempts=storage.connect_attempts,
    )


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[LedgerStoreInterface] = None,
    configure_logs: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to the cached settings)
        store: Existing store to wire in. Built from settings if omitted.
        configure_logs: Whether to (re)configure logging from settings

    Returns:
        AppComponents sharing one store, validator and audit logger
    """
    settings = settings or get_settings()
    app = settings.app

    if configure_logs:
        configure_logging(level=app.log_level, json_logs=app.log_json)

    store = store or create_store(settings)
    audit_logger = AuditLogger()
    validator = LedgerValidator(max_amount=app.max_amount)
    balance = BalanceLedger(store, audit_logger)

    transactions = TransactionFlow(
        store, balance=balance, validator=validator, audit_logger=audit_logger
    )

    return AppComponents(
        store=store,
        audit_logger=audit_logger,
        validator=validator,
        balance=balance,
        profile=ProfileFlow(store, validator, audit_logger),
        transactions=transactions,
        subscriptions=SubscriptionFlow(
            store, transactions=transactions, validator=validator, audit_logger=audit_logger
        ),
        income=IncomeFlow(
            store, transactions=transactions, validator=validator, audit_logger=audit_logger
        ),
        categories=CategoryFlow(store, validator, audit_logger),
        budgets=BudgetFlow(store, validator, audit_logger),
        alerts=AlertService(
            store, audit_logger, window_days=settings.alerts.window_days
        ),
        analytics=AnalyticsService(store, audit_logger),
    )
