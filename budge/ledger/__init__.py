"""
Ledger Flows

One flow per entity. Every flow is constructed with the shared store;
transaction writes go through the BalanceLedger.
"""

from budge.ledger.balance import BalanceLedger, signed_effect
from budge.ledger.base import LedgerFlow
from budge.ledger.budgets import BudgetFlow
from budge.ledger.categories import (
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    CategoryFlow,
    default_categories,
)
from budge.ledger.income import IncomeFlow
from budge.ledger.profile import ProfileFlow, load_profile
from budge.ledger.subscriptions import (
    MarkPaidResult,
    SubscriptionFlow,
    monthly_subscription_total,
    upcoming_subscriptions,
)
from budge.ledger.transactions import (
    TransactionFlow,
    filter_transactions,
    group_by_day,
)

__all__ = [
    "BalanceLedger",
    "signed_effect",
    "LedgerFlow",
    "BudgetFlow",
    "DEFAULT_EXPENSE_CATEGORIES",
    "DEFAULT_INCOME_CATEGORIES",
    "CategoryFlow",
    "default_categories",
    "IncomeFlow",
    "ProfileFlow",
    "load_profile",
    "MarkPaidResult",
    "SubscriptionFlow",
    "monthly_subscription_total",
    "upcoming_subscriptions",
    "TransactionFlow",
    "filter_transactions",
    "group_by_day",
]
