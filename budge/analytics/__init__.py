"""Ledger analytics."""

from budge.analytics.aggregator import (
    AnalyticsService,
    budget_status,
    compute_monthly_summary,
    month_bounds,
    over_budget_categories,
    savings_rate,
    total_spending_by_category,
)

__all__ = [
    "AnalyticsService",
    "budget_status",
    "compute_monthly_summary",
    "month_bounds",
    "over_budget_categories",
    "savings_rate",
    "total_spending_by_category",
]
