"""
Monthly Analytics

Derives income, expense and savings totals plus a per-category
breakdown from the raw transaction ledger.

Numbers are exact Decimal sums of the stored amounts. Nothing is rounded
here; rounding to 2 places happens only when values are displayed.

KNOWN LIMITATIONS (kept on purpose):
- Expenses without a category count towards total_expenses but do not
  appear in the category breakdown.
- Only MONTHLY budgets are consulted, whatever the period asked for.
"""

import calendar
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from budge.audit import AuditLogger
from budge.models.analytics import BudgetStatus, CategorySpending, MonthlySummary
from budge.models.ledger import (
    Budget,
    BudgetPeriod,
    Category,
    Transaction,
    TransactionType,
)
from budge.services.storage import Collection, LedgerStoreInterface, StorageError


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing `day`."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def compute_monthly_summary(
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
    categories: Iterable[Category],
    period_start: date,
    period_end: date,
    month: Optional[str] = None,
) -> MonthlySummary:
    """
    Summarise the transactions dated within [period_start, period_end].

    Args:
        transactions: Candidate transactions (filtered here by date)
        budgets: All budgets; the first monthly one per category is used
        categories: Used to name the breakdown rows
        period_start: First day included
        period_end: Last day included
        month: YYYY-MM label, defaults to the month of period_start
    """
    in_period = [t for t in transactions if period_start <= t.date <= period_end]

    total_income = sum(
        (t.amount for t in in_period if t.type == TransactionType.INCOME), ZERO
    )
    outflows = [t for t in in_period if t.type.is_outflow]
    total_expenses = sum((t.amount for t in outflows), ZERO)

    amounts: dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[str, int] = defaultdict(int)
    for t in outflows:
        if not t.category:
            continue
        amounts[t.category] += t.amount
        counts[t.category] += 1

    names = {c.id: c.name for c in categories}
    monthly_limits: dict[str, Decimal] = {}
    for b in budgets:
        if b.period == BudgetPeriod.MONTHLY:
            monthly_limits.setdefault(b.category_id, b.amount)

    breakdown = [
        CategorySpending(
            category_id=category_id,
            category_name=names.get(category_id, "Unknown"),
            amount=amount,
            percentage=(amount / total_expenses * HUNDRED) if total_expenses > 0 else ZERO,
            budget_limit=monthly_limits.get(category_id),
            transaction_count=counts[category_id],
        )
        for category_id, amount in amounts.items()
    ]
    breakdown.sort(key=lambda s: s.amount, reverse=True)

    return MonthlySummary(
        month=month or period_start.strftime("%Y-%m"),
        period_start=period_start,
        period_end=period_end,
        total_income=total_income,
        total_expenses=total_expenses,
        net_savings=total_income - total_expenses,
        category_breakdown=breakdown,
    )


def total_spending_by_category(
    breakdown: Iterable[CategorySpending],
    category_id: str,
) -> Decimal:
    for spending in breakdown:
        if spending.category_id == category_id:
            return spending.amount
    return ZERO


def budget_status(
    breakdown: Iterable[CategorySpending],
    category_id: str,
) -> BudgetStatus:
    """
    Spent / limit / remaining for one category.

    Without a (non-zero) budget only `spent` is filled in and the
    category is never reported as exceeded.
    """
    spending = next((s for s in breakdown if s.category_id == category_id), None)
    spent = spending.amount if spending else ZERO
    limit = spending.budget_limit if spending else None

    if not limit:
        return BudgetStatus(spent=spent, exceeded=False)

    return BudgetStatus(
        spent=spent,
        limit=limit,
        remaining=limit - spent,
        percentage=spent / limit * HUNDRED,
        exceeded=spent > limit,
    )


def savings_rate(summary: MonthlySummary) -> Decimal:
    """Net savings as a percentage of income (0 without income)."""
    if summary.total_income > 0:
        return summary.net_savings / summary.total_income * HUNDRED
    return ZERO


def over_budget_categories(summary: MonthlySummary) -> list[CategorySpending]:
    return [s for s in summary.category_breakdown if s.over_budget]


class AnalyticsService:
    """Loads what a monthly summary needs from the store and computes it."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()
        # Last good summary per "YYYY-MM"
        self._snapshots: dict[str, MonthlySummary] = {}

    async def monthly_summary(self, month: Optional[date] = None) -> Optional[MonthlySummary]:
        """
        Summary for the month containing `month` (default: this month).

        On a storage failure the last good summary for that same month is
        returned, which is None if there never was one.
        """
        target = month or date.today()
        key = target.strftime("%Y-%m")
        start, end = month_bounds(target)
        try:
            transactions = await self._store.get_by_range(
                Collection.TRANSACTIONS, "date", start, end
            )
            budgets = await self._store.list_all(Collection.BUDGETS)
            categories = await self._store.list_all(Collection.CATEGORIES)
        except StorageError as e:
            self._audit.log_storage_error("monthly summary", e)
            return self._snapshots.get(key)

        summary = compute_monthly_summary(
            transactions, budgets, categories, start, end, month=key,
        )
        self._snapshots[key] = summary
        return summary

    async def budget_status(
        self,
        category_id: str,
        month: Optional[date] = None,
    ) -> BudgetStatus:
        summary = await self.monthly_summary(month)
        breakdown = summary.category_breakdown if summary else []
        return budget_status(breakdown, category_id)
