"""Tests for the monthly analytics aggregator."""

from datetime import date
from decimal import Decimal

from budge.analytics import (
    AnalyticsService,
    budget_status,
    compute_monthly_summary,
    month_bounds,
    over_budget_categories,
    savings_rate,
    total_spending_by_category,
)
from budge.models.analytics import MonthlySummary
from budge.models.ledger import (
    Budget,
    BudgetPeriod,
    Category,
    CategoryType,
    TransactionType,
)
from budge.services.storage import Collection

from tests.factories import TODAY, make_transaction


MARCH = (date(2024, 3, 1), date(2024, 3, 31))


def food_category() -> Category:
    return Category(id="A", name="Food", type=CategoryType.EXPENSE)


class TestComputeMonthlySummary:
    """Tests for compute_monthly_summary."""

    def test_reference_example(self):
        """Test income 100 with two expenses of 40 and 20 in category A."""
        transactions = [
            make_transaction(TransactionType.INCOME, "100"),
            make_transaction(TransactionType.EXPENSE, "40", category="A"),
            make_transaction(TransactionType.EXPENSE, "20", category="A"),
        ]
        summary = compute_monthly_summary(transactions, [], [food_category()], *MARCH)

        assert summary.total_income == Decimal("100")
        assert summary.total_expenses == Decimal("60")
        assert summary.net_savings == Decimal("40")
        [row] = summary.category_breakdown
        assert row.category_id == "A"
        assert row.category_name == "Food"
        assert row.amount == Decimal("60")
        assert row.percentage == Decimal("100")
        assert row.transaction_count == 2
        assert summary.month == "2024-03"

    def test_period_is_inclusive(self):
        """Test transactions on the first and last day are included."""
        transactions = [
            make_transaction(amount="1", day=date(2024, 3, 1)),
            make_transaction(amount="2", day=date(2024, 3, 31)),
            make_transaction(amount="4", day=date(2024, 2, 29)),
            make_transaction(amount="8", day=date(2024, 4, 1)),
        ]
        summary = compute_monthly_summary(transactions, [], [], *MARCH)

        assert summary.total_expenses == Decimal("3")

    def test_subscription_payments_are_expenses(self):
        """Test subscription transactions count as outflows."""
        transactions = [
            make_transaction(TransactionType.SUBSCRIPTION, "15", category="A"),
            make_transaction(TransactionType.EXPENSE, "5", category="A"),
        ]
        summary = compute_monthly_summary(transactions, [], [], *MARCH)

        assert summary.total_expenses == Decimal("20")
        assert summary.category_breakdown[0].transaction_count == 2

    def test_uncategorised_excluded_from_breakdown(self):
        """Test expenses without a category only count in the totals."""
        transactions = [
            make_transaction(amount="30", category="A"),
            make_transaction(amount="70"),
        ]
        summary = compute_monthly_summary(transactions, [], [], *MARCH)

        assert summary.total_expenses == Decimal("100")
        [row] = summary.category_breakdown
        assert row.amount == Decimal("30")
        assert row.percentage == Decimal("30")

    def test_breakdown_sorted_by_amount(self):
        """Test the largest category comes first."""
        transactions = [
            make_transaction(amount="5", category="small"),
            make_transaction(amount="50", category="big"),
            make_transaction(amount="20", category="mid"),
        ]
        summary = compute_monthly_summary(transactions, [], [], *MARCH)

        assert [r.category_id for r in summary.category_breakdown] == ["big", "mid", "small"]

    def test_unknown_category_name(self):
        """Test a category id with no record is labelled Unknown."""
        summary = compute_monthly_summary(
            [make_transaction(category="deleted")], [], [], *MARCH
        )
        assert summary.category_breakdown[0].category_name == "Unknown"

    def test_no_expenses_gives_zero_percentages(self):
        """Test an income-only month has an empty breakdown and no division error."""
        summary = compute_monthly_summary(
            [make_transaction(TransactionType.INCOME, "500")], [], [], *MARCH
        )
        assert summary.total_expenses == Decimal("0")
        assert summary.category_breakdown == []
        assert summary.net_savings == Decimal("500")

    def test_only_monthly_budgets_consulted(self):
        """Test weekly and yearly budgets are ignored."""
        budgets = [
            Budget(category_id="A", amount=Decimal("10"), period=BudgetPeriod.WEEKLY,
                   start_date=MARCH[0]),
            Budget(category_id="A", amount=Decimal("50"), period=BudgetPeriod.MONTHLY,
                   start_date=MARCH[0]),
            Budget(category_id="A", amount=Decimal("99"), period=BudgetPeriod.MONTHLY,
                   start_date=MARCH[0]),
        ]
        summary = compute_monthly_summary(
            [make_transaction(amount="60", category="A")], budgets, [], *MARCH
        )
        row = summary.category_breakdown[0]

        assert row.budget_limit == Decimal("50")
        assert row.over_budget is True

    def test_exact_decimal_sums(self):
        """Test amounts are summed without float drift."""
        transactions = [
            make_transaction(amount="0.1", category="A"),
            make_transaction(amount="0.2", category="A"),
        ]
        summary = compute_monthly_summary(transactions, [], [], *MARCH)

        assert summary.total_expenses == Decimal("0.3")


class TestSummaryHelpers:
    """Tests for the helpers built on a summary."""

    def _summary(self) -> MonthlySummary:
        budgets = [Budget(category_id="A", amount=Decimal("50"), start_date=MARCH[0])]
        transactions = [
            make_transaction(TransactionType.INCOME, "200"),
            make_transaction(amount="60", category="A"),
            make_transaction(amount="20", category="B"),
        ]
        return compute_monthly_summary(transactions, budgets, [], *MARCH)

    def test_month_bounds_leap_february(self):
        """Test February bounds in a leap year."""
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_budget_status_exceeded(self):
        """Test spent, remaining and percentage against a budget."""
        status = budget_status(self._summary().category_breakdown, "A")

        assert status.spent == Decimal("60")
        assert status.limit == Decimal("50")
        assert status.remaining == Decimal("-10")
        assert status.percentage == Decimal("120")
        assert status.exceeded is True

    def test_budget_status_without_budget(self):
        """Test a category without a budget is never exceeded."""
        status = budget_status(self._summary().category_breakdown, "B")

        assert status.spent == Decimal("20")
        assert status.limit is None
        assert status.exceeded is False

    def test_total_spending_by_category(self):
        """Test lookup of a category's spending, 0 when absent."""
        breakdown = self._summary().category_breakdown
        assert total_spending_by_category(breakdown, "B") == Decimal("20")
        assert total_spending_by_category(breakdown, "Z") == Decimal("0")

    def test_savings_rate(self):
        """Test net savings as a share of income."""
        assert savings_rate(self._summary()) == Decimal("60")

    def test_savings_rate_without_income(self):
        """Test savings rate is 0 when there is no income."""
        summary = compute_monthly_summary([make_transaction()], [], [], *MARCH)
        assert savings_rate(summary) == Decimal("0")

    def test_over_budget_categories(self):
        """Test only categories over their limit are listed."""
        assert [s.category_id for s in over_budget_categories(self._summary())] == ["A"]


class TestAnalyticsService:
    """Tests for the store-backed analytics service."""

    async def test_monthly_summary_from_store(self, store):
        """Test the service summarises only the requested month."""
        await store.add(Collection.CATEGORIES, food_category())
        await store.add(Collection.TRANSACTIONS, make_transaction(TransactionType.INCOME, "100"))
        await store.add(Collection.TRANSACTIONS, make_transaction(amount="40", category="A"))
        await store.add(Collection.TRANSACTIONS, make_transaction(
            amount="999", category="A", day=date(2024, 2, 1)
        ))
        service = AnalyticsService(store)

        summary = await service.monthly_summary(TODAY)

        assert summary.month == "2024-03"
        assert summary.total_income == Decimal("100")
        assert summary.total_expenses == Decimal("40")
        assert summary.category_breakdown[0].category_name == "Food"

    async def test_budget_status_from_store(self, store):
        """Test budget status reads the monthly budget."""
        await store.add(Collection.BUDGETS, Budget(
            category_id="A", amount=Decimal("30"), start_date=MARCH[0]
        ))
        await store.add(Collection.TRANSACTIONS, make_transaction(amount="40", category="A"))

        status = await AnalyticsService(store).budget_status("A", TODAY)

        assert status.exceeded is True
        assert status.remaining == Decimal("-10")

    async def test_storage_failure_returns_last_summary(self, store):
        """Test a failed load falls back to the previous summary."""
        await store.add(Collection.TRANSACTIONS, make_transaction(amount="40"))
        service = AnalyticsService(store)
        first = await service.monthly_summary(TODAY)

        await store.close()

        assert await service.monthly_summary(TODAY) == first

    async def test_storage_failure_without_snapshot(self, store):
        """Test a failed first load returns None."""
        await store.close()
        assert await AnalyticsService(store).monthly_summary(TODAY) is None

    async def test_storage_failure_does_not_cross_months(self, store):
        """Test the fallback only returns a summary for the requested month."""
        await store.add(Collection.TRANSACTIONS, make_transaction(amount="40"))
        service = AnalyticsService(store)
        march = await service.monthly_summary(TODAY)

        await store.close()

        assert await service.monthly_summary(date(2024, 4, 10)) is None
        assert await service.monthly_summary(TODAY) == march
        status = await service.budget_status("A", date(2024, 4, 10))
        assert status.spent == Decimal("0")
