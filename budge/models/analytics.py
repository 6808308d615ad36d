"""
Derived Analytics Models

These are never persisted. They are recomputed from the ledger every time
a summary is requested.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from budge.models.ledger import Transaction, TransactionType


class CategorySpending(BaseModel):
    """Spending in one category over a period, with its monthly budget."""

    category_id: str
    category_name: str = Field(
        default="Unknown",
        description="Name of the category, or 'Unknown' if it no longer exists"
    )
    amount: Decimal = Field(..., ge=0)
    percentage: Decimal = Field(
        ...,
        ge=0,
        description="Share of total expenses (0-100)"
    )
    budget_limit: Optional[Decimal] = Field(
        default=None,
        description="Amount of the monthly budget for this category, if any"
    )
    transaction_count: int = Field(..., ge=0)

    @property
    def over_budget(self) -> bool:
        return self.budget_limit is not None and self.amount > self.budget_limit


class MonthlySummary(BaseModel):
    """
    Income, expenses and savings for a period.

    `category_breakdown` only contains categorised expenses; uncategorised
    ones still count towards `total_expenses`.
    """

    month: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}$",
        description="YYYY-MM"
    )
    period_start: date
    period_end: date
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_savings: Decimal = Decimal("0")
    category_breakdown: list[CategorySpending] = Field(default_factory=list)


class BudgetStatus(BaseModel):
    """How much of a category's budget has been used."""

    spent: Decimal = Decimal("0")
    limit: Optional[Decimal] = None
    remaining: Optional[Decimal] = None
    percentage: Optional[Decimal] = None
    exceeded: bool = False


class TransactionFilters(BaseModel):
    """Optional filters applied when listing transactions. All are ANDed."""

    type: Optional[TransactionType] = None
    category: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search_term: Optional[str] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None

    @model_validator(mode='after')
    def validate_ranges(self) -> 'TransactionFilters':
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.max_amount < self.min_amount
        ):
            raise ValueError("Maximum amount cannot be below minimum amount")
        return self


class DayGroup(BaseModel):
    """Transactions of one calendar day with their signed net total."""

    day: date
    transactions: list[Transaction] = Field(default_factory=list)
    net_total: Decimal = Decimal("0")
