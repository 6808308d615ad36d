"""
Core Ledger Models for Budge

These models define the strict schemas for every record kept in the
local store. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Round-trip through JSON for on-device persistence
4. Keep money exact (Decimal, never float)

DESIGN DECISION: Calendar fields (payment dates, transaction dates,
alert due dates) are plain dates. Only bookkeeping timestamps carry a
time component, always in UTC.
"""

import random
import string
import time
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from budge.models.icons import CategoryIcon, resolve_icon


PROFILE_ID = "user-profile"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id() -> str:
    """
    Generate a record identifier.

    Epoch milliseconds plus a 9 character base36 suffix. Unique with
    overwhelming probability, but not cryptographically random.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a transaction.

    Only INCOME adds to the balance. SUBSCRIPTION is an expense that was
    recorded by marking a subscription as paid.
    """
    INCOME = "income"
    EXPENSE = "expense"
    SUBSCRIPTION = "subscription"

    @property
    def is_outflow(self) -> bool:
        return self is not TransactionType.INCOME


class BillingCycle(str, Enum):
    """How often a subscription charges."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class IncomeFrequency(str, Enum):
    """How often a recurring income source pays out."""
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class CategoryType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


class BudgetPeriod(str, Enum):
    """
    Budget period.

    NOTE: Monthly analytics only ever consult MONTHLY budgets.
    """
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Profile(BaseModel):
    """
    The single user profile.

    Exactly one exists once onboarding completes. `current_balance` is
    only changed through the balance ledger or an explicit edit.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default=PROFILE_ID,
        description="Fixed identifier of the singleton profile"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    currency: str = Field(
        ...,
        min_length=3,
        max_length=3,
        description="ISO currency code"
    )
    current_balance: Decimal = Field(
        default=Decimal("0"),
        description="Running balance (signed)"
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class Subscription(BaseModel):
    """A recurring charge with a next payment date."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Service name"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Charge per billing cycle"
    )
    billing_cycle: BillingCycle = Field(
        default=BillingCycle.MONTHLY,
        description="Recurrence unit"
    )
    next_payment_date: date = Field(
        ...,
        description="Date of the next charge"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=100,
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Transaction(BaseModel):
    """
    A single ledger entry.

    Immutable once created except through an explicit edit, which the
    balance ledger turns into reverse-old-then-apply-new.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    type: TransactionType
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Always positive; direction comes from `type`"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
    )
    category: Optional[str] = Field(
        default=None,
        description="Category id"
    )
    subcategory: Optional[str] = None
    subscription_id: Optional[str] = None
    income_source_id: Optional[str] = None
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    tags: list[str] = Field(default_factory=list)
    date: date
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode='after')
    def validate_links(self) -> 'Transaction':
        """Links must agree with the direction of the transaction."""
        if self.type == TransactionType.INCOME and self.subscription_id:
            raise ValueError("Income transactions cannot reference a subscription")
        if self.type != TransactionType.INCOME and self.income_source_id:
            raise ValueError("Only income transactions can reference an income source")
        return self


class IncomeSource(BaseModel):
    """An income source, optionally recurring."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    amount: Decimal = Field(
        ...,
        gt=0,
    )
    is_recurring: bool = False
    frequency: Optional[IncomeFrequency] = None
    next_date: Optional[date] = Field(
        default=None,
        description="Next date a recurring payout is due"
    )
    category_id: Optional[str] = None
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Category(BaseModel):
    """Expense or income category."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    type: CategoryType
    icon: Optional[CategoryIcon] = None
    color: Optional[str] = Field(
        default=None,
        pattern=r"^#[0-9a-fA-F]{6}$",
    )
    is_default: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator('icon', mode='before')
    @classmethod
    def resolve_icon_name(cls, v):
        return resolve_icon(v)


class Budget(BaseModel):
    """Spending limit for one category over a period."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    category_id: str = Field(..., min_length=1)
    category_name: str = ""
    amount: Decimal = Field(
        ...,
        gt=0,
    )
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: date
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Alert(BaseModel):
    """
    Due-soon reminder for a subscription.

    Dismissal is one-way. The record is only deleted once its due date
    has passed.
    """

    id: str = Field(default_factory=generate_id)
    subscription_id: str
    subscription_name: str
    amount: Decimal = Field(..., ge=0)
    due_date: date
    days_until_due: int = Field(..., ge=0)
    dismissed: bool = False
    created_at: datetime = Field(default_factory=utcnow)
