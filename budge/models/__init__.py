"""
Data Models Package

All Pydantic models used by Budge. Every record in the local store
conforms to one of the ledger models.
"""

from budge.models.ledger import (
    PROFILE_ID,
    Alert,
    BillingCycle,
    Budget,
    BudgetPeriod,
    Category,
    CategoryType,
    IncomeFrequency,
    IncomeSource,
    Profile,
    Subscription,
    Transaction,
    TransactionType,
    generate_id,
)
from budge.models.analytics import (
    BudgetStatus,
    CategorySpending,
    DayGroup,
    MonthlySummary,
    TransactionFilters,
)
from budge.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from budge.models.validation import ValidationIssue, ValidationResult
from budge.models.icons import (
    ICON_RENDERERS,
    CategoryIcon,
    render_icon,
    resolve_icon,
)

__all__ = [
    # Ledger models
    "PROFILE_ID",
    "Alert",
    "BillingCycle",
    "Budget",
    "BudgetPeriod",
    "Category",
    "CategoryType",
    "IncomeFrequency",
    "IncomeSource",
    "Profile",
    "Subscription",
    "Transaction",
    "TransactionType",
    "generate_id",
    # Analytics models
    "BudgetStatus",
    "CategorySpending",
    "DayGroup",
    "MonthlySummary",
    "TransactionFilters",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Icons
    "ICON_RENDERERS",
    "CategoryIcon",
    "render_icon",
    "resolve_icon",
]
