"""
Two-Stage Validation Pipeline

STAGE 1 - SCHEMA VALIDATION:
- Required fields present
- Amounts numeric and positive
- Enum values known
- Caught by the pydantic models themselves

STAGE 2 - SEMANTIC VALIDATION:
- Absurd amount detection
- Dates that will not behave the way the user expects
  (future-dated transactions, schedules already in the past)

Validation runs before any store write. A payload with errors never
reaches the store, so validation failures cannot leave partial writes.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and the caller decides.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from budge.config import get_settings
from budge.models.ledger import (
    Budget,
    Category,
    IncomeSource,
    Profile,
    Subscription,
    Transaction,
)
from budge.models.validation import ValidationIssue, ValidationResult


ModelT = TypeVar("ModelT", bound=BaseModel)


class LedgerValidationError(ValueError):
    """Raised when a payload fails validation. Nothing was written."""

    def __init__(self, result: ValidationResult):
        self.result = result
        errors = [i.message for i in result.issues if i.severity == "error"]
        super().__init__(
            f"Invalid {result.entity_type}: " + "; ".join(errors)
        )


_ISSUE_TYPES = {
    "missing": "missing",
    "decimal_parsing": "invalid_format",
    "date_from_datetime_parsing": "invalid_format",
    "date_parsing": "invalid_format",
    "enum": "invalid_value",
    "greater_than": "invalid_value",
    "greater_than_equal": "invalid_value",
}


class LedgerValidator:
    """Validates ledger payloads before they are turned into records."""

    def __init__(self, max_amount: Optional[float] = None):
        self._max_amount = Decimal(str(
            max_amount if max_amount is not None else get_settings().app.max_amount
        ))

    def _schema_issues(self, error: ValidationError) -> list[ValidationIssue]:
        issues = []
        for err in error.errors():
            field = ".".join(str(part) for part in err["loc"]) or "__root__"
            issues.append(ValidationIssue(
                field=field,
                issue_type=_ISSUE_TYPES.get(err["type"], "invalid_value"),
                message=f"{field}: {err['msg']}" if field != "__root__" else err["msg"],
                severity="error",
            ))
        return issues

    def _check_amount(self, amount: Decimal) -> list[ValidationIssue]:
        if amount > self._max_amount:
            return [ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount {amount} is larger than the allowed maximum {self._max_amount}",
                severity="error",
                suggested_fix="Check for a misplaced decimal point",
            )]
        return []

    def _semantic_issues(self, record: BaseModel, today: date) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        if hasattr(record, "amount"):
            issues.extend(self._check_amount(record.amount))

        if isinstance(record, Transaction) and record.date > today:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message="Transaction is dated in the future",
                severity="warning",
            ))

        if isinstance(record, Subscription) and record.next_payment_date < today:
            issues.append(ValidationIssue(
                field="next_payment_date",
                issue_type="past_date",
                message="Next payment date is in the past; it only moves forward one cycle per payment",
                severity="warning",
            ))

        if isinstance(record, IncomeSource) and record.is_recurring:
            if record.next_date is None:
                issues.append(ValidationIssue(
                    field="next_date",
                    issue_type="missing",
                    message="Recurring income has no next date and will never be processed",
                    severity="warning",
                ))
            if record.frequency is None:
                issues.append(ValidationIssue(
                    field="frequency",
                    issue_type="missing",
                    message="Recurring income has no frequency; its next date will not advance",
                    severity="warning",
                ))

        return issues

    def validate(
        self,
        model: type[ModelT],
        payload: dict[str, Any],
        entity_type: str,
        today: Optional[date] = None,
    ) -> tuple[ValidationResult, Optional[ModelT]]:
        """
        Run both stages on a payload.

        Returns:
            (result, record) - record is None when schema validation failed
        """
        today = today or date.today()
        try:
            record = model.model_validate(payload)
        except ValidationError as e:
            return ValidationResult(
                entity_type=entity_type,
                schema_valid=False,
                semantic_valid=False,
                is_valid=False,
                issues=self._schema_issues(e),
            ), None

        issues = self._semantic_issues(record, today)
        semantic_valid = not any(i.severity == "error" for i in issues)
        return ValidationResult(
            entity_type=entity_type,
            schema_valid=True,
            semantic_valid=semantic_valid,
            is_valid=semantic_valid,
            issues=issues,
        ), record

    def require_valid(
        self,
        model: type[ModelT],
        payload: dict[str, Any],
        entity_type: str,
        today: Optional[date] = None,
    ) -> ModelT:
        """
        Validate and return the record.

        Raises:
            LedgerValidationError: If either stage reported an error
        """
        result, record = self.validate(model, payload, entity_type, today)
        if not result.is_valid or record is None:
            raise LedgerValidationError(result)
        return record

    # Convenience wrappers, one per record type

    def transaction(self, payload: dict[str, Any], today: Optional[date] = None) -> Transaction:
        return self.require_valid(Transaction, payload, "transaction", today)

    def subscription(self, payload: dict[str, Any], today: Optional[date] = None) -> Subscription:
        return self.require_valid(Subscription, payload, "subscription", today)

    def income_source(self, payload: dict[str, Any], today: Optional[date] = None) -> IncomeSource:
        return self.require_valid(IncomeSource, payload, "income_source", today)

    def budget(self, payload: dict[str, Any]) -> Budget:
        return self.require_valid(Budget, payload, "budget")

    def category(self, payload: dict[str, Any]) -> Category:
        return self.require_valid(Category, payload, "category")

    def profile(self, payload: dict[str, Any]) -> Profile:
        return self.require_valid(Profile, payload, "profile")
