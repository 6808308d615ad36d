"""Payload validation."""

from budge.validation.validator import LedgerValidationError, LedgerValidator

__all__ = ["LedgerValidationError", "LedgerValidator"]
