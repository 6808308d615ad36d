"""Recurrence calculation."""

from budge.recurrence.calculator import (
    InvalidRecurrenceUnitError,
    RecurrenceUnit,
    next_occurrence,
    to_unit,
)

__all__ = [
    "InvalidRecurrenceUnitError",
    "RecurrenceUnit",
    "next_occurrence",
    "to_unit",
]
