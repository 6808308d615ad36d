"""
Recurrence Calculator

Maps (date, unit) to the next occurrence, one unit ahead.

Month and year steps use calendar arithmetic with month-end clamping:
Jan 31 + 1 month is Feb 28 (or 29), never Mar 3.

Callers advance a schedule by exactly one step per event (a subscription
marked paid, a recurring income processed). A schedule that fell several
periods behind is NOT caught up here.
"""

from datetime import date, datetime
from enum import Enum
from typing import Union

from dateutil.relativedelta import relativedelta


class RecurrenceUnit(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class InvalidRecurrenceUnitError(ValueError):
    """The unit is not one of the supported recurrence units."""
    pass


_STEPS: dict[RecurrenceUnit, relativedelta] = {
    RecurrenceUnit.DAILY: relativedelta(days=1),
    RecurrenceUnit.WEEKLY: relativedelta(weeks=1),
    RecurrenceUnit.BIWEEKLY: relativedelta(weeks=2),
    RecurrenceUnit.MONTHLY: relativedelta(months=1),
    RecurrenceUnit.YEARLY: relativedelta(years=1),
}


def to_unit(unit: Union[str, Enum]) -> RecurrenceUnit:
    """
    Coerce a billing cycle, income frequency or plain string to a unit.

    Raises:
        InvalidRecurrenceUnitError: For anything outside the supported set
    """
    raw = unit.value if isinstance(unit, Enum) else unit
    try:
        return RecurrenceUnit(raw)
    except ValueError:
        raise InvalidRecurrenceUnitError(f"Unsupported recurrence unit: {unit!r}")


def next_occurrence(value: Union[date, datetime], unit: Union[str, Enum]) -> date:
    """
    Return the date exactly one `unit` after `value`.

    Datetimes are reduced to their calendar date first.
    """
    if isinstance(value, datetime):
        value = value.date()
    return value + _STEPS[to_unit(unit)]
