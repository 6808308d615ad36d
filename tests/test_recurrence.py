"""Tests for the recurrence calculator."""

import pytest
from datetime import date, datetime

from budge.models.ledger import BillingCycle, IncomeFrequency
from budge.recurrence import (
    InvalidRecurrenceUnitError,
    RecurrenceUnit,
    next_occurrence,
    to_unit,
)


class TestNextOccurrence:
    """Tests for one-step advancement."""

    def test_daily(self):
        """Test a daily step crosses month ends."""
        assert next_occurrence(date(2024, 1, 31), "daily") == date(2024, 2, 1)

    def test_weekly(self):
        """Test a weekly step adds 7 days."""
        assert next_occurrence(date(2024, 3, 15), BillingCycle.WEEKLY) == date(2024, 3, 22)

    def test_biweekly(self):
        """Test a biweekly step adds 14 days."""
        assert next_occurrence(date(2024, 12, 25), IncomeFrequency.BIWEEKLY) == date(2025, 1, 8)

    def test_monthly_keeps_day_of_month(self):
        """Test a monthly step preserves the day of month."""
        assert next_occurrence(date(2024, 3, 15), "monthly") == date(2024, 4, 15)

    def test_monthly_clamps_to_leap_february(self):
        """Test Jan 31 + 1 month is Feb 29 in a leap year, not Mar 2."""
        assert next_occurrence(date(2024, 1, 31), BillingCycle.MONTHLY) == date(2024, 2, 29)

    def test_monthly_clamps_to_short_february(self):
        """Test Jan 31 + 1 month is Feb 28 in a common year."""
        assert next_occurrence(date(2023, 1, 31), BillingCycle.MONTHLY) == date(2023, 2, 28)

    def test_monthly_clamps_to_thirty_day_month(self):
        """Test Mar 31 + 1 month is Apr 30."""
        assert next_occurrence(date(2024, 3, 31), "monthly") == date(2024, 4, 30)

    def test_yearly_from_leap_day(self):
        """Test Feb 29 + 1 year is Feb 28."""
        assert next_occurrence(date(2024, 2, 29), BillingCycle.YEARLY) == date(2025, 2, 28)

    def test_single_step_only(self):
        """Test a date far in the past advances exactly one unit."""
        assert next_occurrence(date(2020, 1, 1), "monthly") == date(2020, 2, 1)

    def test_datetime_reduced_to_date(self):
        """Test a datetime input yields a plain date."""
        result = next_occurrence(datetime(2024, 3, 15, 23, 30), "daily")
        assert result == date(2024, 3, 16)
        assert type(result) is date

    def test_unknown_unit_rejected(self):
        """Test an unsupported unit raises instead of defaulting."""
        with pytest.raises(InvalidRecurrenceUnitError):
            next_occurrence(date(2024, 3, 15), "fortnightly")

    def test_unknown_unit_is_value_error(self):
        """Test the error is a ValueError."""
        with pytest.raises(ValueError):
            to_unit("quarterly")


class TestToUnit:
    """Tests for unit coercion."""

    def test_billing_cycle_maps_to_unit(self):
        """Test every billing cycle is a recurrence unit."""
        for cycle in BillingCycle:
            assert to_unit(cycle).value == cycle.value

    def test_income_frequency_maps_to_unit(self):
        """Test every income frequency is a recurrence unit."""
        for frequency in IncomeFrequency:
            assert to_unit(frequency).value == frequency.value

    def test_string_value(self):
        """Test plain strings are accepted."""
        assert to_unit("biweekly") == RecurrenceUnit.BIWEEKLY
