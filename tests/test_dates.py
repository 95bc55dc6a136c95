"""
Unit tests for the calendar helpers.
"""

import pytest
from datetime import date

from dates import add_months, last_day_of_month, months_between, next_working_day, parse_iso_date


class TestParseIsoDate:
    def test_valid_date(self):
        assert parse_iso_date("2024-06-01") == date(2024, 6, 1)

    def test_surrounding_whitespace_ignored(self):
        assert parse_iso_date(" 2024-06-01 ") == date(2024, 6, 1)

    @pytest.mark.parametrize("value", ["2024-6-1", "01/06/2024", "2024-02-30", "", "tomorrow"])
    def test_invalid_dates_rejected(self, value):
        with pytest.raises(ValueError):
            parse_iso_date(value)


class TestMonthArithmetic:
    def test_last_day_of_month_leap_year(self):
        assert last_day_of_month(2024, 2) == date(2024, 2, 29)
        assert last_day_of_month(2023, 2) == date(2023, 2, 28)

    def test_add_months_clamps_to_month_end(self):
        assert add_months(date(2023, 12, 31), 9) == date(2024, 9, 30)
        assert add_months(date(2023, 12, 31), 18) == date(2025, 6, 30)

    def test_months_between_rounds_down_on_day_of_month(self):
        assert months_between(date(2020, 1, 15), date(2024, 6, 10)) == 52
        assert months_between(date(2020, 1, 15), date(2024, 6, 15)) == 53

    def test_months_between_not_after_start(self):
        assert months_between(date(2024, 1, 1), date(2024, 1, 1)) == 0
        assert months_between(date(2024, 5, 1), date(2024, 1, 1)) == 0

    def test_months_between_under_a_month(self):
        assert months_between(date(2023, 9, 30), date(2023, 10, 1)) == 0


class TestNextWorkingDay:
    def test_monday_goes_to_tuesday(self):
        assert next_working_day(date(2024, 6, 10)) == date(2024, 6, 11)

    def test_friday_skips_weekend(self):
        assert next_working_day(date(2024, 6, 14)) == date(2024, 6, 17)

    def test_saturday_goes_to_monday(self):
        assert next_working_day(date(2024, 6, 15)) == date(2024, 6, 17)
