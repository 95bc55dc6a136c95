"""
Unit tests for the notice period calculator.
"""

import pytest
from datetime import date

from notice import calculate_notice_period, required_notice_weeks, service_period


class TestRequiredWeeks:
    @pytest.mark.parametrize("months,weeks", [
        (0, 0), (1, 0), (2, 1), (6, 1), (7, 2), (24, 2), (25, 4), (48, 4),
        (49, 8), (84, 8), (85, 8), (96, 9), (120, 11), (132, 12), (240, 12),
    ])
    def test_bands(self, months, weeks):
        assert required_notice_weeks(months) == weeks

    def test_never_decreases(self):
        weeks = [required_notice_weeks(m) for m in range(0, 400)]
        assert weeks == sorted(weeks)

    def test_negative_service(self):
        with pytest.raises(ValueError):
            required_notice_weeks(-1)


class TestNoticePeriod:
    TODAY = date(2024, 6, 10)

    def test_long_service(self):
        r = calculate_notice_period(date(2020, 1, 15), date(2024, 6, 10), today=self.TODAY)
        assert r.service_months == 52
        assert r.service_years == 4
        assert r.service_label == "4 years, 4 months"
        assert r.required_weeks == 8
        assert r.notice_starts == date(2024, 6, 11)
        assert r.last_day == date(2024, 8, 5)
        assert not r.in_probation

    def test_within_first_month(self):
        r = calculate_notice_period(date(2024, 1, 10), date(2024, 2, 5), today=self.TODAY)
        assert r.service_months == 0
        assert r.required_weeks == 0
        assert r.in_probation
        assert r.notice_starts == date(2024, 2, 6)
        assert r.last_day == date(2024, 2, 5)

    def test_notice_given_on_friday(self):
        r = calculate_notice_period(date(2023, 1, 2), date(2023, 6, 9), today=self.TODAY)
        assert r.required_weeks == 1
        assert r.notice_starts == date(2023, 6, 12)
        assert r.last_day == date(2023, 6, 18)

    def test_notice_date_may_be_in_future(self):
        r = calculate_notice_period(date(2024, 1, 1), date(2024, 12, 31), today=self.TODAY)
        assert r.service_months == 11

    def test_start_in_future_rejected(self):
        with pytest.raises(ValueError, match="future"):
            calculate_notice_period(date(2024, 7, 1), date(2024, 8, 1), today=self.TODAY)

    def test_notice_not_after_start_rejected(self):
        with pytest.raises(ValueError, match="after the start date"):
            calculate_notice_period(date(2024, 1, 1), date(2024, 1, 1), today=self.TODAY)

    def test_service_period(self):
        assert service_period(date(2010, 3, 1), date(2024, 3, 1)) == (168, 14)
