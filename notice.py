"""
Statutory notice periods for terminating an employment contract.

Service is counted in whole calendar months from the start date to the
date notice is given. The notice period starts on the first working day
after notice is given and runs for the required number of weeks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Tuple

import config as cfg
from dates import months_between, next_working_day
from logging_config import setup_logger

logger = setup_logger(__name__)


@dataclass
class NoticeResult:
    required_weeks: int
    notice_starts: date
    last_day: date
    service_months: int
    service_years: int
    in_probation: bool

    @property
    def service_label(self) -> str:
        """Service as ``4 years, 4 months``."""
        years, months = divmod(self.service_months, 12)
        parts = []
        if years:
            parts.append(f"{years} year{'s' if years != 1 else ''}")
        parts.append(f"{months} month{'s' if months != 1 else ''}")
        return ", ".join(parts)


def service_period(start: date, notice_date: date) -> Tuple[int, int]:
    """Return ``(months, years)`` of completed service."""
    months = months_between(start, notice_date)
    return months, months // 12


def required_notice_weeks(service_months: int) -> int:
    """Weeks of notice owed after *service_months* of service.

    Up to seven years the bands in ``cfg.NOTICE_BANDS`` apply. Each
    further completed year adds a week, up to ``cfg.NOTICE_MAX_WEEKS``.
    """
    if service_months < 0:
        raise ValueError("Service months cannot be negative")
    if service_months < cfg.PROBATION_MONTHS:
        return 0 if service_months <= 1 else 1

    for limit, weeks in cfg.NOTICE_BANDS:
        if service_months <= limit:
            return weeks

    years = service_months // 12
    extra = years - cfg.NOTICE_LONG_SERVICE_BASE_YEARS
    return min(cfg.NOTICE_MAX_WEEKS, cfg.NOTICE_LONG_SERVICE_BASE_WEEKS + extra)


def calculate_notice_period(
    start: date,
    notice_date: date,
    today: Optional[date] = None,
) -> NoticeResult:
    """Work out the notice owed and the last day of employment.

    Parameters
    ----------
    start : date
        First day of employment. Must not be in the future.
    notice_date : date
        Day notice is given. Must be after *start*.
    today : date, optional
        Reference for the future-date check. Defaults to today.

    Returns
    -------
    NoticeResult
    """
    today = today or date.today()
    if start > today:
        raise ValueError("Start date cannot be in the future")
    if notice_date <= start:
        raise ValueError("Notice date must be after the start date")

    months, years = service_period(start, notice_date)
    weeks = required_notice_weeks(months)
    notice_starts = next_working_day(notice_date)
    last_day = notice_starts + timedelta(days=weeks * 7 - 1)

    logger.debug("Service %d months -> %d weeks notice, last day %s", months, weeks, last_day)
    return NoticeResult(
        required_weeks=weeks,
        notice_starts=notice_starts,
        last_day=last_day,
        service_months=months,
        service_years=years,
        in_probation=months < cfg.PROBATION_MONTHS,
    )
