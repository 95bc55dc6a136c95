"""
Calendar helpers shared by the penalty and notice-period calculators.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string.

    Raises ``ValueError`` for anything else, including other layouts
    (``2024-6-1``) and impossible dates (``2024-02-30``).
    """
    value = (value or "").strip()
    if not _ISO_DATE.match(value):
        raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD")
    return date.fromisoformat(value)


def last_day_of_month(year: int, month: int) -> date:
    """Return the last calendar day of *month* (1-12) in *year*."""
    return date(year, month, calendar.monthrange(year, month)[1])


def add_months(d: date, months: int) -> date:
    """Shift *d* by whole calendar months, clamping to the month end.

    ``add_months(date(2023, 12, 31), 9)`` is 30 September 2024.
    """
    return d + relativedelta(months=months)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from *start* to *end*.

    A month only counts once the day-of-month of *end* has reached the
    day-of-month of *start*. Returns 0 when *end* is not after *start*.
    """
    if end <= start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(0, months)


def next_working_day(d: date) -> date:
    """First Monday-Friday day strictly after *d*."""
    cur = d + timedelta(days=1)
    while cur.weekday() >= 5:
        cur += timedelta(days=1)
    return cur
