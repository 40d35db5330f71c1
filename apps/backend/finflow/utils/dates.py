"""
Calendar date helpers

All booking dates are naive ``datetime.date`` values: a local calendar day with
no time and no timezone. Every date the engine constructs goes through
``make_local_date`` so stored dates and re-derived occurrence dates always
agree on year, month and day.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta
from typing import NamedTuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser

from finflow.core.config import settings

MIN_YEAR = 1900
MAX_YEAR = 2100

_ISO_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class CalendarDate(NamedTuple):
    year: int
    month: int
    day: int


def parse_calendar_date(value: object) -> CalendarDate | None:
    """
    Parse heterogeneous input into a (year, month, day) triple.

    - ``date`` / ``datetime``: components are taken as-is
    - ``"YYYY-MM-DD"``: fast path, year 1900-2100, month 1-12, day 1-31
      (the day is not checked against the month length)
    - any other string: parsed with ``dateutil``

    Returns ``None`` when the input cannot be understood.

    Example:
        >>> parse_calendar_date("2024-02-31")
        CalendarDate(year=2024, month=2, day=31)
        >>> parse_calendar_date("not a date") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return CalendarDate(value.year, value.month, value.day)
    if isinstance(value, date):
        return CalendarDate(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if _ISO_DAY_RE.match(text):
        year, month, day = (int(part) for part in text.split("-"))
        if not (MIN_YEAR <= year <= MAX_YEAR) or not (1 <= month <= 12) or not (1 <= day <= 31):
            return None
        return CalendarDate(year, month, day)

    try:
        parsed = date_parser.parse(text)
    except (ValueError, OverflowError):
        return None
    if not (MIN_YEAR <= parsed.year <= MAX_YEAR):
        return None
    return CalendarDate(parsed.year, parsed.month, parsed.day)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def make_local_date(year: int, month: int, day: int) -> date:
    """Build the canonical local date, clamping ``day`` to the month's last day."""
    return date(year, month, max(1, min(day, days_in_month(year, month))))


def add_months(year: int, month: int, delta: int) -> tuple[int, int]:
    total = year * 12 + (month - 1) + delta
    return total // 12, total % 12 + 1


def month_window(year: int, month: int) -> tuple[date, date]:
    """Half-open ``[first day, first day of next month)`` window."""
    next_year, next_month = add_months(year, month, 1)
    return date(year, month, 1), date(next_year, next_month, 1)


def month_key(value: date) -> tuple[int, int]:
    return value.year, value.month


def same_month(value: date | None, year: int, month: int) -> bool:
    return value is not None and value.year == year and value.month == month


def month_index(year: int, month: int) -> int:
    """Monotonic month counter; handy for comparing (year, month) pairs."""
    return year * 12 + (month - 1)


def today_local() -> date:
    try:
        zone = ZoneInfo(settings.TIMEZONE)
    except ZoneInfoNotFoundError:
        zone = ZoneInfo("UTC")
    return datetime.now(zone).date()


def last_day_of_month(value: date) -> date:
    _, end = month_window(value.year, value.month)
    return end - timedelta(days=1)
