"""
Utils package
"""

from .dates import (
    CalendarDate,
    add_months,
    make_local_date,
    month_window,
    parse_calendar_date,
    same_month,
)

__all__ = [
    "CalendarDate",
    "add_months",
    "make_local_date",
    "month_window",
    "parse_calendar_date",
    "same_month",
]
