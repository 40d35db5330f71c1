"""Recurrence rules for fixed-income / fixed-expense templates.

Pure functions over template rows: no session, no I/O. Both the occurrence
listing and the template history build on these.
"""

from __future__ import annotations

from datetime import date

from finflow import models
from finflow.utils.dates import last_day_of_month, make_local_date, month_index, month_window


def template_anchor(template: models.TransactionModel) -> date:
    """Date the recurrence counts from; legacy templates without ``start_date`` use ``date``."""
    return template.start_date or template.date


def is_in_range(template: models.TransactionModel, year: int, month: int) -> bool:
    target = month_index(year, month)
    anchor = template_anchor(template)
    if target < month_index(anchor.year, anchor.month):
        return False
    if template.end_date is not None and target > month_index(template.end_date.year, template.end_date.month):
        return False
    return True


def should_appear(template: models.TransactionModel, year: int, month: int) -> bool:
    """Whether ``template`` has an occurrence in the given calendar month.

    MONTHLY templates recur every month of their active range, YEARLY ones
    only in the calendar month of their anchor date. ``end_date`` is inclusive
    at month granularity: an end date of 2024-06-15 still yields June 2024.
    """
    if not template.is_fixed or template.recurrence_type is None:
        return False
    if not is_in_range(template, year, month):
        return False
    if template.recurrence_type == models.RecurrenceType.YEARLY:
        return template_anchor(template).month == month
    return True


def occurrence_date(template: models.TransactionModel, year: int, month: int) -> date:
    # Anchor day clamped to the month's last day (31 -> 29 in Feb 2024)
    return make_local_date(year, month, template_anchor(template).day)


def pending_occurrence_id(template_id: int, year: int, month: int) -> str:
    return f"pending-{template_id}-{month}-{year}"


def initial_history_id(template_id: int) -> str:
    return f"initial-{template_id}"


def active_window(year: int, month: int) -> tuple[date, date]:
    """Inclusive ``(first_day, last_day)`` of the month for template lookups."""
    start, _ = month_window(year, month)
    return start, last_day_of_month(start)
