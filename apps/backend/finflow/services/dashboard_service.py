from __future__ import annotations

from collections import defaultdict
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from finflow import models
from finflow.core.cache import OccurrenceCache
from finflow.schemas import (
    DashboardCategoryItem,
    DashboardMonthItem,
    DashboardOut,
    OccurrenceQuery,
)
from finflow.utils.dates import month_window

from .occurrence_service import OccurrenceService


class DashboardService:
    """Monthly summary built from stored rows plus the month's pending projections."""

    def __init__(self, db: Session, cache: Optional[OccurrenceCache] = None) -> None:
        self.db = db
        self.cache = cache

    def summary(self, user_id: int, year: int, month: int) -> DashboardOut:
        window = month_window(year, month)
        monthly_income = self._total(models.Income, user_id, window)
        monthly_expense = self._total(models.Expense, user_id, window)

        occurrences = OccurrenceService(self.db, self.cache)
        pending_totals = {}
        for kind in models.TransactionKind:
            listing = occurrences.list_occurrences(
                OccurrenceQuery(user_id=user_id, kind=kind, month=month, year=year)
            )
            pending_totals[kind] = round(sum(item.value for item in listing if item.pending), 2)

        return DashboardOut(
            month=month,
            year=year,
            monthly_income=monthly_income,
            monthly_expense=monthly_expense,
            balance=round(monthly_income - monthly_expense, 2),
            pending_income=pending_totals[models.TransactionKind.INCOME],
            pending_expense=pending_totals[models.TransactionKind.EXPENSE],
            monthly_data=self._monthly_data(user_id, year),
            category_data=self._category_data(user_id, window),
        )

    def _total(self, model, user_id: int, window) -> float:
        start, end = window
        total = (
            self.db.query(func.coalesce(func.sum(model.value), 0))
            .filter(
                model.user_id == user_id,
                model.is_fixed.is_(False),
                model.date >= start,
                model.date < end,
            )
            .scalar()
        )
        return round(float(total or 0), 2)

    def _monthly_data(self, user_id: int, year: int) -> list[DashboardMonthItem]:
        totals: dict[int, dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expense": 0.0})
        start, _ = month_window(year, 1)
        _, end = month_window(year, 12)
        for label, model in (("income", models.Income), ("expense", models.Expense)):
            rows = (
                self.db.query(model.date, model.value)
                .filter(
                    model.user_id == user_id,
                    model.is_fixed.is_(False),
                    model.date >= start,
                    model.date < end,
                )
                .all()
            )
            for booked_on, value in rows:
                totals[booked_on.month][label] += float(value)
        return [
            DashboardMonthItem(
                month=m,
                income=round(totals[m]["income"], 2),
                expense=round(totals[m]["expense"], 2),
            )
            for m in range(1, 13)
        ]

    def _category_data(self, user_id: int, window) -> list[DashboardCategoryItem]:
        start, end = window
        rows = (
            self.db.query(models.Category.name, func.sum(models.Expense.value))
            .join(models.Category, models.Category.id == models.Expense.category_id)
            .filter(
                models.Expense.user_id == user_id,
                models.Expense.is_fixed.is_(False),
                models.Expense.date >= start,
                models.Expense.date < end,
            )
            .group_by(models.Category.id, models.Category.name)
            .all()
        )
        items = [DashboardCategoryItem(name=name, value=round(float(total or 0), 2)) for name, total in rows]
        items.sort(key=lambda item: item.value, reverse=True)
        return items
