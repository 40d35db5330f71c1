from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from finflow import models
from finflow.core.cache import OccurrenceCache
from finflow.schemas import OccurrenceOut, OccurrenceQuery
from finflow.utils.dates import month_window

from .linking import find_occurrence
from .recurrence import active_window, occurrence_date, pending_occurrence_id, should_appear
from .transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


def occurrence_from_row(row: models.TransactionModel) -> OccurrenceOut:
    return OccurrenceOut.model_validate(row)


def pending_from_template(template: models.TransactionModel, year: int, month: int) -> OccurrenceOut:
    """Projected occurrence of ``template`` for a month that has no stored row yet."""
    base = occurrence_from_row(template)
    return base.model_copy(
        update={
            "id": pending_occurrence_id(template.id, year, month),
            "date": occurrence_date(template, year, month),
            "linked_template_id": template.id,
            "pending": True,
        }
    )


class OccurrenceService:
    """List what a user should see for one kind in one month.

    Stored rows come first, then a pending entry for every template that
    recurs in the month and has no stored row standing for it yet.
    """

    def __init__(self, db: Session, cache: Optional[OccurrenceCache] = None) -> None:
        self.db = db
        self.cache = cache

    def list_occurrences(self, query: OccurrenceQuery) -> list[OccurrenceOut]:
        key = query.cache_key()
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return list(cached)

        result = self._materialize(query)

        if self.cache is not None:
            self.cache.set(key, tuple(result))
        return result

    def _materialize(self, query: OccurrenceQuery) -> list[OccurrenceOut]:
        repo = TransactionRepository(self.db, query.kind)

        if not query.has_period:
            rows = repo.find_concrete_transactions(query.user_id, linked_only=query.fixed_only)
            return [occurrence_from_row(r) for r in rows]

        year, month = query.year, query.month
        month_rows = repo.find_concrete_transactions(query.user_id, date_range=month_window(year, month))
        templates = repo.find_templates(query.user_id, active_window=active_window(year, month))

        claimed: set[int] = set()
        pending: list[OccurrenceOut] = []
        backfilled = 0
        for template in templates:
            if not should_appear(template, year, month):
                continue
            match = find_occurrence(template, year, month, month_rows, claimed)
            if match is None:
                pending.append(pending_from_template(template, year, month))
                continue
            if match.via_fallback and repo.set_link(match.row, template.id):
                backfilled += 1

        if backfilled:
            self.db.commit()
            logger.info(
                "Linked %d legacy %s row(s) to their templates for user %s in %04d-%02d",
                backfilled,
                query.kind.value.lower(),
                query.user_id,
                year,
                month,
            )
            if self.cache is not None:
                self.cache.invalidate_user(query.user_id)

        real = month_rows
        if query.fixed_only:
            real = [r for r in month_rows if r.linked_template_id is not None]
        return [occurrence_from_row(r) for r in real] + pending
