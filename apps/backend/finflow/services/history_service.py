from __future__ import annotations

import logging
from collections import Counter

from sqlalchemy.orm import Session

from finflow import models
from finflow.core.errors import NotFoundError
from finflow.schemas import OccurrenceOut
from finflow.utils.dates import month_key

from .occurrence_service import occurrence_from_row
from .recurrence import initial_history_id
from .transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


def template_label(kind: models.TransactionKind) -> str:
    return "Fixed income" if kind == models.TransactionKind.INCOME else "Fixed expense"


class HistoryService:
    """Per-template timeline with at most one entry per calendar month."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_template_history(
        self,
        kind: models.TransactionKind,
        template_id: int,
        user_id: int,
    ) -> list[OccurrenceOut]:
        """Chronological occurrences of a template.

        Linked rows are preferred over unlinked look-alikes in every month,
        including the start month, where either of them replaces the entry
        synthesized from ``start_date``. Within a tier the earliest row wins.
        """
        repo = TransactionRepository(self.db, kind)
        template = repo.find_template(template_id, user_id)
        if template is None:
            raise NotFoundError(f"{template_label(kind)} not found")

        linked = repo.find_linked(template.id, user_id)
        similar = repo.find_similar(template)

        chosen: dict[tuple[int, int], models.TransactionModel] = {}
        seen: Counter[tuple[int, int]] = Counter()
        for rows in (linked, similar):
            for row in sorted(rows, key=lambda r: (r.date, r.id)):
                key = month_key(row.date)
                seen[key] += 1
                chosen.setdefault(key, row)

        for (year, month), count in sorted(seen.items()):
            if count > 1:
                logger.warning(
                    "%s template %s has %d rows in %04d-%02d; showing row %s",
                    kind.value.lower(),
                    template.id,
                    count,
                    year,
                    month,
                    chosen[(year, month)].id,
                )

        history = [occurrence_from_row(row) for row in chosen.values()]
        if template.start_date is not None and month_key(template.start_date) not in chosen:
            initial = occurrence_from_row(template).model_copy(
                update={
                    "id": initial_history_id(template.id),
                    "date": template.start_date,
                    "linked_template_id": template.id,
                    "pending": True,
                }
            )
            history.append(initial)

        history.sort(key=lambda item: item.date)
        return history
