"""Out-of-band repair of template/row links.

The listing path already tolerates legacy data; these operations converge the
stored rows toward one linked row per template and month so that tolerance is
needed less over time.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finflow import models
from finflow.core.cache import OccurrenceCache
from finflow.schemas import (
    DuplicateCleanupResult,
    DuplicateOccurrence,
    DuplicateReport,
    LinkBackfillResult,
)
from finflow.utils.dates import month_key

from .linking import earliest, is_similar
from .transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class MaintenanceService:
    def __init__(self, db: Session, cache: Optional[OccurrenceCache] = None) -> None:
        self.db = db
        self.cache = cache

    def backfill_links(self, user_id: int, kind: models.TransactionKind) -> LinkBackfillResult:
        """Link unlinked rows that look like a template's occurrence to that template.

        Templates are visited in id order and each month of a template gets at
        most one row, so running this twice links nothing the second time.
        """
        repo = TransactionRepository(self.db, kind)
        templates = repo.find_templates(user_id)
        rows = repo.find_concrete_transactions(user_id)

        linked = 0
        for template in templates:
            covered = {month_key(r.date) for r in rows if r.linked_template_id == template.id}
            candidates: dict[tuple[int, int], list[models.TransactionModel]] = defaultdict(list)
            for row in rows:
                if is_similar(row, template):
                    candidates[month_key(row.date)].append(row)
            for key, group in candidates.items():
                if key in covered:
                    continue
                if repo.set_link(earliest(group), template.id):
                    linked += 1

        if linked:
            self.db.commit()
            self._invalidate(user_id)
        logger.info(
            "Backfilled %d %s link(s) across %d template(s) for user %s",
            linked,
            kind.value.lower(),
            len(templates),
            user_id,
        )
        return LinkBackfillResult(kind=kind, templates_checked=len(templates), linked=linked)

    def find_duplicate_occurrences(self, user_id: int, kind: models.TransactionKind) -> DuplicateReport:
        return DuplicateReport(kind=kind, duplicates=self._duplicates(user_id, kind))

    def remove_duplicate_occurrences(self, user_id: int, kind: models.TransactionKind) -> DuplicateCleanupResult:
        """Keep the earliest linked row per template and month and delete the others."""
        repo = TransactionRepository(self.db, kind)
        duplicates = self._duplicates(user_id, kind)
        removed = 0
        try:
            for group in duplicates:
                for transaction_id in group.transaction_ids[1:]:
                    repo.delete_transaction(transaction_id, user_id)
                    removed += 1
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Duplicate cleanup failed for user %s", user_id)
            raise
        if removed:
            self._invalidate(user_id)
        logger.info(
            "Removed %d duplicate %s row(s) in %d group(s) for user %s",
            removed,
            kind.value.lower(),
            len(duplicates),
            user_id,
        )
        return DuplicateCleanupResult(kind=kind, groups=len(duplicates), removed=removed)

    def _duplicates(self, user_id: int, kind: models.TransactionKind) -> list[DuplicateOccurrence]:
        repo = TransactionRepository(self.db, kind)
        groups: dict[tuple[int, int, int], list[models.TransactionModel]] = defaultdict(list)
        for row in repo.find_concrete_transactions(user_id, linked_only=True):
            groups[(row.linked_template_id, *month_key(row.date))].append(row)

        report: list[DuplicateOccurrence] = []
        for (template_id, year, month), rows in sorted(groups.items()):
            if len(rows) < 2:
                continue
            ordered = sorted(rows, key=lambda r: (r.date, r.id))
            report.append(
                DuplicateOccurrence(
                    template_id=template_id,
                    year=year,
                    month=month,
                    transaction_ids=[r.id for r in ordered],
                )
            )
        return report

    def _invalidate(self, user_id: int) -> None:
        if self.cache is not None:
            self.cache.invalidate_user(user_id)
