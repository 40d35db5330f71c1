from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finflow import models
from finflow.core.cache import OccurrenceCache
from finflow.core.errors import CategoryReferenceError, ConflictError, InvalidInputError, NotFoundError
from finflow.schemas import TemplateCreate, TemplateUpdate, TransactionCreate, TransactionUpdate
from finflow.utils.dates import month_window, same_month, today_local

from .history_service import template_label
from .linking import find_occurrence
from .recurrence import should_appear
from .transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class TransactionService:
    """Write paths for one kind: templates, one-off rows and promotions.

    Every successful write drops the user's cached occurrence listings.
    """

    def __init__(
        self,
        db: Session,
        kind: models.TransactionKind,
        cache: Optional[OccurrenceCache] = None,
    ) -> None:
        self.db = db
        self.kind = kind
        self.cache = cache
        self.repo = TransactionRepository(db, kind)

    # ---- Templates -------------------------------------------------------
    def list_templates(self, user_id: int) -> list[models.TransactionModel]:
        return sorted(self.repo.find_templates(user_id), key=lambda t: t.id, reverse=True)

    def get_template(self, template_id: int, user_id: int) -> models.TransactionModel:
        template = self.repo.find_template(template_id, user_id)
        if template is None:
            raise NotFoundError(f"{template_label(self.kind)} not found")
        return template

    def create_template(self, user_id: int, payload: TemplateCreate) -> models.TransactionModel:
        self._check_category(payload.category_id, user_id)
        start = payload.start_date or today_local()
        if payload.end_date is not None and payload.end_date < start:
            raise InvalidInputError("end_date must not precede start_date")
        row = self.repo.create_transaction(
            {
                "user_id": user_id,
                "description": payload.description,
                "value": payload.value,
                "category_id": payload.category_id,
                "date": start,
                "is_fixed": True,
                "recurrence_type": payload.recurrence_type,
                "start_date": start,
                "end_date": payload.end_date,
            }
        )
        self._commit(user_id, row)
        logger.info(
            "Created %s template %s (%s from %s) for user %s",
            self.kind.value.lower(),
            row.id,
            row.recurrence_type.value,
            row.start_date,
            user_id,
        )
        return row

    def update_template(self, template_id: int, user_id: int, payload: TemplateUpdate) -> models.TransactionModel:
        template = self.get_template(template_id, user_id)
        patch = payload.model_dump(exclude_unset=True)
        for required in ("description", "value", "recurrence_type", "start_date"):
            if required in patch and patch[required] is None:
                patch.pop(required)
        if "category_id" in patch:
            self._check_category(patch["category_id"], user_id)

        start = patch.get("start_date", template.start_date)
        end = patch.get("end_date", template.end_date)
        if start is not None and end is not None and end < start:
            raise InvalidInputError("end_date must not precede start_date")
        if "start_date" in patch:
            patch["date"] = patch["start_date"]

        row = self.repo.update_transaction(template.id, user_id, patch)
        self._commit(user_id, row)
        return row

    def delete_template(self, template_id: int, user_id: int) -> int:
        """Delete a template and every row linked to it; returns how many rows went with it."""
        template = self.get_template(template_id, user_id)
        try:
            removed = self.repo.delete_transactions_by_template(template.id, user_id)
            self.db.delete(template)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to delete %s template %s", self.kind.value.lower(), template_id)
            raise
        self._invalidate(user_id)
        logger.info(
            "Deleted %s template %s with %d linked row(s) for user %s",
            self.kind.value.lower(),
            template_id,
            removed,
            user_id,
        )
        return removed

    # ---- Stored rows -----------------------------------------------------
    def create_one_off_or_promote(
        self,
        user_id: int,
        payload: TransactionCreate,
    ) -> tuple[models.TransactionModel, bool]:
        """Store a one-off row, or confirm a template's occurrence for a month.

        With ``linked_template_id`` the month is first checked for a row that
        already stands for the template; that row is returned instead of a new
        one. The flag tells whether a row was created.
        """
        if payload.is_fixed:
            try:
                template_payload = TemplateCreate(
                    description=payload.description or "",
                    value=payload.value,
                    category_id=payload.category_id,
                    recurrence_type=payload.recurrence_type,
                    start_date=payload.start_date or payload.date,
                    end_date=payload.end_date,
                )
            except ValidationError as exc:
                raise InvalidInputError(exc.errors()[0]["msg"]) from exc
            return self.create_template(user_id, template_payload), True

        self._check_category(payload.category_id, user_id)

        template_id = payload.linked_template_id
        if template_id is not None:
            template = self.get_template(template_id, user_id)
            year, month = payload.date.year, payload.date.month
            self._check_recurs(template, year, month)
            rows = self.repo.find_concrete_transactions(user_id, date_range=month_window(year, month))
            match = find_occurrence(template, year, month, rows)
            if match is not None:
                if match.via_fallback and self.repo.set_link(match.row, template.id):
                    self._commit(user_id, match.row)
                    logger.info(
                        "Linked legacy %s row %s to template %s",
                        self.kind.value.lower(),
                        match.row.id,
                        template.id,
                    )
                return match.row, False

        row = self.repo.create_transaction(
            {
                "user_id": user_id,
                "description": payload.description,
                "value": payload.value,
                "date": payload.date,
                "category_id": payload.category_id,
                "is_fixed": False,
                "linked_template_id": template_id,
            }
        )
        self._commit(user_id, row)
        return row, True

    def update_transaction(self, transaction_id: int, user_id: int, payload: TransactionUpdate) -> models.TransactionModel:
        patch = payload.model_dump(exclude_unset=True)
        for required in ("value", "date"):
            if required in patch and patch[required] is None:
                patch.pop(required)
        if "category_id" in patch:
            self._check_category(patch["category_id"], user_id)
        if "date" in patch:
            self._check_occurrence_move(transaction_id, user_id, patch["date"])
        row = self.repo.update_transaction(transaction_id, user_id, patch)
        self._commit(user_id, row)
        return row

    def delete_transaction(self, transaction_id: int, user_id: int) -> None:
        row = self.repo.find_transaction(transaction_id, user_id)
        if row is None:
            raise NotFoundError(f"{self.kind.value.capitalize()} not found")
        if row.is_fixed:
            self.delete_template(row.id, user_id)
            return
        self.repo.delete_transaction(row.id, user_id)
        self.db.commit()
        self._invalidate(user_id)

    # ---- Helpers ---------------------------------------------------------
    def _check_category(self, category_id: Optional[int], user_id: int) -> None:
        if category_id is None:
            return
        if self.repo.find_category(category_id, user_id) is None:
            raise CategoryReferenceError("Category not found")

    def _check_recurs(self, template: models.TransactionModel, year: int, month: int) -> None:
        if not should_appear(template, year, month):
            raise InvalidInputError(
                f"{template_label(self.kind)} {template.id} has no occurrence in {year:04d}-{month:02d}"
            )

    def _check_occurrence_move(self, transaction_id: int, user_id: int, new_date: Any) -> None:
        """A linked row may only move into a month its template still has free."""
        row = self.repo.find_transaction(transaction_id, user_id)
        if row is None or row.linked_template_id is None:
            return
        year, month = new_date.year, new_date.month
        if same_month(row.date, year, month):
            return
        template = self.repo.find_template(row.linked_template_id, user_id)
        if template is None:
            return
        self._check_recurs(template, year, month)
        rows = [
            r for r in self.repo.find_concrete_transactions(user_id, date_range=month_window(year, month))
            if r.id != row.id
        ]
        match = find_occurrence(template, year, month, rows)
        if match is not None:
            raise ConflictError(
                f"{template_label(self.kind)} {template.id} already has row {match.row.id} "
                f"in {year:04d}-{month:02d}"
            )

    def _commit(self, user_id: int, row: Any) -> None:
        self.db.commit()
        self.db.refresh(row)
        self._invalidate(user_id)

    def _invalidate(self, user_id: int) -> None:
        if self.cache is not None:
            self.cache.invalidate_user(user_id)
