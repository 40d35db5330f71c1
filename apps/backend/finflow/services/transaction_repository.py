from __future__ import annotations

import logging
import time
from datetime import date
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Session

from finflow import models
from finflow.core.errors import NotFoundError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _timed(func_: F) -> F:
    @wraps(func_)
    def wrapper(self: "TransactionRepository", *args, **kwargs):
        started = time.perf_counter()
        try:
            return func_(self, *args, **kwargs)
        finally:
            logger.debug(
                "%s repository %s took %.2fms",
                self.kind.value.lower(),
                func_.__name__,
                (time.perf_counter() - started) * 1000,
            )

    return wrapper  # type: ignore[return-value]


class TransactionRepository:
    """Persistence operations for one transaction kind (``income`` or ``expense``).

    Reads and writes go through the caller's session; nothing here commits,
    so a service can group several calls into one database transaction.
    """

    def __init__(self, db: Session, kind: models.TransactionKind) -> None:
        self.db = db
        self.kind = kind
        self.model = models.model_for_kind(kind)

    @_timed
    def find_concrete_transactions(
        self,
        user_id: int,
        date_range: Optional[tuple[date, date]] = None,
        linked_only: bool = False,
    ) -> list[models.TransactionModel]:
        """Stored rows of ``user_id``, newest first.

        ``date_range`` is half-open: ``[start, end)``.
        """
        M = self.model
        q = self.db.query(M).filter(M.user_id == user_id, M.is_fixed.is_(False))
        if date_range is not None:
            start, end = date_range
            q = q.filter(M.date >= start, M.date < end)
        if linked_only:
            q = q.filter(M.linked_template_id.isnot(None))
        return q.order_by(M.date.desc(), M.id.desc()).all()

    @_timed
    def find_templates(
        self,
        user_id: int,
        active_window: Optional[tuple[date, date]] = None,
    ) -> list[models.TransactionModel]:
        """Templates of ``user_id``; with ``active_window`` (inclusive), only those in force in it."""
        M = self.model
        q = self.db.query(M).filter(M.user_id == user_id, M.is_fixed.is_(True))
        if active_window is not None:
            start, end = active_window
            q = q.filter(
                func.coalesce(M.start_date, M.date) <= end,
                (M.end_date.is_(None)) | (M.end_date >= start),
            )
        return q.order_by(M.id).all()

    @_timed
    def find_template(self, template_id: int, user_id: int) -> Optional[models.TransactionModel]:
        M = self.model
        return (
            self.db.query(M)
            .filter(M.id == template_id, M.user_id == user_id, M.is_fixed.is_(True))
            .first()
        )

    @_timed
    def find_transaction(self, transaction_id: int, user_id: int) -> Optional[models.TransactionModel]:
        M = self.model
        return self.db.query(M).filter(M.id == transaction_id, M.user_id == user_id).first()

    @_timed
    def find_category(self, category_id: int, user_id: int) -> Optional[models.Category]:
        return (
            self.db.query(models.Category)
            .filter(models.Category.id == category_id, models.Category.user_id == user_id)
            .first()
        )

    @_timed
    def find_linked(self, template_id: int, user_id: int) -> list[models.TransactionModel]:
        M = self.model
        return (
            self.db.query(M)
            .filter(M.user_id == user_id, M.linked_template_id == template_id, M.is_fixed.is_(False))
            .order_by(M.date, M.id)
            .all()
        )

    @_timed
    def find_similar(self, template: models.TransactionModel) -> list[models.TransactionModel]:
        """Unlinked stored rows sharing the template's description, category and value."""
        M = self.model
        q = self.db.query(M).filter(
            M.user_id == template.user_id,
            M.is_fixed.is_(False),
            M.linked_template_id.is_(None),
            M.value == template.value,
        )
        if template.description is None:
            q = q.filter(M.description.is_(None))
        else:
            q = q.filter(M.description == template.description)
        if template.category_id is None:
            q = q.filter(M.category_id.is_(None))
        else:
            q = q.filter(M.category_id == template.category_id)
        return q.order_by(M.date, M.id).all()

    @_timed
    def create_transaction(self, data: dict[str, Any]) -> models.TransactionModel:
        row = self.model(**data)
        self.db.add(row)
        self.db.flush()
        return row

    @_timed
    def update_transaction(self, transaction_id: int, user_id: int, patch: dict[str, Any]) -> models.TransactionModel:
        row = self.find_transaction(transaction_id, user_id)
        if row is None:
            raise NotFoundError(f"{self.kind.value.capitalize()} not found")
        for key, value in patch.items():
            setattr(row, key, value)
        self.db.flush()
        return row

    @_timed
    def delete_transaction(self, transaction_id: int, user_id: int) -> None:
        row = self.find_transaction(transaction_id, user_id)
        if row is None:
            raise NotFoundError(f"{self.kind.value.capitalize()} not found")
        self.db.delete(row)
        self.db.flush()

    @_timed
    def delete_transactions_by_template(self, template_id: int, user_id: int) -> int:
        M = self.model
        removed = (
            self.db.query(M)
            .filter(M.user_id == user_id, M.linked_template_id == template_id)
            .delete(synchronize_session="fetch")
        )
        return int(removed or 0)

    @_timed
    def set_link(self, row: models.TransactionModel, template_id: int) -> bool:
        """Point ``row`` at ``template_id``; returns False when it already did."""
        if row.linked_template_id == template_id:
            return False
        row.linked_template_id = template_id
        self.db.flush()
        return True
