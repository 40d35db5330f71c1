from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from finflow import models
from finflow.core.errors import ConflictError
from finflow.schemas import CategoryCreate


class CategoryService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def list_categories(self, user_id: int, kind: Optional[models.TransactionKind] = None) -> list[models.Category]:
        q = self.db.query(models.Category).filter(models.Category.user_id == user_id)
        if kind is not None:
            # Untyped legacy categories are offered for both kinds
            q = q.filter((models.Category.type == kind) | (models.Category.type.is_(None)))
        return q.order_by(models.Category.name, models.Category.id).all()

    def create_category(self, user_id: int, payload: CategoryCreate) -> models.Category:
        name = payload.name.strip()
        existing = (
            self.db.query(models.Category)
            .filter(
                models.Category.user_id == user_id,
                models.Category.name == name,
                models.Category.type == payload.type if payload.type is not None else models.Category.type.is_(None),
            )
            .first()
        )
        if existing is not None:
            raise ConflictError("Category already exists")
        category = models.Category(user_id=user_id, name=name, type=payload.type)
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category
