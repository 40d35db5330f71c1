from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from finflow import models
from finflow.core.database import get_db
from finflow.core.deps import get_current_user
from finflow.schemas import CategoryCreate, CategoryOut
from finflow.services import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def list_categories(
    type: Optional[models.TransactionKind] = Query(default=None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return CategoryService(db).list_categories(user.id, type)


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return CategoryService(db).create_category(user.id, payload)
