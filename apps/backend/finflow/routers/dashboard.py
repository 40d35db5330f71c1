from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from finflow import models
from finflow.core.cache import OccurrenceCache, get_occurrence_cache
from finflow.core.database import get_db
from finflow.core.deps import get_current_user
from finflow.core.errors import InvalidInputError
from finflow.schemas import DashboardOut
from finflow.services import DashboardService
from finflow.utils.dates import MAX_YEAR, MIN_YEAR, today_local

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardOut)
def get_dashboard(
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=MIN_YEAR, le=MAX_YEAR),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    cache: OccurrenceCache = Depends(get_occurrence_cache),
):
    if (month is None) != (year is None):
        raise InvalidInputError("month and year must be provided together")
    if month is None:
        today = today_local()
        month, year = today.month, today.year
    return DashboardService(db, cache).summary(user.id, year, month)
