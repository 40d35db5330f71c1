"""Repair endpoints for legacy template/row links; safe to run repeatedly."""

from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finflow import models
from finflow.core.cache import OccurrenceCache, get_occurrence_cache
from finflow.core.database import get_db
from finflow.core.deps import get_current_user
from finflow.schemas import DuplicateCleanupResult, DuplicateReport, LinkBackfillResult
from finflow.services import MaintenanceService

router = APIRouter(prefix="/maintenance", tags=["maintenance"])

KindPath = Literal["income", "expense"]


def _kind(kind: str) -> models.TransactionKind:
    return models.TransactionKind(kind.upper())


@router.post("/{kind}/backfill-links", response_model=LinkBackfillResult)
def backfill_links(
    kind: KindPath,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    cache: OccurrenceCache = Depends(get_occurrence_cache),
):
    return MaintenanceService(db, cache).backfill_links(user.id, _kind(kind))


@router.get("/{kind}/duplicates", response_model=DuplicateReport)
def find_duplicates(
    kind: KindPath,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return MaintenanceService(db).find_duplicate_occurrences(user.id, _kind(kind))


@router.delete("/{kind}/duplicates", response_model=DuplicateCleanupResult)
def remove_duplicates(
    kind: KindPath,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    cache: OccurrenceCache = Depends(get_occurrence_cache),
):
    return MaintenanceService(db, cache).remove_duplicate_occurrences(user.id, _kind(kind))
