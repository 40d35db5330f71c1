"""Income and expense endpoints.

Both kinds expose the same routes, so the routers are built by factories and
instantiated once per kind: ``/income`` and ``/expense`` for stored rows and
monthly listings, ``/fixed-incomes`` and ``/fixed-expenses`` for templates.
"""

from fastapi import APIRouter, Depends, Query, Response
from pydantic import ValidationError
from sqlalchemy.orm import Session

from finflow import models
from finflow.core.cache import OccurrenceCache, get_occurrence_cache
from finflow.core.database import get_db
from finflow.core.deps import get_current_user
from finflow.core.errors import InvalidInputError
from finflow.schemas import (
    OccurrenceOut,
    OccurrenceQuery,
    TemplateCreate,
    TemplateUpdate,
    TransactionCreate,
    TransactionOut,
    TransactionUpdate,
)
from finflow.services import HistoryService, OccurrenceService, TransactionService
from finflow.utils.dates import MAX_YEAR, MIN_YEAR


def build_occurrence_query(
    user_id: int,
    kind: models.TransactionKind,
    month: int | None,
    year: int | None,
    fixed_only: bool,
) -> OccurrenceQuery:
    try:
        return OccurrenceQuery(user_id=user_id, kind=kind, month=month, year=year, fixed_only=fixed_only)
    except ValidationError as exc:
        message = exc.errors()[0]["msg"].removeprefix("Value error, ")
        raise InvalidInputError(message) from exc


def build_transactions_router(kind: models.TransactionKind, prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[kind.value.lower()])

    def list_occurrences(
        month: int | None = Query(default=None, ge=1, le=12),
        year: int | None = Query(default=None, ge=MIN_YEAR, le=MAX_YEAR),
        fixed: bool = Query(default=False),
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
        cache: OccurrenceCache = Depends(get_occurrence_cache),
    ):
        query = build_occurrence_query(user.id, kind, month, year, fixed)
        return OccurrenceService(db, cache).list_occurrences(query)

    def create_transaction(
        payload: TransactionCreate,
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
        cache: OccurrenceCache = Depends(get_occurrence_cache),
    ):
        row, created = TransactionService(db, kind, cache).create_one_off_or_promote(user.id, payload)
        if not created:
            # Occurrence already stored for that month: hand back the existing row
            return Response(
                content=TransactionOut.model_validate(row).model_dump_json(),
                media_type="application/json",
                status_code=200,
            )
        return row

    def update_transaction(
        transaction_id: int,
        payload: TransactionUpdate,
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
        cache: OccurrenceCache = Depends(get_occurrence_cache),
    ):
        return TransactionService(db, kind, cache).update_transaction(transaction_id, user.id, payload)

    def delete_transaction(
        transaction_id: int,
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
        cache: OccurrenceCache = Depends(get_occurrence_cache),
    ):
        TransactionService(db, kind, cache).delete_transaction(transaction_id, user.id)
        return Response(status_code=204)

    def template_history(
        transaction_id: int,
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
    ):
        return HistoryService(db).get_template_history(kind, transaction_id, user.id)

    router.add_api_route("", list_occurrences, methods=["GET"], response_model=list[OccurrenceOut])
    router.add_api_route("", create_transaction, methods=["POST"], response_model=TransactionOut, status_code=201)
    router.add_api_route("/{transaction_id}", update_transaction, methods=["PUT"], response_model=TransactionOut)
    router.add_api_route("/{transaction_id}", delete_transaction, methods=["DELETE"], status_code=204)
    router.add_api_route(
        "/{transaction_id}/history",
        template_history,
        methods=["GET"],
        response_model=list[OccurrenceOut],
    )
    return router


def build_templates_router(kind: models.TransactionKind, prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[f"fixed-{kind.value.lower()}"])

    def list_templates(
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
    ):
        return TransactionService(db, kind).list_templates(user.id)

    def get_template(
        template_id: int,
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
    ):
        return TransactionService(db, kind).get_template(template_id, user.id)

    def create_template(
        payload: TemplateCreate,
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
        cache: OccurrenceCache = Depends(get_occurrence_cache),
    ):
        return TransactionService(db, kind, cache).create_template(user.id, payload)

    def update_template(
        template_id: int,
        payload: TemplateUpdate,
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
        cache: OccurrenceCache = Depends(get_occurrence_cache),
    ):
        return TransactionService(db, kind, cache).update_template(template_id, user.id, payload)

    def delete_template(
        template_id: int,
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
        cache: OccurrenceCache = Depends(get_occurrence_cache),
    ):
        TransactionService(db, kind, cache).delete_template(template_id, user.id)
        return Response(status_code=204)

    def template_history(
        template_id: int,
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
    ):
        return HistoryService(db).get_template_history(kind, template_id, user.id)

    router.add_api_route("", list_templates, methods=["GET"], response_model=list[TransactionOut])
    router.add_api_route("", create_template, methods=["POST"], response_model=TransactionOut, status_code=201)
    router.add_api_route("/{template_id}", get_template, methods=["GET"], response_model=TransactionOut)
    router.add_api_route("/{template_id}", update_template, methods=["PUT"], response_model=TransactionOut)
    router.add_api_route("/{template_id}", delete_template, methods=["DELETE"], status_code=204)
    router.add_api_route(
        "/{template_id}/history",
        template_history,
        methods=["GET"],
        response_model=list[OccurrenceOut],
    )
    return router


income_router = build_transactions_router(models.TransactionKind.INCOME, "/income")
expense_router = build_transactions_router(models.TransactionKind.EXPENSE, "/expense")
fixed_income_router = build_templates_router(models.TransactionKind.INCOME, "/fixed-incomes")
fixed_expense_router = build_templates_router(models.TransactionKind.EXPENSE, "/fixed-expenses")
