"""Decide whether a template already has a stored row for a given month.

Rows created after the link columns were introduced point at their template
(``linked_template_id``). Older rows do not; they are recognised by having the
template's description, category and value. The second rule only applies to
unlinked rows so a row linked to one template is never attributed to another.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from finflow import models
from finflow.utils.dates import same_month

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OccurrenceMatch:
    row: models.TransactionModel
    via_fallback: bool


def is_similar(row: models.TransactionModel, template: models.TransactionModel) -> bool:
    """Legacy match: unlinked concrete row carrying the template's identity fields."""
    if row.is_fixed or row.linked_template_id is not None:
        return False
    return (
        row.description == template.description
        and row.category_id == template.category_id
        and row.value == template.value
    )


def earliest(rows: Iterable[models.TransactionModel]) -> models.TransactionModel:
    return min(rows, key=lambda r: (r.date, r.id))


def _pick(
    candidates: list[models.TransactionModel],
    template: models.TransactionModel,
    year: int,
    month: int,
    via: str,
) -> models.TransactionModel:
    chosen = earliest(candidates)
    if len(candidates) > 1:
        logger.warning(
            "Duplicate %s occurrences for %s template %s in %04d-%02d: rows %s; using %s",
            via,
            template.kind.value.lower(),
            template.id,
            year,
            month,
            sorted(r.id for r in candidates),
            chosen.id,
        )
    return chosen


def find_occurrence(
    template: models.TransactionModel,
    year: int,
    month: int,
    rows: Iterable[models.TransactionModel],
    claimed: Optional[set[int]] = None,
) -> Optional[OccurrenceMatch]:
    """Return the row standing for ``template`` in ``year``/``month``, if any.

    A row linked to the template wins over a similar unlinked one. When
    ``claimed`` is given, fallback rows already taken by another template in
    the same pass are skipped and the chosen fallback row is added to it.
    """
    in_month = [r for r in rows if not r.is_fixed and same_month(r.date, year, month)]

    linked = [r for r in in_month if r.linked_template_id == template.id]
    if linked:
        return OccurrenceMatch(_pick(linked, template, year, month, "linked"), via_fallback=False)

    similar = [
        r for r in in_month
        if is_similar(r, template) and (claimed is None or r.id not in claimed)
    ]
    if not similar:
        return None
    row = _pick(similar, template, year, month, "unlinked")
    if claimed is not None:
        claimed.add(row.id)
    return OccurrenceMatch(row, via_fallback=True)


def has_occurrence(
    template: models.TransactionModel,
    year: int,
    month: int,
    rows: Iterable[models.TransactionModel],
) -> bool:
    return find_occurrence(template, year, month, list(rows)) is not None
