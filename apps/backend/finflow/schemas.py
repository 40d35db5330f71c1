from __future__ import annotations

import math
import datetime as dt
from datetime import date, datetime
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .models import GoalStatus, RecurrenceType, TransactionKind
from .utils.dates import MAX_YEAR, MIN_YEAR, make_local_date, parse_calendar_date


def _coerce_calendar_date(value: Any, field_name: str) -> date | None:
    if value is None or value == "":
        return None
    parsed = parse_calendar_date(value)
    if parsed is None:
        raise ValueError(f"{field_name} must be a valid date (YYYY-MM-DD)")
    return make_local_date(*parsed)


def _coerce_recurrence(value: Any) -> Any:
    # Legacy clients send "monthly" / "yearly"
    if isinstance(value, str):
        return value.strip().upper()
    return value


def _validate_value(v: float | None) -> float | None:
    if v is None:
        return v
    if not math.isfinite(v):
        raise ValueError("value must be finite")
    if v <= 0:
        raise ValueError("value must be positive")
    return round(v, 2)


class OccurrenceQuery(BaseModel):
    """Immutable, validated description of one occurrence listing request."""

    user_id: int
    kind: TransactionKind
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=MIN_YEAR, le=MAX_YEAR)
    fixed_only: bool = False

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def month_and_year_together(self):
        if (self.month is None) != (self.year is None):
            raise ValueError("month and year must be provided together")
        return self

    @property
    def has_period(self) -> bool:
        return self.month is not None and self.year is not None

    def cache_key(self) -> tuple:
        return (self.user_id, self.kind.value, self.month, self.year, self.fixed_only)


class TransactionCreate(BaseModel):
    """Payload for a one-off row or the promotion of a pending occurrence.

    ``is_fixed`` / ``recurrence_type`` / ``start_date`` / ``end_date`` are
    accepted for older clients that created templates through this route.
    """

    description: Optional[str] = None
    value: float
    date: dt.date
    category_id: Optional[int] = None
    linked_template_id: Optional[int] = None
    is_fixed: bool = False
    recurrence_type: Optional[RecurrenceType] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any):
        parsed = _coerce_calendar_date(v, "date")
        if parsed is None:
            raise ValueError("date is required")
        return parsed

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_optional_dates(cls, v: Any, info):
        return _coerce_calendar_date(v, info.field_name)

    @field_validator("recurrence_type", mode="before")
    @classmethod
    def normalize_recurrence(cls, v: Any):
        return _coerce_recurrence(v)

    @field_validator("value")
    @classmethod
    def value_positive(cls, v: float):
        return _validate_value(v)

    @model_validator(mode="after")
    def check_template_fields(self):
        if self.is_fixed:
            if self.recurrence_type is None:
                raise ValueError("recurrence_type is required for fixed transactions")
            if self.linked_template_id is not None:
                raise ValueError("a fixed transaction cannot be linked to another one")
        return self


class TransactionUpdate(BaseModel):
    description: Optional[str] = None
    value: Optional[float] = None
    date: Optional[dt.date] = None
    category_id: Optional[int] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any):
        return _coerce_calendar_date(v, "date")

    @field_validator("value")
    @classmethod
    def value_positive(cls, v: float | None):
        return _validate_value(v)


class TemplateCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    value: float
    category_id: Optional[int] = None
    recurrence_type: RecurrenceType
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any, info):
        return _coerce_calendar_date(v, info.field_name)

    @field_validator("recurrence_type", mode="before")
    @classmethod
    def normalize_recurrence(cls, v: Any):
        return _coerce_recurrence(v)

    @field_validator("value")
    @classmethod
    def value_positive(cls, v: float):
        return _validate_value(v)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        return self


class TemplateUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    value: Optional[float] = None
    category_id: Optional[int] = None
    recurrence_type: Optional[RecurrenceType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any, info):
        return _coerce_calendar_date(v, info.field_name)

    @field_validator("recurrence_type", mode="before")
    @classmethod
    def normalize_recurrence(cls, v: Any):
        return _coerce_recurrence(v)

    @field_validator("value")
    @classmethod
    def value_positive(cls, v: float | None):
        return _validate_value(v)


class TransactionOut(BaseModel):
    id: int
    kind: TransactionKind
    user_id: int
    description: Optional[str] = None
    value: float
    date: dt.date
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    is_fixed: bool
    recurrence_type: Optional[RecurrenceType] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    linked_template_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OccurrenceOut(BaseModel):
    """A stored row or a synthesized occurrence, as shown in listings and history.

    ``id`` is the integer key for stored rows and a string such as
    ``"pending-7-3-2024"`` for synthesized ones; ``pending`` tells them apart.
    """

    id: int | str
    kind: TransactionKind
    user_id: int
    description: Optional[str] = None
    value: float
    date: dt.date
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    is_fixed: bool
    recurrence_type: Optional[RecurrenceType] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    linked_template_id: Optional[int] = None
    pending: bool = False

    model_config = ConfigDict(from_attributes=True)


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: Optional[TransactionKind] = None

    @field_validator("type", mode="before")
    @classmethod
    def upper_type(cls, v: Any):
        if isinstance(v, str):
            return v.strip().upper() or None
        return v


class CategoryOut(BaseModel):
    id: int
    user_id: int
    name: str
    type: Optional[TransactionKind] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GoalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    target: float
    deadline: Optional[date] = None

    @field_validator("deadline", mode="before")
    @classmethod
    def parse_deadline(cls, v: Any):
        return _coerce_calendar_date(v, "deadline")

    @field_validator("target")
    @classmethod
    def target_positive(cls, v: float):
        return _validate_value(v)


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    target: Optional[float] = None
    deadline: Optional[date] = None
    status: Optional[GoalStatus] = None

    @field_validator("deadline", mode="before")
    @classmethod
    def parse_deadline(cls, v: Any):
        return _coerce_calendar_date(v, "deadline")

    @field_validator("target")
    @classmethod
    def target_positive(cls, v: float | None):
        return _validate_value(v)

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v: Any):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class GoalContribution(BaseModel):
    amount: float

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: float):
        return _validate_value(v)


class GoalOut(BaseModel):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    target: float
    saved: float
    deadline: Optional[date] = None
    status: GoalStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DashboardMonthItem(BaseModel):
    month: int
    income: float
    expense: float


class DashboardCategoryItem(BaseModel):
    name: str
    value: float


class DashboardOut(BaseModel):
    month: int
    year: int
    monthly_income: float
    monthly_expense: float
    balance: float
    pending_income: float
    pending_expense: float
    monthly_data: list[DashboardMonthItem]
    category_data: list[DashboardCategoryItem]


class LinkBackfillResult(BaseModel):
    kind: TransactionKind
    templates_checked: int
    linked: int


class DuplicateOccurrence(BaseModel):
    template_id: int
    year: int
    month: int
    transaction_ids: list[int]


class DuplicateReport(BaseModel):
    kind: TransactionKind
    duplicates: list[DuplicateOccurrence]


class DuplicateCleanupResult(BaseModel):
    kind: TransactionKind
    groups: int
    removed: int
