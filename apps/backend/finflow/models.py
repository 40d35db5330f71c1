from __future__ import annotations

import datetime as dt
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Index,
    Boolean,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from .core.config import settings
from .core.database import Base


try:
    LOCAL_ZONE = ZoneInfo(settings.TIMEZONE)
except ZoneInfoNotFoundError:
    LOCAL_ZONE = ZoneInfo("UTC")


def now_local_naive() -> datetime:
    """Return naive datetime normalized to configured local timezone."""
    return datetime.now(LOCAL_ZONE).replace(tzinfo=None)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, onupdate=now_local_naive, nullable=False)


class TransactionKind(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class RecurrenceType(str, Enum):
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class GoalStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    PAUSED = "PAUSED"


class User(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(100))
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)


class Category(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Optional: legacy categories were created without a kind
    type: Mapped[TransactionKind | None] = mapped_column(SAEnum(TransactionKind, name="category_type"))

    __table_args__ = (
        Index("ix_category_user", "user_id"),
    )


class TransactionMixin(TimestampMixin):
    """Columns shared by the ``income`` and ``expense`` tables.

    A row is either a concrete ledger entry (``is_fixed`` false) or a
    recurrence template (``is_fixed`` true). Concrete rows generated from a
    template point back to it through the per-table link column
    (``fixed_income_id`` / ``fixed_expense_id``), exposed here under the common
    attribute name ``linked_template_id``.
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    value: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("category.id", ondelete="SET NULL"))
    is_fixed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurrence_type: Mapped[RecurrenceType | None] = mapped_column(SAEnum(RecurrenceType, name="recurrence_type"))
    start_date: Mapped[dt.date | None] = mapped_column(Date)
    end_date: Mapped[dt.date | None] = mapped_column(Date)

    @declared_attr
    def linked_template_id(cls) -> Mapped[int | None]:
        return mapped_column(
            cls.link_column,
            ForeignKey(f"{cls.__name__.lower()}.id", ondelete="CASCADE"),
            nullable=True,
        )

    @declared_attr
    def category(cls) -> Mapped["Category | None"]:
        return relationship("Category", lazy="joined")

    @declared_attr.directive
    def __table_args__(cls):
        table = cls.__name__.lower()
        return (
            CheckConstraint("value > 0", name=f"ck_{table}_value_positive"),
            CheckConstraint(
                f"NOT is_fixed OR {cls.link_column} IS NULL",
                name=f"ck_{table}_template_not_linked",
            ),
            CheckConstraint(
                "end_date IS NULL OR start_date IS NULL OR end_date >= start_date",
                name=f"ck_{table}_end_after_start",
            ),
            Index(f"ix_{table}_user_date", "user_id", "date"),
            Index(f"ix_{table}_user_fixed", "user_id", "is_fixed"),
            Index(f"ix_{table}_{cls.link_column}", cls.link_column),
        )

    @property
    def category_name(self) -> str | None:
        return self.category.name if self.category is not None else None


class Income(Base, TransactionMixin):
    kind = TransactionKind.INCOME
    link_column = "fixed_income_id"


class Expense(Base, TransactionMixin):
    kind = TransactionKind.EXPENSE
    link_column = "fixed_expense_id"


TransactionModel = Income | Expense

_MODEL_BY_KIND: dict[TransactionKind, type[Income] | type[Expense]] = {
    TransactionKind.INCOME: Income,
    TransactionKind.EXPENSE: Expense,
}


def model_for_kind(kind: TransactionKind | str) -> type[Income] | type[Expense]:
    if not isinstance(kind, TransactionKind):
        kind = TransactionKind(str(kind).upper())
    return _MODEL_BY_KIND[kind]


class FinancialGoal(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    target: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    saved: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    deadline: Mapped[dt.date | None] = mapped_column(Date)
    status: Mapped[GoalStatus] = mapped_column(
        SAEnum(GoalStatus, name="goal_status"),
        nullable=False,
        default=GoalStatus.ACTIVE,
    )

    __table_args__ = (
        CheckConstraint("target > 0", name="ck_goal_target_positive"),
        Index("ix_goal_user", "user_id"),
    )
