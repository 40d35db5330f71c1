"""initial schema: users, categories, income and expense

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2025-11-20 10:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f9a1c2b7d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


KIND_ENUM = sa.Enum("INCOME", "EXPENSE", name="category_type")
RECURRENCE_ENUM = sa.Enum("MONTHLY", "YEARLY", name="recurrence_type")


def _transaction_table(table: str, link_column: str) -> None:
    op.create_table(
        table,
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("value", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("is_fixed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("recurrence_type", RECURRENCE_ENUM, nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column(link_column, sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["category.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint([link_column], [f"{table}.id"], ondelete="CASCADE"),
        sa.CheckConstraint("value > 0", name=f"ck_{table}_value_positive"),
        sa.CheckConstraint(f"NOT is_fixed OR {link_column} IS NULL", name=f"ck_{table}_template_not_linked"),
        sa.CheckConstraint(
            "end_date IS NULL OR start_date IS NULL OR end_date >= start_date",
            name=f"ck_{table}_end_after_start",
        ),
    )
    op.create_index(f"ix_{table}_user_date", table, ["user_id", "date"], unique=False)
    op.create_index(f"ix_{table}_user_fixed", table, ["user_id", "is_fixed"], unique=False)
    op.create_index(f"ix_{table}_{link_column}", table, [link_column], unique=False)


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("type", KIND_ENUM, nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_category_user", "category", ["user_id"], unique=False)

    _transaction_table("income", "fixed_income_id")
    _transaction_table("expense", "fixed_expense_id")


def downgrade() -> None:
    for table, link_column in (("expense", "fixed_expense_id"), ("income", "fixed_income_id")):
        op.drop_index(f"ix_{table}_{link_column}", table_name=table)
        op.drop_index(f"ix_{table}_user_fixed", table_name=table)
        op.drop_index(f"ix_{table}_user_date", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_category_user", table_name="category")
    op.drop_table("category")
    op.drop_table("user")
    RECURRENCE_ENUM.drop(op.get_bind(), checkfirst=True)
    KIND_ENUM.drop(op.get_bind(), checkfirst=True)
