"""add financial goals table

Revision ID: 8d41e6f0a2c5
Revises: 3f9a1c2b7d10
Create Date: 2025-12-02 18:30:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8d41e6f0a2c5"
down_revision: Union[str, None] = "3f9a1c2b7d10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "financialgoal",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("target", sa.Numeric(12, 2), nullable=False),
        sa.Column("saved", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "COMPLETED", "PAUSED", name="goal_status"),
            nullable=False,
            server_default="ACTIVE",
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
        sa.CheckConstraint("target > 0", name="ck_goal_target_positive"),
    )
    op.create_index("ix_goal_user", "financialgoal", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_goal_user", table_name="financialgoal")
    op.drop_table("financialgoal")
    sa.Enum(name="goal_status").drop(op.get_bind(), checkfirst=True)
