from datetime import date

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError
from sqlalchemy.schema import CreateTable

from finflow import models
from finflow.core.config import Settings
from finflow.core.database import engine_options


def test_engine_options_for_sqlite():
    options = engine_options(Settings(DATABASE_URL="sqlite:///tmp.db", DB_ECHO=True))
    assert options["echo"] is True
    assert options["pool_pre_ping"] is True
    assert options["connect_args"] == {"check_same_thread": False}
    assert "pool_recycle" not in options


def test_engine_options_for_server_database():
    options = engine_options(
        Settings(DATABASE_URL="postgresql://finflow@localhost/finflow", DB_POOL_RECYCLE_SECONDS=600)
    )
    assert options["echo"] is False
    assert options["pool_recycle"] == 600
    assert "connect_args" not in options


def test_template_link_check_is_portable():
    ddl = str(CreateTable(models.Expense.__table__).compile(dialect=postgresql.dialect()))
    assert "NOT is_fixed OR fixed_expense_id IS NULL" in ddl
    assert "is_fixed = 0" not in ddl


def test_template_cannot_point_at_another_template(db_session, user):
    template = models.Expense(
        user_id=user.id, description="Rent", value=1200, date=date(2024, 1, 10),
        is_fixed=True, recurrence_type=models.RecurrenceType.MONTHLY, start_date=date(2024, 1, 10),
    )
    db_session.add(template)
    db_session.commit()

    db_session.add(
        models.Expense(
            user_id=user.id, description="Rent", value=1200, date=date(2024, 2, 10),
            is_fixed=True, recurrence_type=models.RecurrenceType.MONTHLY, start_date=date(2024, 2, 10),
            linked_template_id=template.id,
        )
    )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()
