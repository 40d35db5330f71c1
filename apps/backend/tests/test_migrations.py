import os
import tempfile
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


def test_upgrade_head_creates_schema():
    fd, path = tempfile.mkstemp(prefix="finflow_migrate_", suffix=".sqlite3")
    os.close(fd)
    url = f"sqlite:///{path}"
    try:
        cfg = Config()
        cfg.set_main_option("script_location", str(ALEMBIC_DIR))
        cfg.set_main_option("sqlalchemy.url", url)
        command.upgrade(cfg, "head")

        engine = create_engine(url)
        inspector = inspect(engine)
        assert {"user", "category", "income", "expense", "financialgoal"} <= set(inspector.get_table_names())
        income_cols = {c["name"] for c in inspector.get_columns("income")}
        expense_cols = {c["name"] for c in inspector.get_columns("expense")}
        assert {"is_fixed", "recurrence_type", "start_date", "end_date", "fixed_income_id"} <= income_cols
        assert "fixed_expense_id" in expense_cols
        engine.dispose()
    finally:
        os.remove(path)
