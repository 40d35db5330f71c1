from __future__ import annotations

import os
import tempfile
from typing import Generator, Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from finflow.core.cache import occurrence_cache
from finflow.core.database import Base, get_db
from finflow.main import app
from finflow import models


@pytest.fixture(scope="session")
def test_db_url() -> Generator[str, Any, Any]:
    # Temporary SQLite file so the developer database is never touched
    fd, path = tempfile.mkstemp(prefix="finflow_test_", suffix=".sqlite3")
    os.close(fd)
    url = f"sqlite:///{path}"
    yield url
    try:
        os.remove(path)
    except OSError:
        pass


@pytest.fixture(scope="session")
def engine(test_db_url: str):
    eng = create_engine(test_db_url, connect_args={"check_same_thread": False})
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Any, Any, Any]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    # Seed: demo user (id 1) with one income and two expense categories
    user = models.User(email="demo@example.com", name="Demo", is_active=True)
    session.add(user)
    session.flush()
    session.add_all(
        [
            models.Category(user_id=user.id, name="Salary", type=models.TransactionKind.INCOME),
            models.Category(user_id=user.id, name="Housing", type=models.TransactionKind.EXPENSE),
            models.Category(user_id=user.id, name="Groceries", type=models.TransactionKind.EXPENSE),
        ]
    )
    session.commit()

    try:
        yield session
    finally:
        session.close()
        with engine.begin() as conn:
            if engine.dialect.name == "sqlite":
                conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
            for tbl in reversed(Base.metadata.sorted_tables):
                conn.execute(tbl.delete())
            if engine.dialect.name == "sqlite":
                conn.exec_driver_sql("PRAGMA foreign_keys=ON")


@pytest.fixture(autouse=True)
def override_dependency(db_session):
    def _get_db_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db_override
    occurrence_cache.clear()
    yield
    app.dependency_overrides.clear()
    occurrence_cache.clear()


@pytest.fixture()
def client(db_session):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def user(db_session) -> models.User:
    return db_session.query(models.User).order_by(models.User.id).first()


@pytest.fixture()
def categories(db_session, user) -> dict[str, models.Category]:
    rows = db_session.query(models.Category).filter(models.Category.user_id == user.id).all()
    return {c.name: c for c in rows}


@pytest.fixture()
def make_row(db_session, user):
    """Insert an income/expense row directly, bypassing the API."""

    def _make(kind: models.TransactionKind = models.TransactionKind.EXPENSE, **fields):
        model = models.model_for_kind(kind)
        fields.setdefault("user_id", user.id)
        fields.setdefault("is_fixed", False)
        row = model(**fields)
        db_session.add(row)
        db_session.commit()
        db_session.refresh(row)
        return row

    return _make
