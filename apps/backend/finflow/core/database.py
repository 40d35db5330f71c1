from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase, declared_attr

from .config import Settings, settings


class Base(DeclarativeBase):
    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return cls.__name__.lower()


def engine_options(cfg: Settings) -> dict:
    """Keyword arguments for `create_engine` derived from settings."""
    options: dict = {"echo": cfg.DB_ECHO, "pool_pre_ping": cfg.DB_POOL_PRE_PING}
    if cfg.DATABASE_URL.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        # Recycle ahead of the server-side idle timeout
        options["pool_recycle"] = cfg.DB_POOL_RECYCLE_SECONDS
    return options


engine = create_engine(settings.DATABASE_URL, **engine_options(settings))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# SQLite: enforce foreign keys (cascade of linked occurrences) and use WAL
if settings.DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[override]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()
