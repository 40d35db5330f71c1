from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "finflow Backend"
    ENV: str = "dev"

    # Default SQLite file next to apps/backend so the path does not depend on CWD
    _default_db_path = Path(__file__).resolve().parents[2] / "db.sqlite3"
    DATABASE_URL: str = f"sqlite:///{_default_db_path}"

    CORS_ORIGINS: list[str] = ["*"]
    # Calendar dates are stored timezone-free; this zone only decides what "today" is
    TIMEZONE: str = "America/Sao_Paulo"

    CACHE_ENABLED: bool = True
    CACHE_TTL_SECONDS: int = 300
    CACHE_MAX_ENTRIES: int = 100

    DB_ECHO: bool = False
    DB_POOL_PRE_PING: bool = True
    DB_POOL_RECYCLE_SECONDS: int = 1800

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="FINFLOW_", case_sensitive=False)


settings = Settings()
