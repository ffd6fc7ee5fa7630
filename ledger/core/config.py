"""
Application settings loaded from the environment.
"""

import os
from dataclasses import dataclass


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def get_engine_url(database_type: str | None = None) -> str:
    """Build the database URL from DATABASE_URL or the DATABASE_TYPE specific variables."""
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    db_type = database_type or os.getenv("DATABASE_TYPE", "sqlite")
    if db_type == "sqlite":
        db_path = os.getenv("DATABASE_PATH", "./data/ledger.db")
        return f"sqlite:///{db_path}"
    elif db_type == "postgresql":
        host = os.getenv("DB_HOST", "localhost")
        port = os.getenv("DB_PORT", "5432")
        dbname = os.getenv("DB_NAME", "ledger")
        user = os.getenv("DB_USER", "postgres")
        password = os.getenv("DB_PASSWORD", "postgres")
        return f"postgresql://{user}:{password}@{host}:{port}/{dbname}"
    else:
        raise ValueError(f"Unsupported database type: {db_type}")


@dataclass(frozen=True)
class Settings:
    app_env: str
    database_url: str
    sql_echo: bool
    log_level: str
    log_format: str
    default_base_currency: str
    cors_origins: list[str]

    @property
    def debug(self) -> bool:
        return self.app_env != "production"


def load_settings() -> Settings:
    app_env = os.getenv("APP_ENV", "development")
    debug = app_env != "production"
    return Settings(
        app_env=app_env,
        database_url=get_engine_url(),
        sql_echo=_parse_bool(os.getenv("SQL_ECHO"), False),
        log_level=os.getenv("LOG_LEVEL", "DEBUG" if debug else "INFO").upper(),
        log_format=os.getenv("LOG_FORMAT", "console" if debug else "json"),
        default_base_currency=os.getenv("DEFAULT_BASE_CURRENCY", "USD").upper(),
        cors_origins=_parse_csv(os.getenv("CORS_ORIGINS", "*")),
    )


settings = load_settings()
