"""
Database initialization and session management.
"""

from collections.abc import Generator
from pathlib import Path

from sqlalchemy import Engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import Session, SQLModel, create_engine

from ledger.core.config import settings
from ledger.infrastructure.database import models  # noqa: F401  registers the tables


def create_db_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        db_file = database_url.removeprefix("sqlite:///")
        if database_url.startswith("sqlite:///") and db_file not in ("", ":memory:"):
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, echo=echo, **kwargs)


engine = create_db_engine(settings.database_url, echo=settings.sql_echo)

SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """Dependency - Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Initialize database - create all tables."""
    SQLModel.metadata.create_all(bind=bind or engine)
