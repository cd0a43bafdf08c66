"""Database engine and session management for the ledger."""

from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.services.config import get_database_url

# Same resolution as load_config(): environment first, then .env
DATABASE_URL = get_database_url()


def create_db_engine(database_url: str) -> Engine:
    """Create an engine for `database_url`.

    SQLite connections are shared across threads through a StaticPool so the
    API worker threads and in-memory test databases see the same data.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


engine = create_db_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session and close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


__all__ = [
    "create_db_engine",
    "engine",
    "SessionLocal",
    "get_db",
]
