"""
Engine and sessions for the building store.

SQLite backs local development and tests; production points DATABASE_URL at
Supabase Postgres.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from app.config import get_settings
from app.db.models import Base

settings = get_settings()


def normalize_database_url(url: str) -> str:
    """Supabase connection strings use the legacy postgres:// scheme."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def create_db_engine(url: str) -> Engine:
    """Build the engine for a building store URL."""
    url = normalize_database_url(url)

    # Supabase pools connections itself, so don't hold any open here
    if url.startswith("postgresql"):
        return create_engine(url, poolclass=NullPool)

    # Request handlers and scripts share SQLite connections across threads
    return create_engine(url, connect_args={"check_same_thread": False})


engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """Create the building and snapshot tables if missing."""
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session for the API routes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Session for seed scripts: commits on success, rolls back on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
