"""
Database engine and sessions for the verification pipeline.

SQLite (`sqlite:///...`) backs local runs and tests; PostgreSQL backs
production. The URL is taken from `configure_database()` when called,
otherwise from DATABASE_URL.
"""

import logging
import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from src.infrastructure.db.models import Base

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "sqlite:///rental_verify.db"

# Request handlers run in a threadpool, so SQLite connections cross threads
SQLITE_OPTIONS = {"connect_args": {"check_same_thread": False}}
POSTGRES_OPTIONS = {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}

_url_override: str | None = None
_engine: Engine | None = None
_sessions: sessionmaker | None = None


def get_database_url() -> str:
    return _url_override or os.getenv("DATABASE_URL", DEFAULT_DB_URL)


def _redacted(url: str) -> str:
    # Drop credentials before logging
    return url.rsplit("@", 1)[-1]


def configure_database(url: str) -> None:
    """Switch to another database; the next session opens a fresh engine."""
    global _url_override, _engine, _sessions
    if _engine is not None:
        _engine.dispose()
    _url_override = url
    _engine = None
    _sessions = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = get_database_url()
        options = SQLITE_OPTIONS if url.startswith("sqlite") else POSTGRES_OPTIONS
        _engine = create_engine(url, **options)
        logger.info(f"Database engine created for {_redacted(url)}")
    return _engine


def get_session_factory() -> sessionmaker:
    global _sessions
    if _sessions is None:
        # Repositories map rows to entities after commit
        _sessions = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _sessions


def init_db() -> None:
    """Create missing tables (idempotent)."""
    Base.metadata.create_all(get_engine())
    logger.info(f"Database ready: {_redacted(get_database_url())}")


@contextmanager
def get_db() -> Iterator[Session]:
    """One unit of work: commit when the block exits cleanly, roll back otherwise."""
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
