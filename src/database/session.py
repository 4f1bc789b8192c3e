"""
Database Session Management

Lazily builds one engine per process for the report store. Hosted
deployments point DATABASE_URL (or POSTGRES_URL) at PostgreSQL; local runs
and tests fall back to a SQLite file named by SQLITE_PATH.
"""

import os
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from .models import Base

logger = logging.getLogger(__name__)

# Checked in order; the first one set wins
DATABASE_URL_VARS = ("DATABASE_URL", "POSTGRES_URL")
DEFAULT_SQLITE_PATH = "seo_reports_dev.db"

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


# =============================================================================
# ENGINE
# =============================================================================

def get_database_url() -> str:
    """Resolve the database URL from the environment."""
    for var in DATABASE_URL_VARS:
        url = os.getenv(var)
        if url:
            # SQLAlchemy only accepts the postgresql:// scheme
            if url.startswith("postgres://"):
                url = "postgresql://" + url[len("postgres://"):]
            logger.info(f"Report store: PostgreSQL from {var}")
            return url

    sqlite_path = os.getenv("SQLITE_PATH", DEFAULT_SQLITE_PATH)
    logger.warning(f"Report store: no DATABASE_URL, using SQLite at {sqlite_path}")
    return f"sqlite:///{sqlite_path}"


def _build_engine(url: str) -> Engine:
    echo = os.getenv("SQL_DEBUG", "false").lower() == "true"

    if url.startswith("postgresql"):
        return create_engine(
            url,
            poolclass=QueuePool,
            pool_size=5,
            max_overflow=10,
            pool_recycle=1800,
            pool_pre_ping=True,
            echo=echo,
        )

    # Background tasks write from other threads than the one that connected
    return create_engine(url, connect_args={"check_same_thread": False}, echo=echo)


def get_engine() -> Engine:
    """Get or create the process-wide engine."""
    global _engine
    if _engine is None:
        _engine = _build_engine(get_database_url())
    return _engine


def reset_engine() -> None:
    """
    Dispose the engine so the next use re-reads the environment.

    Tests call this between cases; scripts call it after switching databases.
    """
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


# =============================================================================
# SESSIONS
# =============================================================================

@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session scope that commits on success and rolls back on error.

    Usage:
        with get_db_context() as db:
            db.add(report)
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(), autoflush=False, expire_on_commit=False
        )

    db = _session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# =============================================================================
# SCHEMA & HEALTH
# =============================================================================

def init_db() -> None:
    """Create the report table if it does not exist."""
    Base.metadata.create_all(bind=get_engine())
    logger.info("Report store tables ready")


def check_db_connection() -> bool:
    """True when a trivial query succeeds."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
