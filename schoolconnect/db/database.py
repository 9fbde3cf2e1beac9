"""
SQL connection utility.

PostgreSQL in production; any SQLAlchemy URL works (the test suite runs on
in-memory SQLite). Queries are written as raw SQL through text().
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from schoolconnect.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def engine_options(url: str) -> dict:
    """create_engine() keyword arguments for the backend behind `url`."""
    if url.startswith("sqlite"):
        # One shared connection so an in-memory database survives across sessions
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
            "echo": settings.db_echo,
        }

    # pool_size: connections kept ready
    # max_overflow: extra connections allowed under load
    options = {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,
        "echo": settings.db_echo,
    }
    if url.startswith("postgres"):
        # Timestamp columns are naive UTC; CURRENT_TIMESTAMP follows the session TimeZone
        options["connect_args"] = {"options": "-c timezone=utc"}
    return options


def build_engine(url: str) -> Engine:
    """Create an engine with pooling suited to the backend."""
    return create_engine(url, **engine_options(url))


engine = build_engine(settings.sql_url)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.
    Usage:
        with get_db_session() as db:
            db.execute(text("SELECT * FROM users"))
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def check_sql_connection() -> bool:
    """
    Test if the SQL database is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        with get_db_session() as db:
            row = db.execute(text("SELECT 1 AS test")).fetchone()
            return row[0] == 1
    except Exception as e:
        logger.error("SQL connection failed: %s", e)
        return False


def execute_raw_sql(sql: str, params: dict = None) -> list:
    """
    Execute raw SQL and return results as list of dicts.
    """
    with get_db_session() as db:
        result = db.execute(text(sql), params or {})
        return [dict(row) for row in result.mappings().fetchall()]


def fetch_one(sql: str, params: dict = None):
    """Execute raw SQL and return the first row as a dict (or None)."""
    rows = execute_raw_sql(sql, params)
    return rows[0] if rows else None
