"""
Database engine setup for Code Red durable storage
"""

import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_database_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create the SQLAlchemy engine for a DATABASE_URL.

    SQLite in-memory URLs (tests) share one connection via StaticPool so
    every session sees the same database.
    """
    logger.info(f"Creating database engine: {_safe_url(database_url)}")

    if database_url.startswith("sqlite"):
        if ":memory:" in database_url or "mode=memory" in database_url:
            engine = create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            engine = create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        event.listen(engine, "connect", _set_sqlite_pragma)
        return engine

    return create_engine(
        database_url,
        echo=echo,
        pool_size=10,           # Base connections to keep open
        max_overflow=20,        # Additional connections when busy
        pool_timeout=30,        # Seconds to wait for a connection
        pool_recycle=1800,      # Recycle connections after 30 min
        pool_pre_ping=True,     # Test connections before use
    )


def _set_sqlite_pragma(dbapi_connection, connection_record):
    """SQLite leaves foreign keys off unless each connection turns them on"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_database(engine: Engine) -> None:
    """Create all tables that don't exist yet"""
    from . import models  # noqa: F401  registers tables with Base

    Base.metadata.create_all(engine)
    logger.info("Database tables initialized")


def _safe_url(database_url: Optional[str]) -> str:
    """Hide the password part of a URL for logging"""
    if not database_url or "@" not in database_url or "://" not in database_url:
        return database_url or ""
    scheme, rest = database_url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"
