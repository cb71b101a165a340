"""
Database configuration and session management.

This module sets up the SQLAlchemy engine and session factory. PostgreSQL
and SQLite URLs are both accepted.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import get_settings

DATABASE_URL = get_settings().database_url


def _engine_options(url: str) -> dict:
    """Pool options for the given database URL."""
    if url.startswith("sqlite"):
        # Worker threads share the engine with the request handlers
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_size": 5, "max_overflow": 10}


# Create SQLAlchemy engine
# - pool_pre_ping: Verify connections are alive before using them
engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    echo=get_settings().sql_debug,
    **_engine_options(DATABASE_URL),
)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)

# Base class for declarative models
Base = declarative_base()


def init_db() -> None:
    """
    Initialize the database by creating all tables.

    Note: In production, use Alembic migrations instead.
    """
    # Import models to ensure they are registered with Base
    from . import models_db  # noqa: F401

    Base.metadata.create_all(bind=engine)


def check_database() -> bool:
    """Return whether the database answers a trivial query."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return False
    return True
