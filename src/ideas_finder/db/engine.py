"""Database engine, session factory, and initialization.

This module provides the core database infrastructure:
    get_engine -- Create a SQLAlchemy engine for the SQLite database.
    init_db -- Create all tables idempotently using Base.metadata.create_all().
    get_session_factory -- Create a session factory bound to the engine.

Usage:
    engine = get_engine("data/ideas.db")
    init_db(engine)
    SessionFactory = get_session_factory(engine)
    with SessionFactory() as session:
        ...
"""

import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


def get_engine(db_path: str = "data/ideas.db") -> Engine:
    """Create SQLAlchemy engine for SQLite database.

    ``":memory:"`` gives a private in-memory database shared by every
    session of the returned engine.  Any other value is a file path whose
    parent directory is created if needed.

    Args:
        db_path: Path to the SQLite database file, or ``":memory:"``.

    Returns:
        A SQLAlchemy Engine instance.
    """
    if db_path == IN_MEMORY:
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    resolved_path = Path(db_path).resolve()

    # SQLite creates the file but not its directories
    resolved_path.parent.mkdir(parents=True, exist_ok=True)

    return create_engine(f"sqlite:///{resolved_path}", echo=False)


def init_db(engine: Engine) -> None:
    """Create all tables if they don't exist.

    Idempotent; safe to call on every application startup.

    Args:
        engine: SQLAlchemy Engine to create tables on.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables initialized")


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to the engine."""
    return sessionmaker(bind=engine)
