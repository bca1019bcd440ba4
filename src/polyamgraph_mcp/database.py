"""Database connection and session management for polyamgraph-mcp.

This module provides SQLAlchemy database setup for storing:
- User profiles (handle, display data, privacy settings)
- Connection records between two profiles (status + relationship type)
- App settings (the currently signed-in identity)

Database location: ~/.polyamgraph-mcp/network.db
(override with the POLYAMGRAPH_DB_PATH environment variable)
"""

import os
from pathlib import Path
from typing import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session


# SQLAlchemy Base class for all models
Base = declarative_base()


class DatabaseError(Exception):
    """Raised when database operations fail."""
    pass


class NotFoundError(LookupError):
    """Raised when a requested profile or connection does not exist."""
    pass


class ValidationError(ValueError):
    """Raised when a write is rejected before it reaches the table."""
    pass


class SelfConnectionError(ValidationError):
    """Raised when requester and addressee are the same identity."""
    pass


class ConnectionExistsError(ValidationError):
    """Raised when a connection already exists for the unordered pair."""
    pass


class PermissionDeniedError(ValidationError):
    """Raised when a user acts on a connection they do not own."""
    pass


def get_database_path() -> Path:
    """
    Get the path to the SQLite database file.

    Returns:
        Path from POLYAMGRAPH_DB_PATH, or ~/.polyamgraph-mcp/network.db
    """
    override = os.environ.get("POLYAMGRAPH_DB_PATH")
    if override:
        return Path(override).expanduser()
    db_dir = Path.home() / ".polyamgraph-mcp"
    db_dir.mkdir(parents=True, exist_ok=True)
    return db_dir / "network.db"


def create_db_engine(db_path: Path | None = None, echo: bool = False) -> Engine:
    """
    Create SQLAlchemy engine for SQLite database.

    Args:
        db_path: Optional custom database path (defaults to get_database_path())
        echo: If True, log all SQL statements (useful for debugging)

    Returns:
        SQLAlchemy Engine instance
    """
    if db_path is None:
        db_path = get_database_path()

    connection_string = f"sqlite:///{db_path}"

    engine = create_engine(
        connection_string,
        echo=echo,
        connect_args={
            # Fetch cycles run store reads on worker threads
            "check_same_thread": False,
        },
    )

    # Enable foreign key constraints (disabled by default in SQLite)
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def create_tables(engine: Engine) -> None:
    """
    Create all database tables.

    Imports all models before calling create_all so every table is
    registered with Base.metadata.

    Args:
        engine: SQLAlchemy engine instance
    """
    # Must stay in sync with models/__init__.py
    from polyamgraph_mcp.models import (  # noqa: F401
        AppSettings, Profile, Connection,
    )
    Base.metadata.create_all(engine)


def get_session_factory(engine: Engine) -> sessionmaker:
    """
    Create a session factory for the given engine.

    Args:
        engine: SQLAlchemy engine instance

    Returns:
        Sessionmaker instance for creating sessions
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def get_session(engine: Engine | None = None) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with get_session(engine) as session:
            profile = session.query(Profile).first()

    Args:
        engine: Optional engine (creates default if not provided)

    Yields:
        SQLAlchemy Session

    Raises:
        NotFoundError, ValidationError: Re-raised unchanged after rollback
        DatabaseError: If any other session operation fails
    """
    if engine is None:
        engine = create_db_engine()

    SessionFactory = get_session_factory(engine)
    session = SessionFactory()

    try:
        yield session
        session.commit()
    except (NotFoundError, ValidationError):
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        raise DatabaseError(f"Database operation failed: {e}") from e
    finally:
        session.close()


def initialize_database(db_path: Path | None = None, echo: bool = False) -> Engine:
    """
    Initialize the database with all tables and seed data.

    1. Creates the database engine
    2. Creates all tables if they don't exist
    3. Seeds AppSettings table (single row)

    Args:
        db_path: Optional custom database path
        echo: If True, log all SQL statements

    Returns:
        SQLAlchemy Engine instance
    """
    from polyamgraph_mcp.models import AppSettings

    engine = create_db_engine(db_path, echo)
    create_tables(engine)

    with get_session(engine) as session:
        if not session.query(AppSettings).filter_by(id=1).first():
            session.add(AppSettings(id=1, current_user_id=None))

    return engine


# Module-level engine, created on first use
_engine: Engine | None = None


def get_engine(db_path: Path | None = None, echo: bool = False) -> Engine:
    """
    Get or create the module-level database engine.

    Args:
        db_path: Optional custom database path
        echo: If True, log all SQL statements

    Returns:
        SQLAlchemy Engine instance
    """
    global _engine
    if _engine is None:
        _engine = initialize_database(db_path, echo)
    return _engine
