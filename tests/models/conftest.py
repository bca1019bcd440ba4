"""Pytest fixtures for model tests.

Provides reusable fixtures for database testing:
- test_engine: Clean SQLite database for each test
- test_session: Database session with automatic rollback
- three_profiles: Alex, Sam and Jordan
"""

import pytest
from pathlib import Path
import tempfile
import os

from polyamgraph_mcp.database import create_db_engine, create_tables, get_session_factory
from polyamgraph_mcp.models import Profile


@pytest.fixture(scope="function")
def test_engine():
    """
    Create a fresh test database for each test function.

    Uses a temporary SQLite database that's deleted after the test.
    """
    fd, db_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)

    engine = create_db_engine(Path(db_path), echo=False)
    create_tables(engine)

    yield engine

    engine.dispose()
    if Path(db_path).exists():
        os.unlink(db_path)


@pytest.fixture(scope="function")
def test_session(test_engine):
    """
    Create a database session for testing.

    Automatically rolls back after each test to keep tests isolated.
    """
    SessionFactory = get_session_factory(test_engine)
    session = SessionFactory()

    yield session

    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def three_profiles(test_session):
    """Three profiles with fixed identities."""
    profiles = [
        Profile(user_id="u-alex", username="alex", display_name="Alex Rivera"),
        Profile(user_id="u-sam", username="sam"),
        Profile(user_id="u-jordan", username="jordan", privacy_mode="public"),
    ]
    test_session.add_all(profiles)
    test_session.commit()
    return profiles
