"""Shared fixtures: a throwaway database, a few stored profiles, a dashboard."""

import pytest

from polyamgraph_mcp.utils.db_helpers import DatabaseHelper
from polyamgraph_mcp.utils.dashboard import NetworkDashboard
from polyamgraph_mcp.utils.session_context import SessionContext


@pytest.fixture
def db(tmp_path):
    """DatabaseHelper on a fresh file."""
    return DatabaseHelper(db_path=str(tmp_path / "network.db"))


@pytest.fixture
def people(db):
    """alex, sam and jordan as stored profiles."""
    return {
        "alex": db.create_profile("alex", "Alex Rivera"),
        "sam": db.create_profile("sam"),
        "jordan": db.create_profile("jordan", "Jordan"),
    }


@pytest.fixture
def dashboard(db):
    """Dashboard over the test database, nobody signed in yet."""
    session = SessionContext(db, timeout=1.0)
    return NetworkDashboard(db, session)
