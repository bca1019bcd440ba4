"""Tests for NetworkDashboard fetch cycles.

Coverage:
- Signed-out dashboards do not fetch
- A cycle applies profile, connections, profiles and graph together
- A superseded cycle's result is dropped; only the latest clears is_loading
- A failed read records an error notification and keeps the previous state
- Accepting a request shows the new person after the next refresh
- Connections panel views
- Switching users clears the previous viewer's state
"""

import asyncio
import time

import pytest

from polyamgraph_mcp.database import DatabaseError
from polyamgraph_mcp.models import Profile
from polyamgraph_mcp.tools.connection_management import handle_list_connections
from polyamgraph_mcp.tools.network_view import handle_network_tool
from polyamgraph_mcp.utils import notifications
from polyamgraph_mcp.utils.connection_requests import send_connection_request
from polyamgraph_mcp.utils.dashboard import NetworkDashboard
from polyamgraph_mcp.utils.session_context import SessionContext


class SlowFirstProfileRead:
    """Delegates to a DatabaseHelper; the first get_profile call is slow."""

    def __init__(self, db, delay=0.3):
        self._db = db
        self._delay = delay
        self._calls = 0

    def get_profile(self, user_id):
        self._calls += 1
        if self._calls == 1:
            time.sleep(self._delay)
        return self._db.get_profile(user_id)

    def __getattr__(self, name):
        return getattr(self._db, name)


class FailingConnectionsRead:
    """Delegates to a DatabaseHelper; list_network_connections fails once armed."""

    def __init__(self, db):
        self._db = db
        self.fail = False

    def list_network_connections(self, user_id):
        if self.fail:
            raise DatabaseError("Database operation failed: disk I/O error")
        return self._db.list_network_connections(user_id)

    def __getattr__(self, name):
        return getattr(self._db, name)


def _node_ids(dashboard):
    return [n["id"] for n in dashboard.graph["nodes"]]


@pytest.mark.asyncio
async def test_signed_out_dashboard_does_not_fetch(dashboard):
    await dashboard.session.start()
    assert await dashboard.fetch_data() is False
    assert dashboard.latest_cycle == 0
    assert dashboard.graph == {"nodes": [], "edges": []}


@pytest.mark.asyncio
async def test_fetch_applies_everything(dashboard, db, people):
    await dashboard.session.sign_in("alex")
    conn, _ = send_connection_request(db, people["alex"], "sam", "partner")
    db.accept_connection(conn.id, people["sam"].user_id)

    assert await dashboard.fetch_data() is True

    assert dashboard.user_profile.username == "alex"
    assert len(dashboard.connections) == 1
    assert [p.username for p in dashboard.profiles] == ["alex", "jordan", "sam"]
    assert _node_ids(dashboard) == [people["alex"].user_id, people["sam"].user_id]
    assert dashboard.is_loading is False


@pytest.mark.asyncio
async def test_accept_then_refresh_shows_new_person(dashboard, db, people):
    await dashboard.session.sign_in("sam")
    conn, _ = send_connection_request(db, people["jordan"], "sam", "friend")

    await dashboard.fetch_data()
    assert _node_ids(dashboard) == [people["sam"].user_id]

    db.accept_connection(conn.id, people["sam"].user_id)
    await dashboard.fetch_data()

    assert _node_ids(dashboard) == [people["sam"].user_id, people["jordan"].user_id]
    edge = dashboard.graph["edges"][0]
    assert edge["source"] == people["jordan"].user_id
    assert edge["target"] == people["sam"].user_id
    assert edge["style"]["stroke"] == "#4895EF"


@pytest.mark.asyncio
async def test_stale_cycle_is_dropped(db, people):
    session = SessionContext(db)
    await session.sign_in("alex")
    board = NetworkDashboard(SlowFirstProfileRead(db), session)

    conn, _ = send_connection_request(db, people["alex"], "sam", "partner")

    first = asyncio.create_task(board.fetch_data())
    await asyncio.sleep(0.05)
    assert board.is_loading is True

    # Data changes, then a newer refresh is issued while the first is in flight
    db.accept_connection(conn.id, people["sam"].user_id)
    assert await board.fetch_data() is True
    assert board.is_loading is False

    assert await first is False
    assert board.latest_cycle == 2
    assert board.is_loading is False
    assert _node_ids(board) == [people["alex"].user_id, people["sam"].user_id]
    assert board.connections[0]["status"] == "accepted"


@pytest.mark.asyncio
async def test_failed_read_keeps_previous_state(db, people):
    session = SessionContext(db)
    await session.sign_in("alex")
    store = FailingConnectionsRead(db)
    board = NetworkDashboard(store, session)

    conn, _ = send_connection_request(db, people["alex"], "sam", "partner")
    db.accept_connection(conn.id, people["sam"].user_id)
    assert await board.fetch_data() is True
    graph_before = board.graph

    store.fail = True
    assert await board.fetch_data() is False

    assert board.graph == graph_before
    assert board.is_loading is False
    note = board.notifications[-1]
    assert note.title == "Error loading data"
    assert note.variant == "destructive"
    assert "disk I/O error" in note.description


@pytest.mark.asyncio
async def test_new_user_never_sees_previous_network(db, people):
    session = SessionContext(db)
    store = FailingConnectionsRead(db)
    board = NetworkDashboard(store, session)

    conn, _ = send_connection_request(db, people["alex"], "sam", "partner")
    db.accept_connection(conn.id, people["sam"].user_id)
    await session.sign_in("alex")
    assert await board.fetch_data() is True

    await session.sign_out()
    assert board.user_profile is None
    assert board.graph == {"nodes": [], "edges": []}
    assert board.connections == []

    await session.sign_in("jordan")
    store.fail = True

    graph_text = (await handle_network_tool("get_network_graph", {}, board))[0].text
    assert "Error loading data" in graph_text
    assert "Alex" not in graph_text

    panel_text = (await handle_list_connections(board, {}))[0].text
    assert "Error loading data" in panel_text
    assert "sam" not in panel_text


@pytest.mark.asyncio
async def test_sign_out_drops_cycle_in_flight(db, people):
    session = SessionContext(db)
    await session.sign_in("alex")
    board = NetworkDashboard(SlowFirstProfileRead(db), session)

    first = asyncio.create_task(board.fetch_data())
    await asyncio.sleep(0.05)
    await session.sign_out()

    assert await first is False
    assert board.user_profile is None
    assert board.graph == {"nodes": [], "edges": []}
    assert board.is_loading is False


@pytest.mark.asyncio
async def test_missing_profile_reports_error(dashboard, db, people):
    await dashboard.session.sign_in("jordan")
    dashboard.session.user = Profile(user_id="gone", username="gone")

    assert await dashboard.fetch_data() is False
    assert dashboard.notifications[-1].title == "Error loading data"


@pytest.mark.asyncio
async def test_panel_views(dashboard, db, people):
    await dashboard.session.sign_in("alex")
    incoming, _ = send_connection_request(db, people["sam"], "alex", "partner")
    outgoing, _ = send_connection_request(db, people["alex"], "jordan", "friend")
    await dashboard.fetch_data()

    assert [c["id"] for c in dashboard.pending_incoming()] == [incoming.id]
    assert [c["id"] for c in dashboard.pending_outgoing()] == [outgoing.id]
    assert dashboard.active() == []

    db.accept_connection(incoming.id, people["alex"].user_id)
    await dashboard.fetch_data()
    assert dashboard.pending_incoming() == []
    assert [c["id"] for c in dashboard.active()] == [incoming.id]


def test_notify_and_dismiss(dashboard):
    note = dashboard.notify(notifications.success("Saved", "ok"))
    assert dashboard.notifications == [note]
    dashboard.dismiss_notifications()
    assert dashboard.notifications == []
