"""Tests for connection management MCP tools.

Coverage:
- send_connection_request: success, self, duplicate, unknown user, default type
- list_connections: the three panel sections
- accept / reject: addressee only, notifications
- set_connection_visibility
"""

import pytest
import pytest_asyncio

from polyamgraph_mcp.tools.connection_management import (
    get_connection_tools,
    handle_accept_connection,
    handle_connection_tool,
    handle_list_connections,
    handle_reject_connection,
    handle_send_connection_request,
    handle_set_connection_visibility,
)


# ============================================================================
# Fixtures
# ============================================================================

async def _sign_in(dashboard, username):
    await dashboard.session.sign_in(username)
    await dashboard.fetch_data()
    return dashboard


@pytest_asyncio.fixture
async def as_alex(dashboard, people):
    await dashboard.session.start()
    return await _sign_in(dashboard, "alex")


def test_tool_names():
    assert [t.name for t in get_connection_tools()] == [
        "send_connection_request",
        "list_connections",
        "accept_connection",
        "reject_connection",
        "set_connection_visibility",
    ]


# ============================================================================
# Sending
# ============================================================================

@pytest.mark.asyncio
async def test_send_request(as_alex, db, people):
    result = await handle_send_connection_request(as_alex, {"username": "sam", "relationship_type": "friend"})

    assert "Connection request sent" in result[0].text
    assert "Connection request sent to sam" in result[0].text
    records = db.list_connections(people["alex"].user_id)
    assert len(records) == 1
    assert records[0]["relationship_type"] == "friend"
    assert records[0]["status"] == "pending"
    assert as_alex.pending_outgoing()[0]["id"] == records[0]["id"]


@pytest.mark.asyncio
async def test_send_request_uses_default_type(as_alex, db, people):
    await handle_send_connection_request(as_alex, {"username": "jordan"}, default_type="metamour")
    assert db.list_connections(people["jordan"].user_id)[0]["relationship_type"] == "metamour"


@pytest.mark.asyncio
async def test_send_request_to_self(as_alex, db, people):
    result = await handle_send_connection_request(as_alex, {"username": "alex"})

    assert "You cannot connect to yourself" in result[0].text
    assert as_alex.notifications[-1].variant == "destructive"
    assert db.list_connections(people["alex"].user_id) == []


@pytest.mark.asyncio
async def test_send_duplicate_request(as_alex, db, people):
    await handle_send_connection_request(as_alex, {"username": "sam"})
    result = await handle_send_connection_request(as_alex, {"username": "sam"})

    assert "Connection exists" in result[0].text
    assert "You already have a connection with this user" in result[0].text
    assert len(db.list_connections(people["alex"].user_id)) == 1


@pytest.mark.asyncio
async def test_send_request_unknown_user(as_alex):
    result = await handle_send_connection_request(as_alex, {"username": "nobody"})
    assert "User not found" in result[0].text
    assert "No user found with that username" in result[0].text


@pytest.mark.asyncio
async def test_send_request_not_signed_in(dashboard):
    result = await handle_send_connection_request(dashboard, {"username": "sam"})
    assert "Not signed in" in result[0].text


# ============================================================================
# Panel
# ============================================================================

@pytest.mark.asyncio
async def test_list_connections_empty(as_alex):
    result = await handle_list_connections(as_alex, {})
    assert result[0].text.startswith("No connections yet.")


@pytest.mark.asyncio
async def test_list_connections_sections(as_alex, db, people):
    db.create_connection(people["sam"].user_id, people["alex"].user_id, "partner")
    db.create_connection(people["alex"].user_id, people["jordan"].user_id, "friend")

    text = (await handle_list_connections(as_alex, {}))[0].text

    assert "## Pending Requests (1)" in text
    assert "**sam** wants to connect as partner" in text
    assert "## Sent Requests (1)" in text
    assert "**Jordan**: pending" in text
    assert "Active Connections" not in text


@pytest.mark.asyncio
async def test_list_connections_marks_hidden(as_alex, db, people):
    conn = db.create_connection(people["sam"].user_id, people["alex"].user_id, "partner")
    db.accept_connection(conn.id, people["alex"].user_id)
    db.set_connection_visibility(conn.id, people["sam"].user_id, False)

    text = (await handle_list_connections(as_alex, {}))[0].text
    assert "## Active Connections (1)" in text
    assert f"**sam**: partner (ID: {conn.id}) [hidden]" in text


# ============================================================================
# Responding
# ============================================================================

@pytest.mark.asyncio
async def test_accept_shows_person_in_graph(as_alex, db, people):
    conn = db.create_connection(people["sam"].user_id, people["alex"].user_id, "partner")

    result = await handle_accept_connection(as_alex, {"connection_id": conn.id})

    assert "Connection accepted" in result[0].text
    assert "You are now connected!" in result[0].text
    node_ids = [n["id"] for n in as_alex.graph["nodes"]]
    assert people["sam"].user_id in node_ids


@pytest.mark.asyncio
async def test_requester_cannot_accept(as_alex, db, people):
    conn = db.create_connection(people["alex"].user_id, people["sam"].user_id, "partner")

    result = await handle_accept_connection(as_alex, {"connection_id": conn.id})

    assert "Only the person who received this request can respond to it" in result[0].text
    assert db.get_connection_by_id(conn.id).status == "pending"


@pytest.mark.asyncio
async def test_reject_removes_request(as_alex, db, people):
    conn = db.create_connection(people["jordan"].user_id, people["alex"].user_id, "friend")

    result = await handle_reject_connection(as_alex, {"connection_id": conn.id})

    assert "Connection rejected" in result[0].text
    assert db.get_connection_by_id(conn.id) is None
    assert as_alex.pending_incoming() == []


@pytest.mark.asyncio
async def test_respond_requires_id(as_alex):
    result = await handle_accept_connection(as_alex, {})
    assert result[0].text == "Error: connection_id is required"


@pytest.mark.asyncio
async def test_respond_unknown_id(as_alex):
    result = await handle_reject_connection(as_alex, {"connection_id": 404})
    assert "Connection 404 not found" in result[0].text


# ============================================================================
# Visibility
# ============================================================================

@pytest.mark.asyncio
async def test_hide_connection_removes_edge(as_alex, db, people):
    conn = db.create_connection(people["alex"].user_id, people["sam"].user_id, "partner")
    db.accept_connection(conn.id, people["sam"].user_id)
    await as_alex.fetch_data()
    assert len(as_alex.graph["edges"]) == 1

    result = await handle_set_connection_visibility(as_alex, {"connection_id": conn.id, "is_visible": False})

    assert "Connection updated" in result[0].text
    assert as_alex.graph["edges"] == []
    assert len(as_alex.graph["nodes"]) == 1


@pytest.mark.asyncio
async def test_router(as_alex):
    result = await handle_connection_tool("list_connections", None, as_alex)
    assert result[0].text.startswith("No connections yet.")

    result = await handle_connection_tool("block_user", {}, as_alex)
    assert result[0].text == "Unknown connection tool: block_user"
