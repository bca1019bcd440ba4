"""Tests for profile management MCP tools."""

import pytest
import pytest_asyncio
from unittest.mock import Mock, AsyncMock

from polyamgraph_mcp.database import DatabaseError
from polyamgraph_mcp.tools.profile_management import (
    get_profile_management_tools,
    handle_get_my_profile,
    handle_list_network_profiles,
    handle_profile_tool,
    handle_sign_in,
    handle_sign_out,
    handle_sign_up,
    handle_update_profile,
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def signed_in(dashboard, people):
    """Dashboard with alex signed in and one fetch applied."""
    await dashboard.session.start()
    await dashboard.session.sign_in("alex")
    await dashboard.fetch_data()
    return dashboard


# ============================================================================
# Tool definitions
# ============================================================================

def test_tool_names():
    names = [tool.name for tool in get_profile_management_tools()]
    assert names == [
        "sign_up",
        "sign_in",
        "sign_out",
        "get_my_profile",
        "update_profile",
        "list_network_profiles",
    ]


def test_update_profile_schema_has_no_username():
    tool = next(t for t in get_profile_management_tools() if t.name == "update_profile")
    assert "username" not in tool.inputSchema["properties"]
    assert tool.inputSchema["properties"]["privacy_mode"]["enum"] == ["public", "friends", "private"]


# ============================================================================
# Sign up / in / out
# ============================================================================

@pytest.mark.asyncio
async def test_sign_up(dashboard):
    await dashboard.session.start()
    result = await handle_sign_up(dashboard, {"username": "river", "display_name": "River"})

    assert "Welcome!" in result[0].text
    assert "@river" in result[0].text
    assert dashboard.session.user.username == "river"
    assert dashboard.user_profile.username == "river"
    assert len(dashboard.graph["nodes"]) == 1


@pytest.mark.asyncio
async def test_sign_up_taken_username(dashboard, people):
    await dashboard.session.start()
    result = await handle_sign_up(dashboard, {"username": "alex"})

    assert "✗" in result[0].text
    assert "already taken" in result[0].text
    assert dashboard.session.user is None


@pytest.mark.asyncio
async def test_sign_up_requires_username(dashboard):
    result = await handle_sign_up(dashboard, {"username": "  "})
    assert result[0].text == "Error: username is required"


@pytest.mark.asyncio
async def test_sign_in_unknown_user(dashboard):
    await dashboard.session.start()
    result = await handle_sign_in(dashboard, {"username": "nobody"})
    assert "User not found" in result[0].text


@pytest.mark.asyncio
async def test_sign_in_and_out(dashboard, people):
    await dashboard.session.start()
    result = await handle_sign_in(dashboard, {"username": "alex"})
    assert "Welcome, Alex Rivera." in result[0].text

    result = await handle_sign_out(dashboard, {})
    assert "Signed out" in result[0].text
    assert dashboard.session.user is None

    result = await handle_sign_out(dashboard, {})
    assert result[0].text == "Nobody is signed in."


# ============================================================================
# Profile editor
# ============================================================================

@pytest.mark.asyncio
async def test_get_my_profile_not_signed_in(dashboard):
    result = await handle_get_my_profile(dashboard, {})
    assert "Not signed in" in result[0].text


@pytest.mark.asyncio
async def test_get_my_profile(signed_in):
    result = await handle_get_my_profile(signed_in, {})
    assert "# Alex Rivera (@alex)" in result[0].text
    assert "Privacy: friends" in result[0].text


@pytest.mark.asyncio
async def test_update_profile(signed_in):
    result = await handle_update_profile(signed_in, {
        "display_name": "Alex R.",
        "bio": "Gardener",
        "privacy_mode": "public",
    })
    text = result[0].text
    assert "Profile updated" in text
    assert "Your profile has been updated successfully." in text
    assert "Gardener" in text

    assert signed_in.session.user.display_name == "Alex R."
    assert signed_in.user_profile.privacy_mode == "public"
    assert signed_in.graph["nodes"][0]["data"]["profile"]["display_name"] == "Alex R."


@pytest.mark.asyncio
async def test_update_profile_rejects_username(signed_in):
    result = await handle_update_profile(signed_in, {"username": "alexandra"})
    assert "Username cannot be changed" in result[0].text
    assert signed_in.notifications[-1].is_error


@pytest.mark.asyncio
async def test_update_profile_bad_privacy(signed_in):
    result = await handle_update_profile(signed_in, {"privacy_mode": "everyone"})
    assert "Invalid privacy mode" in result[0].text


@pytest.mark.asyncio
async def test_update_profile_nothing_to_update(signed_in):
    result = await handle_update_profile(signed_in, {})
    assert result[0].text == "Error: nothing to update"


@pytest.mark.asyncio
async def test_update_profile_store_failure():
    dashboard = Mock()
    dashboard.session.user = Mock(user_id="u-1")
    dashboard.db_helper.update_profile.side_effect = DatabaseError("locked")
    dashboard.notify.side_effect = lambda note: note
    dashboard.fetch_data = AsyncMock()

    result = await handle_update_profile(dashboard, {"bio": "x"})

    assert "Error updating profile" in result[0].text
    assert "locked" in result[0].text
    dashboard.fetch_data.assert_not_called()


# ============================================================================
# Network profiles
# ============================================================================

@pytest.mark.asyncio
async def test_list_network_profiles_marks_current(signed_in, db, people):
    db.update_profile(people["jordan"].user_id, show_in_network=False)
    result = await handle_list_network_profiles(signed_in, {})
    text = result[0].text

    assert "* **Alex Rivera** (@alex)" in text
    assert "@sam" in text
    assert "@jordan" not in text


@pytest.mark.asyncio
async def test_list_network_profiles_empty(dashboard):
    result = await handle_list_network_profiles(dashboard, {})
    assert "No profiles" in result[0].text


@pytest.mark.asyncio
async def test_router_unknown_tool(dashboard):
    result = await handle_profile_tool("delete_everything", {}, dashboard)
    assert result[0].text == "Unknown profile tool: delete_everything"
