"""Profile and session MCP tools.

Header actions (sign up, sign in, sign out) and the profile editor.
"""

import asyncio
from typing import Any
from mcp.types import Tool, TextContent

from ..constants import PRIVACY_MODES
from ..database import DatabaseError, NotFoundError, ValidationError
from ..utils import notifications


# ============================================================================
# Tool Definitions
# ============================================================================

def get_profile_management_tools() -> list[Tool]:
    """Return list of profile management tool definitions."""
    return [
        Tool(
            name="sign_up",
            description=(
                "Create a new profile and sign in as it. "
                "The username is permanent and is how other people find you."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "username": {
                        "type": "string",
                        "description": "Unique handle (cannot be changed later)"
                    },
                    "display_name": {
                        "type": "string",
                        "description": "Optional name shown in the network view"
                    }
                },
                "required": ["username"]
            }
        ),
        Tool(
            name="sign_in",
            description="Sign in as an existing profile by username.",
            inputSchema={
                "type": "object",
                "properties": {
                    "username": {
                        "type": "string",
                        "description": "Your username"
                    }
                },
                "required": ["username"]
            }
        ),
        Tool(
            name="sign_out",
            description="Sign out of the current profile.",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
        Tool(
            name="get_my_profile",
            description="Show the signed-in user's profile and privacy settings.",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
        Tool(
            name="update_profile",
            description=(
                "Edit your profile. Only the fields you pass are changed. "
                "Username cannot be changed. Pass an empty string to clear "
                "display_name or bio."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "display_name": {
                        "type": "string",
                        "description": "How you want to be displayed"
                    },
                    "bio": {
                        "type": "string",
                        "description": "Tell others about yourself"
                    },
                    "privacy_mode": {
                        "type": "string",
                        "enum": PRIVACY_MODES,
                        "description": (
                            "public: anyone can see your profile; "
                            "friends: only connected people; "
                            "private: only you"
                        )
                    },
                    "show_in_network": {
                        "type": "boolean",
                        "description": "Display your node in the network visualization"
                    }
                }
            }
        ),
        Tool(
            name="list_network_profiles",
            description="List every profile that has chosen to appear in the network view.",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
    ]


# ============================================================================
# Tool Handlers
# ============================================================================

def _not_signed_in() -> list[TextContent]:
    return [TextContent(
        type="text",
        text=notifications.failure(
            "Not signed in", "Use sign_in or sign_up first."
        ).format()
    )]


def _format_profile(profile) -> str:
    response = f"# {profile.get_display_name()} (@{profile.username})\n\n"
    if profile.bio:
        response += f"{profile.bio}\n\n"
    response += f"Privacy: {profile.privacy_mode}\n"
    response += f"Shown in network: {'yes' if profile.show_in_network else 'no'}\n"
    return response


async def handle_sign_up(dashboard, arguments: dict) -> list[TextContent]:
    """Create a profile and sign in."""
    try:
        username = arguments.get("username")
        if not username or not username.strip():
            return [TextContent(type="text", text="Error: username is required")]

        profile = await dashboard.session.sign_up(username, arguments.get("display_name"))
        await dashboard.fetch_data()

        note = notifications.success(
            "Welcome!", f"Signed up and signed in as @{profile.username}."
        )
        return [TextContent(type="text", text=dashboard.notify(note).format())]

    except (ValidationError, DatabaseError) as e:
        note = notifications.from_error(e, "Error signing up")
        return [TextContent(type="text", text=dashboard.notify(note).format())]


async def handle_sign_in(dashboard, arguments: dict) -> list[TextContent]:
    """Sign in by username."""
    try:
        username = arguments.get("username")
        if not username or not username.strip():
            return [TextContent(type="text", text="Error: username is required")]

        profile = await dashboard.session.sign_in(username)
        await dashboard.fetch_data()

        note = notifications.success(
            "Signed in", f"Welcome, {profile.get_display_name()}."
        )
        return [TextContent(type="text", text=dashboard.notify(note).format())]

    except (NotFoundError, DatabaseError) as e:
        note = notifications.from_error(e, "Error signing in", not_found_title="User not found")
        return [TextContent(type="text", text=dashboard.notify(note).format())]


async def handle_sign_out(dashboard, arguments: dict) -> list[TextContent]:
    """Sign out."""
    try:
        if dashboard.session.user is None:
            return [TextContent(type="text", text="Nobody is signed in.")]
        await dashboard.session.sign_out()
        return [TextContent(type="text", text=notifications.success(
            "Signed out", "See you soon."
        ).format())]
    except DatabaseError as e:
        note = notifications.from_error(e, "Error signing out")
        return [TextContent(type="text", text=dashboard.notify(note).format())]


async def handle_get_my_profile(dashboard, arguments: dict) -> list[TextContent]:
    """Show the signed-in profile."""
    user = dashboard.session.user
    if user is None:
        return _not_signed_in()
    try:
        profile = await asyncio.to_thread(dashboard.db_helper.get_profile, user.user_id)
        if profile is None:
            return [TextContent(type="text", text=f"Error: profile @{user.username} not found")]
        return [TextContent(type="text", text=_format_profile(profile))]
    except DatabaseError as e:
        note = notifications.from_error(e, "Error loading data")
        return [TextContent(type="text", text=dashboard.notify(note).format())]


async def handle_update_profile(dashboard, arguments: dict) -> list[TextContent]:
    """Save profile editor changes."""
    user = dashboard.session.user
    if user is None:
        return _not_signed_in()

    try:
        fields = {
            key: arguments[key]
            for key in ("display_name", "bio", "privacy_mode", "show_in_network", "username")
            if key in arguments
        }
        if not fields:
            return [TextContent(type="text", text="Error: nothing to update")]

        profile = await asyncio.to_thread(
            lambda: dashboard.db_helper.update_profile(user.user_id, **fields)
        )
        dashboard.session.refresh_user(profile)
        await dashboard.fetch_data()

        note = notifications.success("Profile updated", "Your profile has been updated successfully.")
        return [TextContent(
            type="text",
            text=dashboard.notify(note).format() + "\n\n" + _format_profile(profile)
        )]

    except (ValidationError, NotFoundError, DatabaseError) as e:
        note = notifications.from_error(e, "Error updating profile")
        return [TextContent(type="text", text=dashboard.notify(note).format())]


async def handle_list_network_profiles(dashboard, arguments: dict) -> list[TextContent]:
    """List network-visible profiles."""
    try:
        profiles = await asyncio.to_thread(dashboard.db_helper.list_profiles, True)
        if not profiles:
            return [TextContent(type="text", text="No profiles are visible in the network yet.")]

        current_id = dashboard.session.user.user_id if dashboard.session.user else None
        response = "# Network Profiles\n\n"
        for profile in profiles:
            indicator = "* " if profile.user_id == current_id else "  "
            response += f"{indicator}**{profile.get_display_name()}** (@{profile.username}) [{profile.privacy_mode}]\n"
            if profile.bio:
                response += f"  {profile.bio}\n"
        if current_id:
            response += "\n*You\n"
        return [TextContent(type="text", text=response)]

    except DatabaseError as e:
        note = notifications.from_error(e, "Error loading data")
        return [TextContent(type="text", text=dashboard.notify(note).format())]


# ============================================================================
# Router
# ============================================================================

PROFILE_TOOL_NAMES = {
    "sign_up",
    "sign_in",
    "sign_out",
    "get_my_profile",
    "update_profile",
    "list_network_profiles",
}


async def handle_profile_tool(name: str, arguments: Any, dashboard) -> list[TextContent]:
    """Route profile management tool calls to appropriate handlers."""

    handlers = {
        "sign_up": handle_sign_up,
        "sign_in": handle_sign_in,
        "sign_out": handle_sign_out,
        "get_my_profile": handle_get_my_profile,
        "update_profile": handle_update_profile,
        "list_network_profiles": handle_list_network_profiles,
    }

    handler = handlers.get(name)
    if not handler:
        return [TextContent(type="text", text=f"Unknown profile tool: {name}")]

    return await handler(dashboard, arguments or {})
