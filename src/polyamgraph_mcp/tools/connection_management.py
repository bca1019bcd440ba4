"""Connection management MCP tools.

The connections panel: send a request by username, answer incoming
requests, review outgoing requests and active connections, and hide or
show accepted connections in the network view.
"""

import asyncio
from typing import Any
from mcp.types import Tool, TextContent

from ..constants import RELATIONSHIP_TYPES
from ..database import DatabaseError, NotFoundError, ValidationError
from ..utils import notifications
from ..utils.connection_requests import (
    ACCEPT,
    REJECT,
    respond_to_request,
    send_connection_request,
)


# ============================================================================
# Tool Definitions
# ============================================================================

def get_connection_tools() -> list[Tool]:
    """Return list of connection management tool definitions."""
    return [
        Tool(
            name="send_connection_request",
            description=(
                "Send a connection request to someone by their exact username. "
                "They appear in your network once they accept."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "username": {
                        "type": "string",
                        "description": "Username of the person to connect with"
                    },
                    "relationship_type": {
                        "type": "string",
                        "enum": RELATIONSHIP_TYPES,
                        "description": "Kind of relationship (default from config, usually 'partner')"
                    },
                    "notes": {
                        "type": "string",
                        "description": "Optional private note on this connection"
                    }
                },
                "required": ["username"]
            }
        ),
        Tool(
            name="list_connections",
            description=(
                "Show the connections panel: incoming requests waiting for you, "
                "requests you have sent, and your active connections. "
                "Use the IDs shown with accept_connection / reject_connection."
            ),
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
        Tool(
            name="accept_connection",
            description="Accept an incoming connection request.",
            inputSchema={
                "type": "object",
                "properties": {
                    "connection_id": {
                        "type": "integer",
                        "description": "Connection ID (from list_connections)"
                    }
                },
                "required": ["connection_id"]
            }
        ),
        Tool(
            name="reject_connection",
            description="Reject an incoming connection request. The request is removed.",
            inputSchema={
                "type": "object",
                "properties": {
                    "connection_id": {
                        "type": "integer",
                        "description": "Connection ID (from list_connections)"
                    }
                },
                "required": ["connection_id"]
            }
        ),
        Tool(
            name="set_connection_visibility",
            description=(
                "Hide or show one of your accepted connections in the network view. "
                "The connection itself is kept."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "connection_id": {
                        "type": "integer",
                        "description": "Connection ID (from list_connections)"
                    },
                    "is_visible": {
                        "type": "boolean",
                        "description": "false to hide, true to show"
                    }
                },
                "required": ["connection_id", "is_visible"]
            }
        ),
    ]


# ============================================================================
# Tool Handlers
# ============================================================================

def _not_signed_in() -> list[TextContent]:
    return [TextContent(
        type="text",
        text=notifications.failure("Not signed in", "Use sign_in or sign_up first.").format()
    )]


def _name(profile: dict | None) -> str:
    if profile is None:
        return "(unknown)"
    return profile.get("display_name") or profile["username"]


async def handle_send_connection_request(dashboard, arguments: dict, default_type: str = "partner") -> list[TextContent]:
    """Search by username and send a request."""
    user = dashboard.session.user
    if user is None:
        return _not_signed_in()

    try:
        username = arguments.get("username")
        if not username or not username.strip():
            return [TextContent(type="text", text="Error: username is required")]

        _, target = await asyncio.to_thread(
            send_connection_request,
            dashboard.db_helper,
            user,
            username,
            arguments.get("relationship_type") or default_type,
            arguments.get("notes"),
        )
        await dashboard.fetch_data()

        note = notifications.success(
            "Connection request sent",
            f"Connection request sent to {target.get_display_name()}",
        )
        return [TextContent(type="text", text=dashboard.notify(note).format())]

    except (ValidationError, NotFoundError, DatabaseError) as e:
        note = notifications.from_error(e, "Error sending request", not_found_title="User not found")
        return [TextContent(type="text", text=dashboard.notify(note).format())]


async def handle_list_connections(dashboard, arguments: dict) -> list[TextContent]:
    """Render the connections panel from a fresh fetch."""
    if dashboard.session.user is None:
        return _not_signed_in()

    if not await dashboard.fetch_data() and dashboard.user_profile is None:
        last = dashboard.notifications[-1] if dashboard.notifications else None
        return [TextContent(type="text", text=last.format() if last else "Error: could not load connections")]

    incoming = dashboard.pending_incoming()
    outgoing = dashboard.pending_outgoing()
    active = dashboard.active()

    if not (incoming or outgoing or active):
        return [TextContent(
            type="text",
            text="No connections yet.\n\nUse send_connection_request to connect with someone."
        )]

    viewer_id = dashboard.user_profile.user_id
    response = "# Connections\n\n"

    if incoming:
        response += f"## Pending Requests ({len(incoming)})\n"
        for conn in incoming:
            response += (
                f"- **{_name(conn['requester_profile'])}** wants to connect as "
                f"{conn['relationship_type']} (ID: {conn['id']})\n"
            )
        response += "\n"

    if outgoing:
        response += f"## Sent Requests ({len(outgoing)})\n"
        for conn in outgoing:
            response += (
                f"- **{_name(conn['addressee_profile'])}**: pending "
                f"({conn['relationship_type']}, ID: {conn['id']})\n"
            )
        response += "\n"

    if active:
        response += f"## Active Connections ({len(active)})\n"
        for conn in active:
            other = conn["addressee_profile"] if conn["requester_id"] == viewer_id else conn["requester_profile"]
            hidden = "" if conn["is_visible"] else " [hidden]"
            response += f"- **{_name(other)}**: {conn['relationship_type']} (ID: {conn['id']}){hidden}\n"
            if other and other.get("bio"):
                response += f"  {other['bio']}\n"

    return [TextContent(type="text", text=response)]


async def _respond(dashboard, arguments: dict, action: str) -> list[TextContent]:
    user = dashboard.session.user
    if user is None:
        return _not_signed_in()

    try:
        connection_id = arguments.get("connection_id")
        if connection_id is None:
            return [TextContent(type="text", text="Error: connection_id is required")]

        await asyncio.to_thread(respond_to_request, dashboard.db_helper, user, connection_id, action)
        await dashboard.fetch_data()

        if action == ACCEPT:
            note = notifications.success("Connection accepted", "You are now connected!")
        else:
            note = notifications.success("Connection rejected", "The connection request has been removed.")
        return [TextContent(type="text", text=dashboard.notify(note).format())]

    except (ValidationError, NotFoundError, DatabaseError) as e:
        note = notifications.from_error(e, "Error")
        return [TextContent(type="text", text=dashboard.notify(note).format())]


async def handle_accept_connection(dashboard, arguments: dict) -> list[TextContent]:
    """Accept an incoming request."""
    return await _respond(dashboard, arguments, ACCEPT)


async def handle_reject_connection(dashboard, arguments: dict) -> list[TextContent]:
    """Reject (delete) an incoming request."""
    return await _respond(dashboard, arguments, REJECT)


async def handle_set_connection_visibility(dashboard, arguments: dict) -> list[TextContent]:
    """Hide or show an accepted connection."""
    user = dashboard.session.user
    if user is None:
        return _not_signed_in()

    try:
        connection_id = arguments.get("connection_id")
        is_visible = arguments.get("is_visible")
        if connection_id is None or is_visible is None:
            return [TextContent(type="text", text="Error: connection_id and is_visible are required")]

        await asyncio.to_thread(
            dashboard.db_helper.set_connection_visibility, connection_id, user.user_id, is_visible
        )
        await dashboard.fetch_data()

        state = "shown in" if is_visible else "hidden from"
        note = notifications.success("Connection updated", f"Connection {connection_id} is now {state} the network view.")
        return [TextContent(type="text", text=dashboard.notify(note).format())]

    except (ValidationError, NotFoundError, DatabaseError) as e:
        note = notifications.from_error(e, "Error updating connection")
        return [TextContent(type="text", text=dashboard.notify(note).format())]


# ============================================================================
# Router
# ============================================================================

CONNECTION_TOOL_NAMES = {
    "send_connection_request",
    "list_connections",
    "accept_connection",
    "reject_connection",
    "set_connection_visibility",
}


async def handle_connection_tool(
    name: str, arguments: Any, dashboard, default_type: str = "partner"
) -> list[TextContent]:
    """Route connection tool calls to appropriate handlers."""
    arguments = arguments or {}
    if name == "send_connection_request":
        return await handle_send_connection_request(dashboard, arguments, default_type)
    elif name == "list_connections":
        return await handle_list_connections(dashboard, arguments)
    elif name == "accept_connection":
        return await handle_accept_connection(dashboard, arguments)
    elif name == "reject_connection":
        return await handle_reject_connection(dashboard, arguments)
    elif name == "set_connection_visibility":
        return await handle_set_connection_visibility(dashboard, arguments)
    else:
        return [TextContent(type="text", text=f"Unknown connection tool: {name}")]
