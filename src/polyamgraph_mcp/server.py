"""MCP server for polyamgraph-mcp."""

import asyncio
import logging
import os
import sys
from typing import Any, Optional

from mcp.server import Server
from mcp.types import Tool, TextContent

from .config import ConfigManager
from .utils.db_helpers import DatabaseHelper
from .utils.dashboard import NetworkDashboard
from .utils.session_context import SessionContext
from .tools import (
    get_profile_management_tools,
    handle_profile_tool,
    PROFILE_TOOL_NAMES,
    get_connection_tools,
    handle_connection_tool,
    CONNECTION_TOOL_NAMES,
    get_network_tools,
    handle_network_tool,
    NETWORK_TOOL_NAMES,
)

logger = logging.getLogger(__name__)


# Initialize MCP server
app = Server("polyamgraph-mcp")

# Global state, set up by main() (or lazily on the first tool call)
config: Optional[ConfigManager] = None
dashboard: Optional[NetworkDashboard] = None


def init_config() -> ConfigManager:
    """Load configuration (lazy singleton)."""
    global config
    if config is None:
        config = ConfigManager()
    return config


async def init_dashboard() -> NetworkDashboard:
    """Build the dashboard and start its session context (lazy singleton)."""
    global dashboard
    if dashboard is None:
        cfg = init_config()
        logger.info("Config: %s", cfg.get_config_status())
        db = DatabaseHelper()
        session = SessionContext(db, timeout=cfg.get_auth_timeout())
        await session.start()
        dashboard = NetworkDashboard(db, session, layout=cfg.get_layout())
        if session.user is not None:
            await dashboard.fetch_data()
    return dashboard


async def shutdown_dashboard() -> None:
    """Tear down the session context."""
    global dashboard
    if dashboard is not None:
        await dashboard.session.close()
        dashboard = None


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available MCP tools."""
    return (
        get_profile_management_tools()
        + get_connection_tools()
        + get_network_tools()
    )


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Route a tool call to its module."""
    try:
        board = await init_dashboard()

        if name in PROFILE_TOOL_NAMES:
            return await handle_profile_tool(name, arguments, board)

        elif name in CONNECTION_TOOL_NAMES:
            return await handle_connection_tool(
                name, arguments, board, init_config().get_default_relationship_type()
            )

        elif name in NETWORK_TOOL_NAMES:
            return await handle_network_tool(
                name, arguments, board, init_config().get_render_settings()
            )

        else:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(type="text", text=f"Error: {e}")]


def configure_logging() -> None:
    """Log to stderr; stdout carries the MCP stream."""
    level = os.environ.get("POLYAMGRAPH_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def main():
    """Run the MCP server."""
    from mcp.server.stdio import stdio_server

    configure_logging()
    await init_dashboard()
    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options()
            )
    finally:
        await shutdown_dashboard()


def run():
    """Console entry point (sync wrapper around main)."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
