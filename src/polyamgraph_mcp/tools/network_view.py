"""Network view MCP tools.

Both tools refresh first (one fetch cycle), then either return the
assembled graph as JSON or render it to a PNG.
"""

import asyncio
import json
from typing import Any
from mcp.types import Tool, TextContent

from ..utils.graph_assembly import summarize_graph
from .visualization import create_network_chart


# ============================================================================
# Tool Definitions
# ============================================================================

def get_network_tools() -> list[Tool]:
    """Return list of network view tool definitions."""
    return [
        Tool(
            name="get_network_graph",
            description=(
                "Refresh and return your network graph as JSON: one node per person "
                "(you at the center, everyone you are connected to on a circle around you) "
                "and one edge per accepted, visible connection. Dashed second-degree edges "
                "link two of your connections who are also connected to each other."
            ),
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
        Tool(
            name="visualize_network",
            description="Refresh and render your network graph to a PNG image.",
            inputSchema={
                "type": "object",
                "properties": {
                    "output_path": {
                        "type": "string",
                        "description": "Where to save the PNG (default from config: network.png)"
                    },
                    "title": {
                        "type": "string",
                        "description": "Chart title"
                    }
                }
            }
        ),
    ]


# ============================================================================
# Tool Handlers
# ============================================================================

async def _refresh(dashboard) -> str | None:
    """Run a fetch cycle. Returns an error text, or None when a graph is available."""
    if dashboard.session.user is None:
        return "✗ **Not signed in**\n\nUse sign_in or sign_up first."
    applied = await dashboard.fetch_data()
    if not applied and not dashboard.graph["nodes"]:
        last = dashboard.notifications[-1] if dashboard.notifications else None
        return last.format() if last else "Error: could not load your network"
    return None


async def handle_get_network_graph(dashboard, arguments: dict) -> list[TextContent]:
    """Return the assembled graph."""
    error = await _refresh(dashboard)
    if error:
        return [TextContent(type="text", text=error)]

    counts = summarize_graph(dashboard.graph)
    response = (
        f"# Network of {dashboard.user_profile.get_display_name()}\n\n"
        f"People: {counts['nodes']}\n"
        f"Connections: {counts['primary_edges']}\n"
        f"Second-degree links: {counts['second_degree_edges']}\n\n"
        f"```json\n{json.dumps(dashboard.graph, indent=2, default=str)}\n```"
    )
    return [TextContent(type="text", text=response)]


async def handle_visualize_network(dashboard, arguments: dict, render_settings: dict | None = None) -> list[TextContent]:
    """Render the graph to PNG."""
    error = await _refresh(dashboard)
    if error:
        return [TextContent(type="text", text=error)]

    settings = render_settings or {}
    output_path = arguments.get("output_path") or settings.get("output_path", "network.png")
    title = arguments.get("title") or settings.get("title", "Polycule Network")

    try:
        saved_path = await asyncio.to_thread(create_network_chart, dashboard.graph, title, output_path)
    except (OSError, ValueError) as e:
        return [TextContent(type="text", text=f"Error creating visualization: {e}")]

    counts = summarize_graph(dashboard.graph)
    return [TextContent(
        type="text",
        text=f"Network visualization created!\n\nSaved to: {saved_path}\n\n"
             f"The chart shows:\n"
             f"- {counts['nodes']} people (you are ringed in gold)\n"
             f"- {counts['primary_edges']} direct connections (solid)\n"
             f"- {counts['second_degree_edges']} second-degree links (dashed)"
    )]


# ============================================================================
# Router
# ============================================================================

NETWORK_TOOL_NAMES = {
    "get_network_graph",
    "visualize_network",
}


async def handle_network_tool(
    name: str, arguments: Any, dashboard, render_settings: dict | None = None
) -> list[TextContent]:
    """Route network view tool calls to appropriate handlers."""
    arguments = arguments or {}
    if name == "get_network_graph":
        return await handle_get_network_graph(dashboard, arguments)
    elif name == "visualize_network":
        return await handle_visualize_network(dashboard, arguments, render_settings)
    else:
        return [TextContent(type="text", text=f"Unknown network tool: {name}")]
