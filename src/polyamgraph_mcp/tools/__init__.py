"""MCP tools for the network server."""

from .profile_management import (
    get_profile_management_tools,
    handle_profile_tool,
    PROFILE_TOOL_NAMES,
)
from .connection_management import (
    get_connection_tools,
    handle_connection_tool,
    CONNECTION_TOOL_NAMES,
)
from .network_view import (
    get_network_tools,
    handle_network_tool,
    NETWORK_TOOL_NAMES,
)

__all__ = [
    'get_profile_management_tools',
    'handle_profile_tool',
    'PROFILE_TOOL_NAMES',
    'get_connection_tools',
    'handle_connection_tool',
    'CONNECTION_TOOL_NAMES',
    'get_network_tools',
    'handle_network_tool',
    'NETWORK_TOOL_NAMES',
]
