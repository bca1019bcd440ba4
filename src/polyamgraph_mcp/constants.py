"""Shared constants for polyamgraph-mcp.

Centralizes the enumerated values stored on profiles and connections and
the styling used when the network graph is assembled and rendered.
"""

# Profile privacy modes. "friends" means only connected people see the profile.
PRIVACY_MODES: list[str] = ["public", "friends", "private"]
DEFAULT_PRIVACY_MODE = "friends"

# Connection lifecycle: created pending, accepted by the addressee.
# Rejected requests are deleted rather than given a status.
STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_BLOCKED = "blocked"

RELATIONSHIP_TYPES: list[str] = ["partner", "friend", "metamour", "other"]
DEFAULT_RELATIONSHIP_TYPE = "partner"

# Shorthand accepted on input and stored under the canonical name
RELATIONSHIP_TYPE_ALIASES: dict[str, str] = {
    "meta": "metamour",
}

# Edge colors per relationship type
RELATIONSHIP_COLORS: dict[str, str] = {
    "partner":  "#FF006E",   # Hot pink
    "friend":   "#4895EF",   # Bright blue
    "metamour": "#8338EC",   # Royal purple
    "other":    "#FFB703",   # Gold
}
DEFAULT_EDGE_COLOR = "#6C757D"   # Muted gray for unrecognized types

# Initial layout: viewer at the anchor, everyone else on a circle around it
DEFAULT_LAYOUT: dict[str, float] = {
    "center_x": 400.0,
    "center_y": 300.0,
    "radius": 200.0,
}

# Bound on waiting for the persisted session before giving up
DEFAULT_AUTH_TIMEOUT_SECONDS = 3.0
