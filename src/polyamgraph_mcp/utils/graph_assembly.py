"""Network graph assembly.

Turns the viewer's profile and a flat list of pairwise connection records
into a node/edge graph ready for rendering.

LAYOUT
  The viewer sits at a fixed anchor. Every other person the viewer is
  connected to is placed once, on a circle around the anchor, in the order
  they are first seen. Angle = index * 2π / N, where N is the number of
  distinct people placed. There is no randomness: the same input always
  gives the same positions and edge ids.

EDGES
  Primary edges: one per accepted, visible connection involving the viewer,
  drawn requester -> addressee, solid, weight 2.
  Second-degree edges: for every unordered pair of those connections, if the
  two other parties are themselves connected (accepted + visible, found in
  the full input list), a dashed weight-1 edge is drawn between them. Its id
  is built from the sorted pair of identities so the same pair never yields
  two edges.

Records are plain dicts in the shape produced by Profile.to_dict() and
Connection.to_dict(). A connection whose other-party profile is None
(unresolved join) is skipped silently.
"""

import math
from typing import Any, Dict, List, Optional, TypedDict

from ..constants import (
    DEFAULT_EDGE_COLOR,
    DEFAULT_LAYOUT,
    RELATIONSHIP_COLORS,
    STATUS_ACCEPTED,
)


class ProfileRecord(TypedDict, total=False):
    user_id: str
    username: str
    display_name: Optional[str]
    bio: Optional[str]
    avatar_url: Optional[str]
    privacy_mode: str
    show_in_network: bool


class ConnectionRecord(TypedDict):
    id: Any
    requester_id: str
    addressee_id: str
    status: str
    relationship_type: str
    is_visible: bool
    notes: Optional[str]
    requester_profile: Optional[ProfileRecord]
    addressee_profile: Optional[ProfileRecord]


PRIMARY_EDGE_STYLE = {"stroke_width": 2}
SECOND_DEGREE_EDGE_STYLE = {"stroke_width": 1, "stroke_dasharray": "5,5"}


def get_connection_color(relationship_type: str) -> str:
    """Edge color for a relationship type (gray for anything unrecognized)."""
    return RELATIONSHIP_COLORS.get(relationship_type, DEFAULT_EDGE_COLOR)


def is_displayable(connection: ConnectionRecord) -> bool:
    """True for accepted connections that have not been hidden."""
    return connection.get("status") == STATUS_ACCEPTED and bool(connection.get("is_visible"))


def other_party(connection: ConnectionRecord, viewer_id: str) -> Optional[ProfileRecord]:
    """
    Profile snapshot on the far side of a connection from the viewer.

    Returns None when the join for that side did not resolve.
    """
    if connection["requester_id"] == viewer_id:
        return connection.get("addressee_profile")
    return connection.get("requester_profile")


def second_degree_edge_id(user_a: str, user_b: str) -> str:
    """Edge id for the unordered pair (user_a, user_b)."""
    low, high = sorted((user_a, user_b))
    return f"meta-{low}-{high}"


def _find_link(
    connections: List[ConnectionRecord], user_a: str, user_b: str
) -> Optional[ConnectionRecord]:
    """First accepted + visible connection between two identities, either direction."""
    for conn in connections:
        ends = {conn["requester_id"], conn["addressee_id"]}
        if ends == {user_a, user_b} and is_displayable(conn):
            return conn
    return None


def _person_node(profile: ProfileRecord, x: float, y: float, is_current_user: bool) -> dict:
    return {
        "id": profile["user_id"],
        "type": "person",
        "position": {"x": x, "y": y},
        "data": {
            "profile": profile,
            "is_current_user": is_current_user,
        },
    }


def assemble_network_graph(
    viewer: Optional[ProfileRecord],
    connections: List[ConnectionRecord],
    profiles: Optional[List[ProfileRecord]] = None,
    layout: Optional[Dict[str, float]] = None,
) -> Dict[str, List[dict]]:
    """
    Build the initial network graph for a viewer.

    Args:
        viewer: The signed-in user's profile snapshot (None -> empty graph)
        connections: Connection records, each joined with both endpoint
            profiles. Input order decides placement order.
        profiles: Network-visible profiles. Accepted for the caller's
            convenience; every snapshot used here comes from the connections.
        layout: Optional {"center_x", "center_y", "radius"} overrides

    Returns:
        {"nodes": [...], "edges": [...]}
    """
    if viewer is None:
        return {"nodes": [], "edges": []}

    settings = dict(DEFAULT_LAYOUT)
    if layout:
        settings.update(layout)
    center_x = settings["center_x"]
    center_y = settings["center_y"]
    radius = settings["radius"]

    viewer_id = viewer["user_id"]
    visible = [
        c for c in connections
        if is_displayable(c) and viewer_id in (c["requester_id"], c["addressee_id"])
    ]

    # Distinct resolved other parties, in first-seen order
    placement_order: List[str] = []
    for conn in visible:
        other = other_party(conn, viewer_id)
        if other is not None and other["user_id"] not in placement_order:
            placement_order.append(other["user_id"])
    angle_step = 2 * math.pi / max(len(placement_order), 1)

    nodes: List[dict] = [_person_node(viewer, center_x, center_y, True)]
    edges: List[dict] = []
    placed = {viewer_id}

    for conn in visible:
        other = other_party(conn, viewer_id)
        if other is None:
            continue

        if other["user_id"] not in placed:
            angle = placement_order.index(other["user_id"]) * angle_step
            nodes.append(_person_node(
                other,
                center_x + radius * math.cos(angle),
                center_y + radius * math.sin(angle),
                False,
            ))
            placed.add(other["user_id"])

        edges.append({
            "id": str(conn["id"]),
            "source": conn["requester_id"],
            "target": conn["addressee_id"],
            "type": "smoothstep",
            "label": conn["relationship_type"],
            "style": {"stroke": get_connection_color(conn["relationship_type"]), **PRIMARY_EDGE_STYLE},
            "degree": "primary",
        })

    # Second-degree pass: unordered pairs only, never a connection with itself
    seen_edge_ids = {e["id"] for e in edges}
    for i, first in enumerate(visible):
        p1 = other_party(first, viewer_id)
        if p1 is None:
            continue
        for second in visible[i + 1:]:
            p2 = other_party(second, viewer_id)
            if p2 is None or p2["user_id"] == p1["user_id"]:
                continue

            link = _find_link(connections, p1["user_id"], p2["user_id"])
            if link is None:
                continue

            edge_id = second_degree_edge_id(p1["user_id"], p2["user_id"])
            if edge_id in seen_edge_ids:
                continue
            seen_edge_ids.add(edge_id)

            edges.append({
                "id": edge_id,
                "source": p1["user_id"],
                "target": p2["user_id"],
                "type": "smoothstep",
                "label": link["relationship_type"],
                "style": {"stroke": get_connection_color(link["relationship_type"]), **SECOND_DEGREE_EDGE_STYLE},
                "degree": "second",
            })

    return {"nodes": nodes, "edges": edges}


def summarize_graph(graph: Dict[str, List[dict]]) -> Dict[str, int]:
    """Counts used in text responses."""
    edges = graph.get("edges", [])
    return {
        "nodes": len(graph.get("nodes", [])),
        "primary_edges": sum(1 for e in edges if e.get("degree") == "primary"),
        "second_degree_edges": sum(1 for e in edges if e.get("degree") == "second"),
    }
