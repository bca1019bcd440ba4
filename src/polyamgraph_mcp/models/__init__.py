"""SQLAlchemy models for polyamgraph-mcp.

This package contains all database models:
- AppSettings: Application-level state (signed-in identity)
- Profile: A member of the network
- Connection: A relationship record between two profiles

Example usage:
    from polyamgraph_mcp.models import Profile, Connection, make_pair_key
    from polyamgraph_mcp.database import get_session

    with get_session(engine) as session:
        alex = Profile(user_id="u-alex", username="alex")
        sam = Profile(user_id="u-sam", username="sam")
        session.add_all([alex, sam])
        session.flush()

        session.add(Connection(
            requester_id=alex.user_id,
            addressee_id=sam.user_id,
            pair_key=make_pair_key(alex.user_id, sam.user_id),
            relationship_type="partner",
        ))
"""

from polyamgraph_mcp.models.app_settings import AppSettings
from polyamgraph_mcp.models.profile import Profile
from polyamgraph_mcp.models.connection import Connection, make_pair_key

__all__ = [
    "AppSettings",
    "Profile",
    "Connection",
    "make_pair_key",
]
