"""Dashboard state and the fetch-all-data cycle.

One cycle reads the viewer's profile, the connections around them and the
network-visible profiles. The three reads run concurrently; graph assembly
runs once all have resolved.

Each cycle takes a token from a counter. If a newer cycle starts before an
older one finishes, the older one's result is dropped on arrival, so the
state always reflects the most recently issued refresh. Only the latest
cycle clears is_loading.

A sign-in or sign-out clears the state and supersedes any cycle in flight,
so one viewer never sees data fetched for another.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..constants import STATUS_ACCEPTED, STATUS_PENDING
from ..database import DatabaseError, NotFoundError
from ..models import Profile
from . import notifications
from .session_context import SIGNED_IN, SIGNED_OUT
from .graph_assembly import assemble_network_graph

logger = logging.getLogger(__name__)


class NetworkDashboard:
    """
    Everything the network view shows, refreshed from the store.

    Attributes:
        user_profile: Viewer's Profile from the last applied cycle
        connections: Joined connection records (dicts) from the last cycle
        profiles: Network-visible Profiles from the last cycle
        graph: {"nodes", "edges"} assembled from the above
        is_loading: True while the latest cycle is in flight
        notifications: Notifications raised, oldest first
    """

    def __init__(self, db_helper, session, layout: Optional[Dict[str, float]] = None):
        self.db_helper = db_helper
        self.session = session
        self.layout = layout
        self.user_profile: Optional[Profile] = None
        self.connections: List[Dict[str, Any]] = []
        self.profiles: List[Profile] = []
        self.graph: Dict[str, List[dict]] = {"nodes": [], "edges": []}
        self.is_loading = False
        self.notifications: List[notifications.Notification] = []
        self._cycle = 0
        session.subscribe(self._on_session_change)

    def _on_session_change(self, event: str, profile: Optional[Profile]) -> None:
        if event in (SIGNED_IN, SIGNED_OUT):
            self.reset()

    def reset(self) -> None:
        """Forget the current viewer's data and drop any cycle in flight."""
        self._cycle += 1
        self.user_profile = None
        self.connections = []
        self.profiles = []
        self.graph = {"nodes": [], "edges": []}
        self.is_loading = False

    def notify(self, notification: notifications.Notification) -> notifications.Notification:
        self.notifications.append(notification)
        return notification

    def dismiss_notifications(self) -> None:
        self.notifications.clear()

    @property
    def latest_cycle(self) -> int:
        return self._cycle

    async def fetch_data(self) -> bool:
        """
        Run one fetch + assembly cycle for the signed-in user.

        Returns:
            True if this cycle's result was applied; False when nobody is
            signed in, the cycle was superseded, or a read failed (the
            previous state is kept and a notification is recorded).
        """
        user = self.session.user
        if user is None:
            return False

        self._cycle += 1
        token = self._cycle
        self.is_loading = True

        try:
            profile, connections, profiles = await asyncio.gather(
                asyncio.to_thread(self.db_helper.get_profile, user.user_id),
                asyncio.to_thread(self.db_helper.list_network_connections, user.user_id),
                asyncio.to_thread(self.db_helper.list_profiles, True),
            )

            if token != self._cycle:
                logger.debug("Dropping stale fetch cycle %d (latest is %d)", token, self._cycle)
                return False

            if profile is None:
                raise NotFoundError(f"Profile for {user.username} not found")

            graph = assemble_network_graph(
                profile.to_dict(),
                connections,
                [p.to_dict() for p in profiles],
                self.layout,
            )

            self.user_profile = profile
            self.connections = connections
            self.profiles = profiles
            self.graph = graph
            return True

        except (DatabaseError, NotFoundError) as e:
            if token == self._cycle:
                logger.warning("Fetch cycle %d failed: %s", token, e)
                self.notify(notifications.failure("Error loading data", str(e)))
            return False

        finally:
            if token == self._cycle:
                self.is_loading = False

    # Connections panel views (over the records involving the viewer)

    def _own(self) -> List[Dict[str, Any]]:
        if self.user_profile is None:
            return []
        uid = self.user_profile.user_id
        return [c for c in self.connections if uid in (c["requester_id"], c["addressee_id"])]

    def pending_incoming(self) -> List[Dict[str, Any]]:
        uid = self.user_profile.user_id if self.user_profile else None
        return [c for c in self._own() if c["status"] == STATUS_PENDING and c["addressee_id"] == uid]

    def pending_outgoing(self) -> List[Dict[str, Any]]:
        uid = self.user_profile.user_id if self.user_profile else None
        return [c for c in self._own() if c["status"] == STATUS_PENDING and c["requester_id"] == uid]

    def active(self) -> List[Dict[str, Any]]:
        return [c for c in self._own() if c["status"] == STATUS_ACCEPTED]
