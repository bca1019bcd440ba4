"""Session context: who is signed in, passed explicitly to everything that needs it.

Lifecycle:
    async with SessionContext(db_helper, timeout=3.0) as session:
        unsubscribe = session.subscribe(listener)
        ...
        unsubscribe()

start() looks up the persisted session once, bounded by the timeout. If the
store does not answer in time, loading ends with nobody signed in rather
than waiting forever. close() drops every listener; the context cannot be
used afterwards.

Listeners are called as listener(event, profile) where event is one of
INITIAL_SESSION, SIGNED_IN, SIGNED_OUT and profile is the Profile or None.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from ..constants import DEFAULT_AUTH_TIMEOUT_SECONDS
from ..database import DatabaseError, NotFoundError
from ..models import Profile

logger = logging.getLogger(__name__)

INITIAL_SESSION = "INITIAL_SESSION"
SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

Listener = Callable[[str, Optional[Profile]], None]


class SessionContext:
    """Signed-in identity with subscribe/unsubscribe and a bounded start-up check."""

    def __init__(self, db_helper, timeout: float = DEFAULT_AUTH_TIMEOUT_SECONDS):
        self._db = db_helper
        self.timeout = timeout
        self.user: Optional[Profile] = None
        self.loading = True
        self.timed_out = False
        self._listeners: List[Listener] = []
        self._started = False
        self._closed = False

    async def __aenter__(self) -> "SessionContext":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Session context has been closed")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._check_open()
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self.user)

    async def start(self) -> Optional[Profile]:
        """
        Resolve the persisted session, waiting at most self.timeout seconds.

        Returns:
            The signed-in Profile, or None
        """
        self._check_open()
        if self._started:
            return self.user
        self._started = True

        try:
            self.user = await asyncio.wait_for(
                asyncio.to_thread(self._db.get_current_user), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            self.timed_out = True
            logger.warning("Session check timed out after %.1fs; continuing signed out", self.timeout)
        except DatabaseError as e:
            logger.error("Session check failed: %s", e)
        finally:
            self.loading = False

        self._emit(INITIAL_SESSION)
        return self.user

    async def sign_up(self, username: str, display_name: Optional[str] = None) -> Profile:
        """Create a profile for username and sign in as it."""
        self._check_open()
        profile = await asyncio.to_thread(self._db.create_profile, username, display_name)
        return await self._become(profile)

    async def sign_in(self, username: str) -> Profile:
        """
        Sign in as an existing username.

        Raises:
            NotFoundError: If no profile has that username
        """
        self._check_open()
        profile = await asyncio.to_thread(self._db.find_profile_by_username, username)
        if profile is None:
            raise NotFoundError(f"No user found with username '{username.strip()}'")
        return await self._become(profile)

    async def _become(self, profile: Profile) -> Profile:
        await asyncio.to_thread(self._db.set_current_user, profile.user_id)
        self.user = profile
        self.loading = False
        self._emit(SIGNED_IN)
        return profile

    async def sign_out(self) -> None:
        self._check_open()
        await asyncio.to_thread(self._db.clear_current_user)
        self.user = None
        self._emit(SIGNED_OUT)

    def refresh_user(self, profile: Optional[Profile]) -> None:
        """Replace the cached profile snapshot after the owner edits it."""
        if profile is not None and self.user is not None and profile.user_id == self.user.user_id:
            self.user = profile

    async def close(self) -> None:
        """Tear down: drop listeners. Idempotent."""
        self._listeners.clear()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed
