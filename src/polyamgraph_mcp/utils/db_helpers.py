"""Database helper functions for server.py

Provides the profile and connection store operations used by the MCP tools
and the dashboard fetch cycle.
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional, List

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from ..constants import (
    PRIVACY_MODES,
    RELATIONSHIP_TYPES,
    STATUS_ACCEPTED,
    STATUS_PENDING,
)
from ..database import (
    get_database_path, initialize_database, get_session,
    ConnectionExistsError, NotFoundError, PermissionDeniedError,
    SelfConnectionError, ValidationError,
)
from ..models import AppSettings, Profile, Connection, make_pair_key

logger = logging.getLogger(__name__)


class DatabaseHelper:
    """Helper class for database operations."""

    PROFILE_UPDATE_FIELDS = ["display_name", "bio", "privacy_mode", "show_in_network"]

    def __init__(self, db_path: str = None):
        """Initialize database helper.

        Args:
            db_path: Optional path to a SQLite database file. When omitted the
                     standard path is used. Tables and the settings
                     row are created if missing.
        """
        resolved = Path(db_path) if db_path is not None else get_database_path()
        self.engine = initialize_database(resolved)

    # =========================================================================
    # Session (signed-in identity)
    # =========================================================================

    def get_current_user(self) -> Optional[Profile]:
        """
        Get the signed-in user's profile (from AppSettings).

        Returns None if nobody is signed in.
        """
        with get_session(self.engine) as session:
            settings = session.query(AppSettings).filter_by(id=1).first()
            if not settings or not settings.current_user_id:
                return None
            return session.query(Profile).filter_by(user_id=settings.current_user_id).first()

    def set_current_user(self, user_id: str) -> bool:
        """
        Mark user_id as signed in.

        Returns True if successful, False if the profile doesn't exist.
        """
        with get_session(self.engine) as session:
            if not session.query(Profile).filter_by(user_id=user_id).first():
                return False

            settings = session.query(AppSettings).filter_by(id=1).first()
            if not settings:
                session.add(AppSettings(id=1, current_user_id=user_id))
            else:
                settings.current_user_id = user_id
            return True

    def clear_current_user(self) -> None:
        """Sign out: forget the persisted identity."""
        with get_session(self.engine) as session:
            settings = session.query(AppSettings).filter_by(id=1).first()
            if settings:
                settings.current_user_id = None

    # =========================================================================
    # Profiles
    # =========================================================================

    def get_profile(self, user_id: str) -> Optional[Profile]:
        """Get profile by identity."""
        with get_session(self.engine) as session:
            return session.query(Profile).filter_by(user_id=user_id).first()

    def find_profile_by_username(self, username: str) -> Optional[Profile]:
        """Exact username lookup (surrounding whitespace ignored)."""
        with get_session(self.engine) as session:
            return session.query(Profile).filter_by(username=username.strip()).first()

    def list_profiles(self, show_in_network: Optional[bool] = True) -> List[Profile]:
        """List profiles, filtered by the network-visibility flag (None = all)."""
        with get_session(self.engine) as session:
            query = session.query(Profile)
            if show_in_network is not None:
                query = query.filter(Profile.show_in_network == show_in_network)
            return query.order_by(Profile.username).all()

    def create_profile(
        self,
        username: str,
        display_name: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Profile:
        """
        Create a profile for a newly registered account.

        Args:
            username: Unique handle (whitespace trimmed, must be non-empty)
            display_name: Optional display name
            user_id: Optional identity (a uuid4 is issued when omitted)

        Returns:
            Created Profile

        Raises:
            ValidationError: If the username is blank or already taken
        """
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username is required")

        with get_session(self.engine) as session:
            if session.query(Profile).filter_by(username=username).first():
                raise ValidationError(f"Username '{username}' is already taken")

            profile = Profile(
                user_id=user_id or str(uuid.uuid4()),
                username=username,
                display_name=display_name or None,
            )
            session.add(profile)
            session.flush()
            logger.info("Created profile %s (%s)", profile.username, profile.user_id)
            return profile

    def update_profile(self, user_id: str, **fields: Any) -> Profile:
        """
        Update the editable fields of a profile.

        Args:
            user_id: Profile to update
            **fields: Any of display_name, bio, privacy_mode, show_in_network.
                      Empty display_name / bio are stored as NULL.

        Returns:
            Updated Profile

        Raises:
            ValidationError: Unknown/immutable field or bad privacy mode
            NotFoundError: If the profile doesn't exist
        """
        if "username" in fields:
            raise ValidationError("Username cannot be changed")
        unknown = [f for f in fields if f not in self.PROFILE_UPDATE_FIELDS]
        if unknown:
            raise ValidationError(
                f"Invalid field(s) {unknown}. Must be one of: {', '.join(self.PROFILE_UPDATE_FIELDS)}"
            )
        if "privacy_mode" in fields and fields["privacy_mode"] not in PRIVACY_MODES:
            raise ValidationError(
                f"Invalid privacy mode '{fields['privacy_mode']}'. Must be one of: {', '.join(PRIVACY_MODES)}"
            )
        if "show_in_network" in fields and not isinstance(fields["show_in_network"], bool):
            raise ValidationError("show_in_network must be true or false")

        with get_session(self.engine) as session:
            profile = session.query(Profile).filter_by(user_id=user_id).first()
            if not profile:
                raise NotFoundError(f"Profile {user_id} not found")

            for field, value in fields.items():
                if field in ("display_name", "bio"):
                    value = value or None
                setattr(profile, field, value)
            profile.updated_at = datetime.now(timezone.utc)
            return profile

    # =========================================================================
    # Connections
    # =========================================================================

    def _joined_connections(self, session, *criteria) -> List[Dict[str, Any]]:
        """Connection records outer-joined with both endpoint profiles."""
        requester = aliased(Profile)
        addressee = aliased(Profile)
        rows = (
            session.query(Connection, requester, addressee)
            .outerjoin(requester, requester.user_id == Connection.requester_id)
            .outerjoin(addressee, addressee.user_id == Connection.addressee_id)
            .filter(*criteria)
            .order_by(Connection.id)
            .all()
        )
        return [
            conn.to_dict(
                requester_profile=req.to_dict() if req is not None else None,
                addressee_profile=addr.to_dict() if addr is not None else None,
            )
            for conn, req, addr in rows
        ]

    def list_connections(self, user_id: str) -> List[Dict[str, Any]]:
        """All connection records involving user_id, joined with both profiles."""
        with get_session(self.engine) as session:
            return self._joined_connections(
                session,
                or_(Connection.requester_id == user_id, Connection.addressee_id == user_id),
            )

    def list_network_connections(self, user_id: str) -> List[Dict[str, Any]]:
        """
        Records involving user_id plus the accepted, visible links among the
        people user_id is connected to (used for second-degree edges).
        """
        own = self.list_connections(user_id)
        neighbours = {
            c["addressee_id"] if c["requester_id"] == user_id else c["requester_id"]
            for c in own
            if c["status"] == STATUS_ACCEPTED and c["is_visible"]
        }
        if len(neighbours) < 2:
            return own

        with get_session(self.engine) as session:
            among = self._joined_connections(
                session,
                Connection.requester_id.in_(neighbours),
                Connection.addressee_id.in_(neighbours),
                Connection.status == STATUS_ACCEPTED,
                Connection.is_visible.is_(True),
            )
        return own + among

    def get_connection_by_id(self, connection_id: int) -> Optional[Connection]:
        """Return a Connection by ID, or None."""
        with get_session(self.engine) as session:
            return session.query(Connection).filter_by(id=connection_id).first()

    def find_connection_between(self, user_a: str, user_b: str) -> Optional[Connection]:
        """Connection for the unordered pair, in any status, or None."""
        with get_session(self.engine) as session:
            return session.query(Connection).filter_by(pair_key=make_pair_key(user_a, user_b)).first()

    def create_connection(
        self,
        requester_id: str,
        addressee_id: str,
        relationship_type: str,
        notes: Optional[str] = None,
    ) -> Connection:
        """
        Create a pending connection request.

        The self and duplicate checks run inside the write transaction; the
        table's CHECK and UNIQUE constraints back them up against races.

        Raises:
            SelfConnectionError: requester_id == addressee_id
            ConnectionExistsError: a record already exists for the pair
            NotFoundError: either profile is missing
            ValidationError: unknown relationship type
        """
        if requester_id == addressee_id:
            raise SelfConnectionError("You cannot connect to yourself")
        if relationship_type not in RELATIONSHIP_TYPES:
            raise ValidationError(
                f"Invalid relationship type '{relationship_type}'. "
                f"Must be one of: {', '.join(RELATIONSHIP_TYPES)}"
            )

        pair_key = make_pair_key(requester_id, addressee_id)
        with get_session(self.engine) as session:
            for uid in (requester_id, addressee_id):
                if not session.query(Profile).filter_by(user_id=uid).first():
                    raise NotFoundError(f"Profile {uid} not found")

            if session.query(Connection).filter_by(pair_key=pair_key).first():
                raise ConnectionExistsError("You already have a connection with this user")

            conn = Connection(
                requester_id=requester_id,
                addressee_id=addressee_id,
                pair_key=pair_key,
                status=STATUS_PENDING,
                relationship_type=relationship_type,
                notes=notes,
            )
            session.add(conn)
            try:
                session.flush()
            except IntegrityError as e:
                # Lost a race with a mirrored request from the other side
                raise ConnectionExistsError("You already have a connection with this user") from e
            logger.info("Connection request %s -> %s (%s)", requester_id, addressee_id, relationship_type)
            return conn

    def _get_pending_for_addressee(self, session, connection_id: int, acting_user_id: str) -> Connection:
        conn = session.query(Connection).filter_by(id=connection_id).first()
        if not conn:
            raise NotFoundError(f"Connection {connection_id} not found")
        if conn.addressee_id != acting_user_id:
            raise PermissionDeniedError("Only the person who received this request can respond to it")
        if conn.status != STATUS_PENDING:
            raise ValidationError(f"Connection {connection_id} is not pending (status: {conn.status})")
        return conn

    def accept_connection(self, connection_id: int, acting_user_id: str) -> Connection:
        """
        Accept a pending request (addressee only).

        Returns:
            The updated Connection
        """
        with get_session(self.engine) as session:
            conn = self._get_pending_for_addressee(session, connection_id, acting_user_id)
            conn.status = STATUS_ACCEPTED
            conn.updated_at = datetime.now(timezone.utc)
            return conn

    def reject_connection(self, connection_id: int, acting_user_id: str) -> bool:
        """Reject a pending request (addressee only). The record is deleted."""
        with get_session(self.engine) as session:
            conn = self._get_pending_for_addressee(session, connection_id, acting_user_id)
            session.delete(conn)
            return True

    def set_connection_visibility(
        self, connection_id: int, acting_user_id: str, is_visible: bool
    ) -> Connection:
        """
        Show or hide an accepted connection in the network view.

        Either party may change it.
        """
        if not isinstance(is_visible, bool):
            raise ValidationError("is_visible must be true or false")
        with get_session(self.engine) as session:
            conn = session.query(Connection).filter_by(id=connection_id).first()
            if not conn:
                raise NotFoundError(f"Connection {connection_id} not found")
            if not conn.involves(acting_user_id):
                raise PermissionDeniedError("You are not part of this connection")
            if conn.status != STATUS_ACCEPTED:
                raise ValidationError("Only accepted connections can be hidden or shown")
            conn.is_visible = is_visible
            conn.updated_at = datetime.now(timezone.utc)
            return conn
