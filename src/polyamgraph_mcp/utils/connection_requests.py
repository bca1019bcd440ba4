"""Connection request workflow.

Sending a request resolves the target by username, then applies the two
guards (no self-connection, one record per pair) before the store write.
The store repeats both guards inside its own transaction, so a request
that slips past here because of a concurrent client still fails cleanly.
"""

import logging
from typing import Optional

from ..constants import RELATIONSHIP_TYPES, RELATIONSHIP_TYPE_ALIASES
from ..database import (
    ConnectionExistsError,
    NotFoundError,
    SelfConnectionError,
    ValidationError,
)
from ..models import Connection, Profile

logger = logging.getLogger(__name__)

ACCEPT = "accept"
REJECT = "reject"


def normalize_relationship_type(value: Optional[str]) -> str:
    """
    Canonical relationship type for user input.

    Case-insensitive; "meta" is accepted for "metamour".

    Raises:
        ValidationError: If the value is not a known type
    """
    cleaned = (value or "").strip().lower()
    cleaned = RELATIONSHIP_TYPE_ALIASES.get(cleaned, cleaned)
    if cleaned not in RELATIONSHIP_TYPES:
        raise ValidationError(
            f"Unknown relationship type '{value}'. Must be one of: {', '.join(RELATIONSHIP_TYPES)}"
        )
    return cleaned


def send_connection_request(
    db_helper,
    requester: Profile,
    username: str,
    relationship_type: str,
    notes: Optional[str] = None,
) -> tuple[Connection, Profile]:
    """
    Send a connection request from requester to the user called username.

    Returns:
        (new pending Connection, addressee Profile)

    Raises:
        ValidationError: Blank username or unknown relationship type
        NotFoundError: No profile with that username
        SelfConnectionError: username is the requester's own
        ConnectionExistsError: A record already exists for the pair, any status
    """
    username = (username or "").strip()
    if not username:
        raise ValidationError("Enter a username to connect with")
    relationship_type = normalize_relationship_type(relationship_type)

    target = db_helper.find_profile_by_username(username)
    if target is None:
        raise NotFoundError("No user found with that username")

    if target.user_id == requester.user_id:
        raise SelfConnectionError("You cannot connect to yourself")

    if db_helper.find_connection_between(requester.user_id, target.user_id) is not None:
        raise ConnectionExistsError("You already have a connection with this user")

    connection = db_helper.create_connection(
        requester_id=requester.user_id,
        addressee_id=target.user_id,
        relationship_type=relationship_type,
        notes=notes,
    )
    return connection, target


def respond_to_request(db_helper, viewer: Profile, connection_id: int, action: str):
    """
    Accept or reject an incoming request on behalf of viewer.

    Only the addressee may respond; the store enforces it.

    Returns:
        The accepted Connection, or True for a rejection
    """
    if action == ACCEPT:
        return db_helper.accept_connection(connection_id, viewer.user_id)
    if action == REJECT:
        return db_helper.reject_connection(connection_id, viewer.user_id)
    raise ValidationError(f"Unknown action '{action}'. Use '{ACCEPT}' or '{REJECT}'")
