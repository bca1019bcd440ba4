"""Connection model - a relationship record between two profiles.

A Connection starts as a request from one person (requester) to another
(addressee). The addressee accepts it, or rejects it, which deletes the row.
Once accepted it is treated as symmetric for display.

Design decisions:
- pair_key holds the unordered pair "low:high" with a UNIQUE constraint, so
  mirrored requests from two clients cannot both land
- CHECK constraint forbids a connection from a user to themselves
- Both FKs point at profiles.user_id (the identity), not the row id
- Accepted connections can be hidden with is_visible; no further status
  transition is modeled
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime, Boolean, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from polyamgraph_mcp.constants import STATUS_PENDING
from polyamgraph_mcp.database import Base


def make_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a pair of identities."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


class Connection(Base):
    """
    Directed connection record between two user identities.

    Status and relationship type are plain strings validated at the
    application layer (see constants.py).
    """

    __tablename__ = "connections"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True)

    requester_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    addressee_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # One record per unordered pair
    pair_key: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)

    # pending | accepted | blocked
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_PENDING, index=True)

    # partner | friend | metamour | other
    relationship_type: Mapped[str] = mapped_column(String(20), nullable=False)

    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("requester_id != addressee_id", name="ck_connection_not_self"),
    )

    def __repr__(self) -> str:
        return (
            f"<Connection(id={self.id}, requester_id='{self.requester_id}', "
            f"addressee_id='{self.addressee_id}', status='{self.status}')>"
        )

    def involves(self, user_id: str) -> bool:
        return user_id in (self.requester_id, self.addressee_id)

    def to_dict(
        self,
        requester_profile: Optional[dict] = None,
        addressee_profile: Optional[dict] = None,
    ) -> dict:
        """
        Convert to a plain record, joined with both endpoint snapshots.

        requester_profile / addressee_profile are always present as keys;
        None means the join did not resolve.
        """
        return {
            "id": self.id,
            "requester_id": self.requester_id,
            "addressee_id": self.addressee_id,
            "status": self.status,
            "relationship_type": self.relationship_type,
            "is_visible": self.is_visible,
            "notes": self.notes,
            "requester_profile": requester_profile,
            "addressee_profile": addressee_profile,
        }
