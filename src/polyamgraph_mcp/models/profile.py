"""Profile model for storing a member of the network.

A Profile is one person's presence in the app: a unique handle, optional
display data, and the privacy settings that decide who sees them and
whether their node appears in the network view.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from polyamgraph_mcp.constants import DEFAULT_PRIVACY_MODE
from polyamgraph_mcp.database import Base


class Profile(Base):
    """
    User profile keyed by an opaque user identity.

    Design decisions:
    - user_id is the identity connections refer to; id is only the row key
    - username is unique and never changes after creation
    - Profiles are created at sign-up and never deleted by this app
    """

    __tablename__ = "profiles"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True)

    # Identity (uuid string issued at sign-up)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True, index=True)

    # Public handle, used to search for people
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)

    # Display data
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # public | friends | private
    privacy_mode: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DEFAULT_PRIVACY_MODE
    )

    # Include this person's node in the network view
    show_in_network: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

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

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, username='{self.username}', user_id='{self.user_id}')>"

    def get_display_name(self) -> str:
        """Display name, falling back to the username."""
        return self.display_name or self.username

    def to_dict(self) -> dict:
        """
        Convert profile to a plain snapshot.

        This is the shape embedded in connection records and graph nodes.
        """
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.username,
            "display_name": self.display_name,
            "bio": self.bio,
            "avatar_url": self.avatar_url,
            "privacy_mode": self.privacy_mode,
            "show_in_network": self.show_in_network,
        }
