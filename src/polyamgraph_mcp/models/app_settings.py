"""AppSettings model - application-level state.

Stores which identity is currently signed in.
Only one row exists in this table (id=1).

Design decisions:
- Single row table (id always = 1)
- current_user_id can be NULL (signed out)
- ON DELETE SET NULL keeps the app usable if the profile row disappears
"""

from typing import Optional

from sqlalchemy import Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from polyamgraph_mcp.database import Base


class AppSettings(Base):
    """
    Application settings.

    Only one row exists (id=1). Read by the session context on start-up.
    """

    __tablename__ = "app_settings"

    # Always id=1 (single row table)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)

    # Who is signed in right now? NULL = nobody
    current_user_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("profiles.user_id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    def __repr__(self) -> str:
        return f"<AppSettings(current_user_id={self.current_user_id})>"
