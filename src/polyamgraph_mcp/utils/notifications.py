"""User-facing notifications.

Every store call made on behalf of a tool ends in exactly one notification:
a short title, a description, and a variant ("default" or "destructive").
Tool handlers turn them into TextContent.
"""

from dataclasses import dataclass, asdict

from ..database import (
    ConnectionExistsError,
    NotFoundError,
    ValidationError,
)

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = DEFAULT

    @property
    def is_error(self) -> bool:
        return self.variant == DESTRUCTIVE

    def format(self) -> str:
        marker = "✗" if self.is_error else "✓"
        return f"{marker} **{self.title}**\n\n{self.description}"

    def to_dict(self) -> dict:
        return asdict(self)


def success(title: str, description: str) -> Notification:
    return Notification(title, description, DEFAULT)


def failure(title: str, description: str) -> Notification:
    return Notification(title, description, DESTRUCTIVE)


def from_error(
    error: Exception,
    fallback_title: str = "Error",
    not_found_title: str = "Not found",
) -> Notification:
    """
    Map an exception from the store or a guard to a destructive notification.

    Args:
        error: The caught exception
        fallback_title: Title for store errors (DatabaseError) and anything unexpected
        not_found_title: Title for NotFoundError
    """
    if isinstance(error, NotFoundError):
        title = not_found_title
    elif isinstance(error, ConnectionExistsError):
        title = "Connection exists"
    elif isinstance(error, ValidationError):
        title = "Invalid request"
    else:
        title = fallback_title
    return failure(title, str(error))
