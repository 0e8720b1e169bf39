"""Domain entity representing a family and its members."""

from dataclasses import dataclass, field

from .user import User


class FamilyNotFoundError(LookupError):
    """Raised when a family cannot be resolved or has no members."""


@dataclass
class Family:
    """A group of users notified together about shared activity."""

    id: str
    name: str
    members: list[User] = field(default_factory=list)


__all__ = ["Family", "FamilyNotFoundError"]
