"""Domain entity representing a notification recipient."""

from dataclasses import dataclass


@dataclass
class User:
    """Identity details of a user as exposed by the identity layer."""

    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


__all__ = ["User"]
