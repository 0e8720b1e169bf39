"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Kinds of events surfaced to users."""

    MESSAGE = "MESSAGE"
    CARE_UPDATE = "CARE_UPDATE"
    SYSTEM_ANNOUNCEMENT = "SYSTEM_ANNOUNCEMENT"
    FAMILY_ACTIVITY = "FAMILY_ACTIVITY"
    EMERGENCY_ALERT = "EMERGENCY_ALERT"


class NotificationNotFoundError(LookupError):
    """Raised when a notification does not exist for the requesting user."""


@dataclass
class NotificationContent:
    """Caller supplied content used to create a notification."""

    title: str
    message: str
    data: dict[str, Any] | None = None
    is_actionable: bool = False
    action_url: str | None = None
    expires_at: datetime | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    rich_message: str | None = None
    cta_label: str | None = None
    secondary_url: str | None = None
    secondary_label: str | None = None


@dataclass
class Notification:
    """Durable record of one event surfaced to one user."""

    id: str | None
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] | None = None
    is_actionable: bool = False
    action_url: str | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    rich_message: str | None = None
    cta_label: str | None = None
    secondary_url: str | None = None
    secondary_label: str | None = None
    is_read: bool = False
    created_at: datetime | None = None
    read_at: datetime | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_content(
        cls,
        user_id: str,
        notification_type: NotificationType,
        content: NotificationContent,
        *,
        created_at: datetime | None = None,
    ) -> "Notification":
        """Build an unsaved notification for ``user_id`` from ``content``."""

        return cls(
            id=None,
            user_id=user_id,
            type=NotificationType(notification_type),
            title=content.title,
            message=content.message,
            data=dict(content.data) if content.data else None,
            is_actionable=bool(content.is_actionable),
            action_url=content.action_url or None,
            image_url=content.image_url or None,
            thumbnail_url=content.thumbnail_url or None,
            rich_message=content.rich_message or None,
            cta_label=content.cta_label or None,
            secondary_url=content.secondary_url or None,
            secondary_label=content.secondary_label or None,
            is_read=False,
            created_at=created_at,
            read_at=None,
            expires_at=content.expires_at,
        )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


@dataclass
class NotificationPage:
    """A page of notifications for a single user."""

    items: list[Notification] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20

    @property
    def has_next_page(self) -> bool:
        return self.page * self.limit < self.total

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the realtime payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data,
        "is_actionable": notification.is_actionable,
        "action_url": notification.action_url,
        "image_url": notification.image_url,
        "thumbnail_url": notification.thumbnail_url,
        "rich_message": notification.rich_message,
        "cta_label": notification.cta_label,
        "secondary_url": notification.secondary_url,
        "secondary_label": notification.secondary_label,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "read_at": notification.read_at.isoformat() if notification.read_at else None,
    }


__all__ = [
    "Notification",
    "NotificationContent",
    "NotificationNotFoundError",
    "NotificationPage",
    "NotificationType",
    "serialize_notification",
]
