"""Collaborator contracts consumed by the notification dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Final, Mapping, Protocol, Sequence

from carenotify.domain.entities import (
    DeliveryChannel,
    DeliveryLog,
    DeliveryLogCreate,
    DeliveryLogWithNotification,
    DeliveryMetrics,
    DeliveryStatus,
    Family,
    Notification,
    NotificationPreferences,
    NotificationType,
    User,
)

EVENT_NOTIFICATION: Final[str] = "notification"
EVENT_UNREAD_COUNT: Final[str] = "unread-count"
EVENT_NOTIFICATION_READ: Final[str] = "notification-read"
EVENT_ALL_READ: Final[str] = "all-read"

USER_CHANNEL_PREFIX: Final[str] = "private-user-"
GLOBAL_PRESENCE_CHANNEL: Final[str] = "presence-global"


def user_channel(user_id: str) -> str:
    """Return the private channel name used for ``user_id``."""

    return f"{USER_CHANNEL_PREFIX}{user_id}"


@dataclass(frozen=True)
class PublishResult:
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class EmailResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


class NotificationStore(Protocol):
    async def create(self, notification: Notification) -> Notification: ...

    async def mark_as_read(self, notification_id: str, user_id: str) -> Notification: ...

    async def mark_all_as_read(self, user_id: str) -> int: ...

    async def mark_read_by_source(self, user_id: str, field: str, value: Any) -> int: ...

    async def get_unread_count(self, user_id: str) -> int: ...


class DeliveryLogStore(Protocol):
    async def create(self, data: DeliveryLogCreate) -> DeliveryLog: ...

    async def update_status(
        self,
        log_id: str,
        status: DeliveryStatus,
        *,
        error: str | None = None,
        latency_ms: int | None = None,
    ) -> DeliveryLog: ...

    async def mark_polled(self, user_id: str, notification_ids: Sequence[str]) -> int: ...

    async def get_delivery_metrics(self, since: datetime) -> DeliveryMetrics: ...

    async def get_recent_logs(
        self,
        *,
        limit: int = 50,
        since: datetime | None = None,
        status: DeliveryStatus | None = None,
    ) -> list[DeliveryLogWithNotification]: ...

    async def cleanup_older_than(self, days: int) -> int: ...


class PreferenceStore(Protocol):
    async def get_preferences(self, user_id: str) -> NotificationPreferences: ...

    async def should_send_notification(
        self, user_id: str, notification_type: NotificationType, channel: DeliveryChannel
    ) -> bool: ...

    async def is_within_quiet_hours(self, user_id: str, now: datetime) -> bool: ...

    async def next_available_time(self, user_id: str, now: datetime) -> datetime: ...


class ChannelPublisher(Protocol):
    async def publish(
        self, user_id: str, event: str, payload: Mapping[str, Any]
    ) -> PublishResult: ...

    async def query_connected_users(self, channel_key: str) -> list[str]: ...


class EmailSender(Protocol):
    async def send_notification_email(
        self,
        user_id: str,
        notification_type: NotificationType,
        payload: Mapping[str, Any],
    ) -> EmailResult: ...


class FamilyLookup(Protocol):
    async def get_family_by_id(self, family_id: str) -> Family: ...


class UserDirectory(Protocol):
    async def get_user(self, user_id: str) -> User | None: ...


class EmailScheduler(Protocol):
    def schedule(
        self, run_at: datetime, callback: Callable[[], Awaitable[Any]]
    ) -> None: ...


__all__ = [
    "ChannelPublisher",
    "DeliveryLogStore",
    "EVENT_ALL_READ",
    "EVENT_NOTIFICATION",
    "EVENT_NOTIFICATION_READ",
    "EVENT_UNREAD_COUNT",
    "EmailResult",
    "EmailScheduler",
    "EmailSender",
    "FamilyLookup",
    "GLOBAL_PRESENCE_CHANNEL",
    "NotificationStore",
    "PreferenceStore",
    "PublishResult",
    "USER_CHANNEL_PREFIX",
    "UserDirectory",
    "user_channel",
]
