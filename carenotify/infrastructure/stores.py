"""Async adapters exposing the SQL repositories through the dispatcher ports.

Every operation opens its own session and runs the synchronous repository call
on a worker thread, so concurrent dispatches never share a session.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any, TypeVar

import anyio
from sqlalchemy.orm import Session

from carenotify.domain.entities import (
    DeliveryChannel,
    DeliveryLog,
    DeliveryLogCreate,
    DeliveryLogWithNotification,
    DeliveryMetrics,
    DeliveryStatus,
    Family,
    Notification,
    NotificationPage,
    NotificationPreferences,
    NotificationType,
    User,
)
from carenotify.infrastructure.repositories import (
    DeliveryLogRepository,
    FamilyRepository,
    NotificationPreferencesRepository,
    NotificationRepository,
    UserRepository,
)

T = TypeVar("T")

SessionFactory = Callable[[], Session]


class _SessionScopedStore:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def _run(self, operation: Callable[[Session], T]) -> T:
        def _call() -> T:
            with self._session_factory() as session:
                return operation(session)

        return await anyio.to_thread.run_sync(_call)


class SqlNotificationStore(_SessionScopedStore):
    """Notification store backed by :class:`NotificationRepository`."""

    async def create(self, notification: Notification) -> Notification:
        return await self._run(lambda s: NotificationRepository(s).create(notification))

    async def get(self, notification_id: str, user_id: str) -> Notification | None:
        return await self._run(
            lambda s: NotificationRepository(s).get(notification_id, user_id=user_id)
        )

    async def list_for_user(
        self,
        user_id: str,
        *,
        is_read: bool | None = None,
        notification_type: NotificationType | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> NotificationPage:
        return await self._run(
            lambda s: NotificationRepository(s).list_for_user(
                user_id,
                is_read=is_read,
                notification_type=notification_type,
                page=page,
                limit=limit,
            )
        )

    async def list_unread(self, user_id: str, *, limit: int | None = 50) -> list[Notification]:
        return await self._run(
            lambda s: list(NotificationRepository(s).list_unread_for_user(user_id, limit=limit))
        )

    async def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        return await self._run(
            lambda s: NotificationRepository(s).mark_as_read(notification_id, user_id=user_id)
        )

    async def mark_many_as_read(self, notification_ids: Sequence[str], user_id: str) -> int:
        return await self._run(
            lambda s: NotificationRepository(s).mark_many_as_read(
                notification_ids, user_id=user_id
            )
        )

    async def mark_all_as_read(self, user_id: str) -> int:
        return await self._run(lambda s: NotificationRepository(s).mark_all_as_read(user_id))

    async def mark_read_by_source(self, user_id: str, field: str, value: Any) -> int:
        return await self._run(
            lambda s: NotificationRepository(s).mark_read_by_source(user_id, field, value)
        )

    async def get_unread_count(self, user_id: str) -> int:
        return await self._run(lambda s: NotificationRepository(s).get_unread_count(user_id))

    async def delete_expired(self) -> int:
        return await self._run(lambda s: NotificationRepository(s).delete_expired())


class SqlDeliveryLogStore(_SessionScopedStore):
    """Delivery log store backed by :class:`DeliveryLogRepository`."""

    async def create(self, data: DeliveryLogCreate) -> DeliveryLog:
        return await self._run(lambda s: DeliveryLogRepository(s).create(data))

    async def get(self, log_id: str) -> DeliveryLog | None:
        return await self._run(lambda s: DeliveryLogRepository(s).get(log_id))

    async def update_status(
        self,
        log_id: str,
        status: DeliveryStatus,
        *,
        error: str | None = None,
        latency_ms: int | None = None,
    ) -> DeliveryLog:
        return await self._run(
            lambda s: DeliveryLogRepository(s).update_status(
                log_id, status, error=error, latency_ms=latency_ms
            )
        )

    async def mark_polled(self, user_id: str, notification_ids: Sequence[str]) -> int:
        return await self._run(
            lambda s: DeliveryLogRepository(s).mark_polled(user_id, notification_ids)
        )

    async def get_delivery_metrics(self, since: datetime) -> DeliveryMetrics:
        return await self._run(lambda s: DeliveryLogRepository(s).get_delivery_metrics(since))

    async def get_recent_logs(
        self,
        *,
        limit: int = 50,
        since: datetime | None = None,
        status: DeliveryStatus | None = None,
    ) -> list[DeliveryLogWithNotification]:
        return await self._run(
            lambda s: DeliveryLogRepository(s).get_recent_logs(
                limit=limit, since=since, status=status
            )
        )

    async def cleanup_older_than(self, days: int) -> int:
        return await self._run(lambda s: DeliveryLogRepository(s).cleanup_older_than(days))


class SqlPreferenceStore(_SessionScopedStore):
    """Preference store backed by :class:`NotificationPreferencesRepository`."""

    async def get_preferences(self, user_id: str) -> NotificationPreferences:
        return await self._run(
            lambda s: NotificationPreferencesRepository(s).get_or_create(user_id)
        )

    async def upsert_preferences(
        self, preferences: NotificationPreferences
    ) -> NotificationPreferences:
        return await self._run(
            lambda s: NotificationPreferencesRepository(s).upsert(preferences)
        )

    async def disable_email(
        self,
        user_id: str,
        notification_types: Iterable[NotificationType] | None = None,
    ) -> NotificationPreferences:
        types = list(notification_types) if notification_types is not None else None
        return await self._run(
            lambda s: NotificationPreferencesRepository(s).disable_email(user_id, types)
        )

    async def should_send_notification(
        self, user_id: str, notification_type: NotificationType, channel: DeliveryChannel
    ) -> bool:
        preferences = await self.get_preferences(user_id)
        return preferences.allows(notification_type, channel)

    async def is_within_quiet_hours(self, user_id: str, now: datetime) -> bool:
        preferences = await self.get_preferences(user_id)
        return preferences.is_within_quiet_hours(now)

    async def next_available_time(self, user_id: str, now: datetime) -> datetime:
        preferences = await self.get_preferences(user_id)
        return preferences.next_available_time(now)


class SqlFamilyLookup(_SessionScopedStore):
    async def get_family_by_id(self, family_id: str) -> Family:
        return await self._run(lambda s: FamilyRepository(s).get_by_id(family_id))


class SqlUserDirectory(_SessionScopedStore):
    async def get_user(self, user_id: str) -> User | None:
        return await self._run(lambda s: UserRepository(s).get(user_id))


__all__ = [
    "SessionFactory",
    "SqlDeliveryLogStore",
    "SqlFamilyLookup",
    "SqlNotificationStore",
    "SqlPreferenceStore",
    "SqlUserDirectory",
]
