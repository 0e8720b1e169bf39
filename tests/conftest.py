"""Shared fixtures and in-memory collaborators for the test-suite."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping, Sequence

import anyio
import pytest
from sqlalchemy.orm import sessionmaker

from carenotify.application.use_cases.notifications import (
    EmailResult,
    NotificationDispatcher,
    PublishResult,
)
from carenotify.config import reset_settings_cache
from carenotify.domain.entities import (
    DeliveryChannel,
    DeliveryLog,
    DeliveryLogCreate,
    DeliveryStatus,
    Family,
    FamilyNotFoundError,
    Notification,
    NotificationNotFoundError,
    NotificationPreferences,
    NotificationType,
)
from carenotify.infrastructure.database import build_engine, initialize_database


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite database with the full schema."""

    engine = build_engine(f"sqlite:///{tmp_path / 'carenotify.db'}")
    initialize_database(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep tests independent from any local ``.env`` configuration."""

    for name in ("SENDGRID_API_KEY", "SENDGRID_SENDER", "APP_TIMEZONE", "QUIET_HOURS_POLICY"):
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryNotificationStore:
    def __init__(self) -> None:
        self.items: dict[str, Notification] = {}
        self._ids = itertools.count(1)
        self.fail_create: Exception | None = None

    async def create(self, notification: Notification) -> Notification:
        if self.fail_create is not None:
            raise self.fail_create
        notification.id = f"n{next(self._ids)}"
        self.items[notification.id] = notification
        return notification

    async def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        notification = self.items.get(notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotificationNotFoundError(notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
        return notification

    async def mark_all_as_read(self, user_id: str) -> int:
        updated = 0
        for notification in self.items.values():
            if notification.user_id == user_id and not notification.is_read:
                notification.is_read = True
                updated += 1
        return updated

    async def mark_read_by_source(self, user_id: str, field: str, value: Any) -> int:
        updated = 0
        for notification in self.items.values():
            data = notification.data or {}
            if notification.user_id == user_id and not notification.is_read and data.get(field) == value:
                notification.is_read = True
                updated += 1
        return updated

    async def get_unread_count(self, user_id: str) -> int:
        return sum(
            1
            for notification in self.items.values()
            if notification.user_id == user_id and not notification.is_read
        )

    def for_user(self, user_id: str) -> list[Notification]:
        return [n for n in self.items.values() if n.user_id == user_id]


class InMemoryDeliveryLogStore:
    def __init__(self) -> None:
        self.logs: dict[str, DeliveryLog] = {}
        self.history: list[tuple[DeliveryStatus, DeliveryStatus]] = []
        self._ids = itertools.count(1)
        self.fail_create: Exception | None = None

    async def create(self, data: DeliveryLogCreate) -> DeliveryLog:
        if self.fail_create is not None:
            raise self.fail_create
        log = DeliveryLog(
            id=f"d{next(self._ids)}",
            notification_id=data.notification_id,
            user_id=data.user_id,
            was_connected=data.was_connected,
            connection_id=data.connection_id,
        )
        self.logs[log.id] = log
        return log

    async def update_status(
        self,
        log_id: str,
        status: DeliveryStatus,
        *,
        error: str | None = None,
        latency_ms: int | None = None,
    ) -> DeliveryLog:
        current = self.logs[log_id]
        updated = current.transition(
            status, at=datetime.now(timezone.utc), error=error, latency_ms=latency_ms
        )
        self.history.append((current.status, updated.status))
        self.logs[log_id] = updated
        return updated

    async def mark_polled(self, user_id: str, notification_ids: Sequence[str]) -> int:
        updated = 0
        for log_id, log in list(self.logs.items()):
            if log.user_id == user_id and log.notification_id in notification_ids:
                if log.status in (DeliveryStatus.PENDING, DeliveryStatus.FAILED):
                    await self.update_status(log_id, DeliveryStatus.POLLED)
                    updated += 1
        return updated

    def for_notification(self, notification_id: str) -> DeliveryLog:
        return next(log for log in self.logs.values() if log.notification_id == notification_id)


class InMemoryPreferenceStore:
    def __init__(self) -> None:
        self.items: dict[str, NotificationPreferences] = {}

    def set(self, preferences: NotificationPreferences) -> None:
        self.items[preferences.user_id] = preferences

    async def get_preferences(self, user_id: str) -> NotificationPreferences:
        return self.items.setdefault(user_id, NotificationPreferences.defaults(user_id))

    async def should_send_notification(
        self, user_id: str, notification_type: NotificationType, channel: DeliveryChannel
    ) -> bool:
        return (await self.get_preferences(user_id)).allows(notification_type, channel)

    async def is_within_quiet_hours(self, user_id: str, now: datetime) -> bool:
        return (await self.get_preferences(user_id)).is_within_quiet_hours(now)

    async def next_available_time(self, user_id: str, now: datetime) -> datetime:
        return (await self.get_preferences(user_id)).next_available_time(now)


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []
        self.fail_for: dict[str, str] = {}
        self.raise_for: set[str] = set()
        self.connected: list[str] = []
        self.delay: float = 0.0

    async def publish(self, user_id: str, event: str, payload: Mapping[str, Any]) -> PublishResult:
        if self.delay:
            await anyio.sleep(self.delay)
        if event == "notification" and user_id in self.raise_for:
            raise RuntimeError(f"channel exploded for {user_id}")
        self.events.append((user_id, event, dict(payload)))
        if event == "notification" and user_id in self.fail_for:
            return PublishResult(success=False, error=self.fail_for[user_id])
        return PublishResult(success=True)

    async def query_connected_users(self, channel_key: str) -> list[str]:
        return list(self.connected)

    def events_named(self, event: str, user_id: str | None = None) -> list[dict[str, Any]]:
        return [
            payload
            for target, name, payload in self.events
            if name == event and (user_id is None or target == user_id)
        ]


class RecordingEmailSender:
    def __init__(self) -> None:
        self.sent: list[tuple[str, NotificationType, dict[str, Any]]] = []
        self.result = EmailResult(success=True, message_id="msg-1")
        self.error: Exception | None = None

    async def send_notification_email(
        self, user_id: str, notification_type: NotificationType, payload: Mapping[str, Any]
    ) -> EmailResult:
        if self.error is not None:
            raise self.error
        self.sent.append((user_id, notification_type, dict(payload)))
        return self.result


class InMemoryFamilyLookup:
    def __init__(self) -> None:
        self.families: dict[str, Family] = {}

    async def get_family_by_id(self, family_id: str) -> Family:
        try:
            return self.families[family_id]
        except KeyError:
            raise FamilyNotFoundError(f"Family with id {family_id} not found") from None


class RecordingScheduler:
    def __init__(self) -> None:
        self.scheduled: list[tuple[datetime, Callable[[], Awaitable[Any]]]] = []

    def schedule(self, run_at: datetime, callback: Callable[[], Awaitable[Any]]) -> None:
        self.scheduled.append((run_at, callback))


@dataclass
class DispatchHarness:
    notifications: InMemoryNotificationStore = field(default_factory=InMemoryNotificationStore)
    delivery_logs: InMemoryDeliveryLogStore = field(default_factory=InMemoryDeliveryLogStore)
    preferences: InMemoryPreferenceStore = field(default_factory=InMemoryPreferenceStore)
    publisher: RecordingPublisher = field(default_factory=RecordingPublisher)
    email_sender: RecordingEmailSender = field(default_factory=RecordingEmailSender)
    families: InMemoryFamilyLookup = field(default_factory=InMemoryFamilyLookup)
    scheduler: RecordingScheduler = field(default_factory=RecordingScheduler)
    clock: FixedClock = field(
        default_factory=lambda: FixedClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))
    )

    def dispatcher(self, **overrides: Any) -> NotificationDispatcher:
        options: dict[str, Any] = {
            "notifications": self.notifications,
            "delivery_logs": self.delivery_logs,
            "preferences": self.preferences,
            "publisher": self.publisher,
            "email_sender": self.email_sender,
            "families": self.families,
            "scheduler": self.scheduler,
            "clock": self.clock,
        }
        options.update(overrides)
        return NotificationDispatcher(**options)


@pytest.fixture
def harness() -> DispatchHarness:
    return DispatchHarness()
