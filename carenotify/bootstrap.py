"""Assemble the notification dispatcher and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass

from carenotify.application.use_cases.notifications import NotificationDispatcher
from carenotify.config import Settings, get_settings
from carenotify.infrastructure.email import SendGridEmailSender
from carenotify.infrastructure.notifications import (
    DelayedEmailScheduler,
    NotificationConnectionManager,
    WebsocketChannelPublisher,
)
from carenotify.infrastructure.stores import (
    SessionFactory,
    SqlDeliveryLogStore,
    SqlFamilyLookup,
    SqlNotificationStore,
    SqlPreferenceStore,
    SqlUserDirectory,
)


@dataclass
class NotificationServices:
    """Process-wide notification services shared by request handlers."""

    dispatcher: NotificationDispatcher
    notifications: SqlNotificationStore
    delivery_logs: SqlDeliveryLogStore
    preferences: SqlPreferenceStore
    users: SqlUserDirectory
    manager: NotificationConnectionManager
    scheduler: DelayedEmailScheduler


def build_services(
    session_factory: SessionFactory,
    *,
    settings: Settings | None = None,
    manager: NotificationConnectionManager | None = None,
) -> NotificationServices:
    """Build the dispatcher with SQL stores, websocket publisher and SendGrid sender."""

    settings = settings or get_settings()
    manager = manager or NotificationConnectionManager()
    notifications = SqlNotificationStore(session_factory)
    delivery_logs = SqlDeliveryLogStore(session_factory)
    preferences = SqlPreferenceStore(session_factory)
    users = SqlUserDirectory(session_factory)
    scheduler = DelayedEmailScheduler()

    dispatcher = NotificationDispatcher(
        notifications=notifications,
        delivery_logs=delivery_logs,
        preferences=preferences,
        publisher=WebsocketChannelPublisher(manager),
        email_sender=SendGridEmailSender(users, settings=settings),
        families=SqlFamilyLookup(session_factory),
        scheduler=scheduler,
        brand_name=settings.brand_name,
        quiet_hours_policy=settings.quiet_hours_policy,
        presence_check=settings.presence_check_enabled,
    )
    return NotificationServices(
        dispatcher=dispatcher,
        notifications=notifications,
        delivery_logs=delivery_logs,
        preferences=preferences,
        users=users,
        manager=manager,
        scheduler=scheduler,
    )


def build_dispatcher(
    session_factory: SessionFactory, *, settings: Settings | None = None
) -> NotificationDispatcher:
    return build_services(session_factory, settings=settings).dispatcher


__all__ = ["NotificationServices", "build_dispatcher", "build_services"]
