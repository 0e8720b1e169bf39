"""Notification dispatch use cases."""

from .diagnostics import (
    cleanup_delivery_logs,
    get_delivery_metrics,
    get_recent_delivery_logs,
    record_polled_deliveries,
)
from .dispatcher import (
    BulkDispatchResult,
    BulkRecipient,
    DispatchResult,
    NotificationDispatcher,
    RecipientDispatchResult,
)
from .email_payloads import EMAIL_PAYLOAD_BUILDERS, build_email_payload
from .ports import (
    EVENT_ALL_READ,
    EVENT_NOTIFICATION,
    EVENT_NOTIFICATION_READ,
    EVENT_UNREAD_COUNT,
    GLOBAL_PRESENCE_CHANNEL,
    ChannelPublisher,
    DeliveryLogStore,
    EmailResult,
    EmailScheduler,
    EmailSender,
    FamilyLookup,
    NotificationStore,
    PreferenceStore,
    PublishResult,
    UserDirectory,
    user_channel,
)

__all__ = [
    "BulkDispatchResult",
    "BulkRecipient",
    "ChannelPublisher",
    "DeliveryLogStore",
    "DispatchResult",
    "EMAIL_PAYLOAD_BUILDERS",
    "EVENT_ALL_READ",
    "EVENT_NOTIFICATION",
    "EVENT_NOTIFICATION_READ",
    "EVENT_UNREAD_COUNT",
    "EmailResult",
    "EmailScheduler",
    "EmailSender",
    "FamilyLookup",
    "GLOBAL_PRESENCE_CHANNEL",
    "NotificationDispatcher",
    "NotificationStore",
    "PreferenceStore",
    "PublishResult",
    "RecipientDispatchResult",
    "UserDirectory",
    "build_email_payload",
    "cleanup_delivery_logs",
    "get_delivery_metrics",
    "get_recent_delivery_logs",
    "record_polled_deliveries",
    "user_channel",
]
