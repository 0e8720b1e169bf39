"""Domain entities exposed by the application."""

from .delivery_log import (
    POLLABLE_STATUSES,
    SUCCESS_STATUSES,
    DeliveryLog,
    DeliveryLogCreate,
    DeliveryLogNotFoundError,
    DeliveryLogWithNotification,
    DeliveryMetrics,
    DeliveryStatus,
    InvalidDeliveryTransitionError,
    can_transition,
)
from .family import Family, FamilyNotFoundError
from .notification import (
    Notification,
    NotificationContent,
    NotificationNotFoundError,
    NotificationPage,
    NotificationType,
    serialize_notification,
)
from .preferences import (
    DeliveryChannel,
    NotificationPreferences,
    parse_clock,
    preference_field,
)
from .user import User

__all__ = [
    "DeliveryChannel",
    "DeliveryLog",
    "DeliveryLogCreate",
    "DeliveryLogNotFoundError",
    "DeliveryLogWithNotification",
    "DeliveryMetrics",
    "DeliveryStatus",
    "Family",
    "FamilyNotFoundError",
    "InvalidDeliveryTransitionError",
    "Notification",
    "NotificationContent",
    "NotificationNotFoundError",
    "NotificationPage",
    "NotificationPreferences",
    "NotificationType",
    "POLLABLE_STATUSES",
    "SUCCESS_STATUSES",
    "User",
    "can_transition",
    "parse_clock",
    "preference_field",
    "serialize_notification",
]
