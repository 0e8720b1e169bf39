from .delivery import (
    DeliveryCleanupRequest,
    DeliveryCleanupResponse,
    DeliveryLogRead,
    DeliveryMetricsRead,
)
from .notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationRead,
    UnreadCountResponse,
)
from .preferences import NotificationPreferencesRead, NotificationPreferencesUpdate

__all__ = [
    "DeliveryCleanupRequest",
    "DeliveryCleanupResponse",
    "DeliveryLogRead",
    "DeliveryMetricsRead",
    "MarkAllReadResponse",
    "NotificationListResponse",
    "NotificationPreferencesRead",
    "NotificationPreferencesUpdate",
    "NotificationRead",
    "UnreadCountResponse",
]
