"""Repository implementations for infrastructure layer."""

from .delivery_log_repository import DeliveryLogRepository
from .family_repository import FamilyRepository
from .notification_repository import NotificationRepository
from .preferences_repository import NotificationPreferencesRepository
from .user_repository import UserRepository

__all__ = [
    "DeliveryLogRepository",
    "FamilyRepository",
    "NotificationPreferencesRepository",
    "NotificationRepository",
    "UserRepository",
]
