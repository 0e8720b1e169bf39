"""ORM models used by the application infrastructure."""

from .delivery_log import DeliveryLogModel
from .family import FamilyMemberModel, FamilyModel
from .notification import NotificationModel
from .preferences import NotificationPreferencesModel
from .user import UserModel

__all__ = [
    "DeliveryLogModel",
    "FamilyMemberModel",
    "FamilyModel",
    "NotificationModel",
    "NotificationPreferencesModel",
    "UserModel",
]
