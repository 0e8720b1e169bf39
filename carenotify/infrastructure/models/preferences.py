"""SQLAlchemy model for per-user notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func

from carenotify.infrastructure.database import Base


class NotificationPreferencesModel(Base):
    """Channel opt-ins and quiet hours for a single user."""

    __tablename__ = "notification_preferences"

    user_id = Column(String(64), ForeignKey("user.id"), primary_key=True)
    email_enabled = Column(Boolean, nullable=False, default=True)
    email_messages = Column(Boolean, nullable=False, default=True)
    email_care_updates = Column(Boolean, nullable=False, default=True)
    email_announcements = Column(Boolean, nullable=False, default=True)
    email_family_activity = Column(Boolean, nullable=False, default=False)
    email_emergency_alerts = Column(Boolean, nullable=False, default=True)
    in_app_enabled = Column(Boolean, nullable=False, default=True)
    in_app_messages = Column(Boolean, nullable=False, default=True)
    in_app_care_updates = Column(Boolean, nullable=False, default=True)
    in_app_announcements = Column(Boolean, nullable=False, default=True)
    in_app_family_activity = Column(Boolean, nullable=False, default=True)
    in_app_emergency_alerts = Column(Boolean, nullable=False, default=True)
    quiet_hours_enabled = Column(Boolean, nullable=False, default=False)
    quiet_hours_start = Column(String(5), nullable=True)
    quiet_hours_end = Column(String(5), nullable=True)
    timezone = Column(String(64), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())


__all__ = ["NotificationPreferencesModel"]
