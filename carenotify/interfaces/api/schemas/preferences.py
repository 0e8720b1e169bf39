"""Pydantic models for notification preference settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

_CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class NotificationPreferencesRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email_enabled: bool
    email_messages: bool
    email_care_updates: bool
    email_announcements: bool
    email_family_activity: bool
    email_emergency_alerts: bool
    in_app_enabled: bool
    in_app_messages: bool
    in_app_care_updates: bool
    in_app_announcements: bool
    in_app_family_activity: bool
    in_app_emergency_alerts: bool
    quiet_hours_enabled: bool
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    timezone: str | None = None


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    email_enabled: bool | None = None
    email_messages: bool | None = None
    email_care_updates: bool | None = None
    email_announcements: bool | None = None
    email_family_activity: bool | None = None
    email_emergency_alerts: bool | None = None
    in_app_enabled: bool | None = None
    in_app_messages: bool | None = None
    in_app_care_updates: bool | None = None
    in_app_announcements: bool | None = None
    in_app_family_activity: bool | None = None
    in_app_emergency_alerts: bool | None = None
    quiet_hours_enabled: bool | None = None
    quiet_hours_start: str | None = Field(default=None, pattern=_CLOCK_PATTERN)
    quiet_hours_end: str | None = Field(default=None, pattern=_CLOCK_PATTERN)
    timezone: str | None = Field(default=None, max_length=64)


__all__ = ["NotificationPreferencesRead", "NotificationPreferencesUpdate"]
