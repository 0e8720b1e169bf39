"""Per-user notification channel preferences and quiet hours."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Final

from carenotify.utils import resolve_timezone

from .notification import NotificationType


class DeliveryChannel(str, Enum):
    """Channels a notification can be delivered through."""

    EMAIL = "email"
    IN_APP = "inApp"


_TYPE_FIELD_SUFFIX: Final[dict[NotificationType, str]] = {
    NotificationType.MESSAGE: "messages",
    NotificationType.CARE_UPDATE: "care_updates",
    NotificationType.SYSTEM_ANNOUNCEMENT: "announcements",
    NotificationType.FAMILY_ACTIVITY: "family_activity",
    NotificationType.EMERGENCY_ALERT: "emergency_alerts",
}
_CHANNEL_FIELD_PREFIX: Final[dict[DeliveryChannel, str]] = {
    DeliveryChannel.EMAIL: "email",
    DeliveryChannel.IN_APP: "in_app",
}


def parse_clock(value: str | None) -> int | None:
    """Return the minute of the day for an ``HH:MM`` string, or ``None``."""

    if not value:
        return None
    try:
        hours_text, minutes_text = value.strip().split(":", 1)
        hours, minutes = int(hours_text), int(minutes_text)
    except ValueError:
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def preference_field(
    notification_type: NotificationType, channel: DeliveryChannel
) -> str | None:
    """Return the flag name holding the opt-in for ``notification_type`` on ``channel``."""

    try:
        suffix = _TYPE_FIELD_SUFFIX[NotificationType(notification_type)]
    except (KeyError, ValueError):
        return None
    return f"{_CHANNEL_FIELD_PREFIX[DeliveryChannel(channel)]}_{suffix}"


@dataclass
class NotificationPreferences:
    """Opt-in matrix per (channel, notification type) plus quiet hours.

    Quiet hours only ever gate email delivery.
    """

    user_id: str
    email_enabled: bool = True
    email_messages: bool = True
    email_care_updates: bool = True
    email_announcements: bool = True
    email_family_activity: bool = False
    email_emergency_alerts: bool = True
    in_app_enabled: bool = True
    in_app_messages: bool = True
    in_app_care_updates: bool = True
    in_app_announcements: bool = True
    in_app_family_activity: bool = True
    in_app_emergency_alerts: bool = True
    quiet_hours_enabled: bool = False
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    timezone: str | None = None

    @classmethod
    def defaults(cls, user_id: str) -> "NotificationPreferences":
        return cls(user_id=user_id)

    def allows(
        self, notification_type: NotificationType, channel: DeliveryChannel
    ) -> bool:
        """Return ``True`` when ``channel`` is enabled for ``notification_type``."""

        channel = DeliveryChannel(channel)
        prefix = _CHANNEL_FIELD_PREFIX[channel]
        if not getattr(self, f"{prefix}_enabled"):
            return False

        flag = preference_field(notification_type, channel)
        if flag is None:
            return True
        return bool(getattr(self, flag, True))

    def _quiet_window(self) -> tuple[int, int] | None:
        if not self.quiet_hours_enabled:
            return None
        start = parse_clock(self.quiet_hours_start)
        end = parse_clock(self.quiet_hours_end)
        if start is None or end is None:
            return None
        return start, end

    def is_within_quiet_hours(self, now: datetime) -> bool:
        """Return ``True`` when ``now`` falls inside the quiet-hours window.

        The window is evaluated in the user's timezone with inclusive bounds at
        minute granularity. A start later than the end wraps past midnight.
        """

        window = self._quiet_window()
        if window is None:
            return False
        start, end = window

        local = now.astimezone(resolve_timezone(self.timezone))
        current = local.hour * 60 + local.minute

        if start > end:
            return current >= start or current <= end
        return start <= current <= end

    def next_available_time(self, now: datetime) -> datetime:
        """Return the first minute after the current quiet-hours window closes."""

        window = self._quiet_window()
        if window is None:
            return now
        _, end = window

        local = now.astimezone(resolve_timezone(self.timezone))
        candidate = local.replace(
            hour=end // 60, minute=end % 60, second=0, microsecond=0
        ) + timedelta(minutes=1)
        if candidate <= local:
            candidate += timedelta(days=1)
        return candidate


__all__ = [
    "DeliveryChannel",
    "NotificationPreferences",
    "parse_clock",
    "preference_field",
]
