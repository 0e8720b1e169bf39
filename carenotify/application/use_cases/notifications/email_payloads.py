"""Shape the variables handed to the email sender for each notification type."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Mapping

from carenotify.domain.entities import Notification, NotificationType

EmailContext = Mapping[str, Any]
EmailPayloadBuilder = Callable[
    [Notification, EmailContext, datetime, str], dict[str, Any]
]

_MISSING_URL = "#"


def _recipient_name(context: EmailContext) -> str:
    return str(context.get("recipientName") or "")


def _action_url(notification: Notification) -> str:
    return notification.action_url or _MISSING_URL


def _message_payload(
    notification: Notification, context: EmailContext, now: datetime, brand_name: str
) -> dict[str, Any]:
    return {
        "recipientName": _recipient_name(context),
        "senderName": context.get("senderName") or "Unknown",
        "messagePreview": notification.message,
        "conversationUrl": _action_url(notification),
        "conversationTitle": context.get("conversationTitle"),
        "familyName": context.get("familyName"),
        "messageCount": context.get("messageCount"),
    }


def _care_update_payload(
    notification: Notification, context: EmailContext, now: datetime, brand_name: str
) -> dict[str, Any]:
    return {
        "recipientName": _recipient_name(context),
        "familyName": context.get("familyName") or "",
        "updateTitle": notification.title,
        "updateContent": notification.message,
        "updateUrl": _action_url(notification),
        "updateAuthor": context.get("updateAuthor") or "System",
        "updateDate": now.isoformat(),
    }


def _emergency_alert_payload(
    notification: Notification, context: EmailContext, now: datetime, brand_name: str
) -> dict[str, Any]:
    return {
        "recipientName": _recipient_name(context),
        "alertTitle": notification.title,
        "alertContent": notification.message,
        "alertUrl": _action_url(notification),
        "familyName": context.get("familyName") or "",
        "contactInfo": context.get("contactInfo") or "",
        "issueDate": now.isoformat(),
        "severity": context.get("severity") or "medium",
    }


def _announcement_payload(
    notification: Notification, context: EmailContext, now: datetime, brand_name: str
) -> dict[str, Any]:
    return {
        "recipientName": _recipient_name(context),
        "announcementTitle": notification.title,
        "announcementContent": notification.message,
        "announcementUrl": _action_url(notification),
        "authorName": context.get("authorName") or f"{brand_name} Team",
        "publishDate": now.isoformat(),
        "priority": context.get("priority") or "normal",
    }


def _family_activity_payload(
    notification: Notification, context: EmailContext, now: datetime, brand_name: str
) -> dict[str, Any]:
    return {
        "recipientName": _recipient_name(context),
        "familyName": context.get("familyName") or "",
        "activityTitle": notification.title,
        "activityDescription": notification.message,
        "activityUrl": _action_url(notification),
        "activityDate": now.isoformat(),
        "participants": list(context.get("participants") or []),
    }


def _generic_payload(
    notification: Notification, context: EmailContext, now: datetime, brand_name: str
) -> dict[str, Any]:
    return {
        "recipientName": _recipient_name(context),
        "announcementTitle": notification.title,
        "announcementContent": notification.message,
        "announcementUrl": _action_url(notification),
        "authorName": brand_name,
        "publishDate": now.isoformat(),
        "priority": "normal",
    }


EMAIL_PAYLOAD_BUILDERS: dict[NotificationType, EmailPayloadBuilder] = {
    NotificationType.MESSAGE: _message_payload,
    NotificationType.CARE_UPDATE: _care_update_payload,
    NotificationType.EMERGENCY_ALERT: _emergency_alert_payload,
    NotificationType.SYSTEM_ANNOUNCEMENT: _announcement_payload,
    NotificationType.FAMILY_ACTIVITY: _family_activity_payload,
}


def build_email_payload(
    notification: Notification,
    context: EmailContext,
    *,
    now: datetime,
    brand_name: str,
) -> dict[str, Any]:
    """Return the email variables for ``notification``.

    Types without a dedicated builder fall back to a generic announcement.
    """

    builder = EMAIL_PAYLOAD_BUILDERS.get(notification.type, _generic_payload)
    return builder(notification, context, now, brand_name)


__all__ = [
    "EMAIL_PAYLOAD_BUILDERS",
    "EmailContext",
    "EmailPayloadBuilder",
    "build_email_payload",
]
