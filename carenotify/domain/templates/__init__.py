"""Notification templates keyed by notification type."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from carenotify.domain.entities import NotificationType

from .care_update import care_update_template, get_care_update_notification
from .emergency_alert import (
    emergency_alert_template,
    get_emergency_alert_notification,
    severity_title_prefix,
)
from .engine import (
    NotificationTemplate,
    ProcessedTemplate,
    TemplateVariables,
    format_notification_date,
    get_display_name,
    interpolate,
    process_template,
    truncate_text,
)
from .family_activity import (
    family_activity_template,
    format_participants,
    get_family_activity_notification,
)
from .message import get_message_notification, message_template
from .system_announcement import (
    category_cta_label,
    get_system_announcement_notification,
    system_announcement_template,
)

TemplateRenderer = Callable[[TemplateVariables, Mapping[str, Any] | None], ProcessedTemplate]

TEMPLATE_RENDERERS: dict[NotificationType, TemplateRenderer] = {
    NotificationType.MESSAGE: get_message_notification,
    NotificationType.CARE_UPDATE: get_care_update_notification,
    NotificationType.EMERGENCY_ALERT: get_emergency_alert_notification,
    NotificationType.SYSTEM_ANNOUNCEMENT: get_system_announcement_notification,
    NotificationType.FAMILY_ACTIVITY: get_family_activity_notification,
}


def render_notification(
    notification_type: NotificationType,
    variables: TemplateVariables,
    custom_template: Mapping[str, Any] | None = None,
) -> ProcessedTemplate:
    """Render the template registered for ``notification_type``."""

    renderer = TEMPLATE_RENDERERS[NotificationType(notification_type)]
    return renderer(variables, custom_template)


__all__ = [
    "NotificationTemplate",
    "ProcessedTemplate",
    "TEMPLATE_RENDERERS",
    "TemplateVariables",
    "care_update_template",
    "category_cta_label",
    "emergency_alert_template",
    "family_activity_template",
    "format_notification_date",
    "format_participants",
    "get_care_update_notification",
    "get_display_name",
    "get_emergency_alert_notification",
    "get_family_activity_notification",
    "get_message_notification",
    "get_system_announcement_notification",
    "interpolate",
    "message_template",
    "process_template",
    "render_notification",
    "severity_title_prefix",
    "system_announcement_template",
    "truncate_text",
]
