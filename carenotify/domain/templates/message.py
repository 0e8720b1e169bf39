"""Template for new message notifications."""

from __future__ import annotations

from typing import Any, Final, Mapping

from carenotify.domain.entities import NotificationType

from .engine import (
    NotificationTemplate,
    ProcessedTemplate,
    TemplateVariables,
    process_template,
    truncate_text,
)

MESSAGE_PREVIEW_LENGTH: Final[int] = 100

message_template = NotificationTemplate(
    type=NotificationType.MESSAGE,
    title="New message from {{senderName}}",
    message="{{messagePreview}}",
    rich_message="**{{senderName}}** sent you a message:\n\n> {{messagePreview}}",
    cta_label="Reply",
    cta_url="{{actionUrl}}",
    secondary_label="View Conversation",
    secondary_url="{{actionUrl}}",
)


def get_message_notification(
    variables: TemplateVariables,
    custom_template: Mapping[str, Any] | None = None,
) -> ProcessedTemplate:
    """Render a message notification with a preview-sized body."""

    preview = truncate_text(variables.get("messagePreview"), MESSAGE_PREVIEW_LENGTH)
    merged = {**variables, "messagePreview": preview}

    processed = process_template(
        message_template.merged(custom_template), merged, rich_variables=variables
    )
    if variables.get("senderAvatarUrl"):
        processed.thumbnail_url = str(variables["senderAvatarUrl"])
    return processed
