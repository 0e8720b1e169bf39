"""Template for care plan and health status updates."""

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

CARE_UPDATE_PREVIEW_LENGTH: Final[int] = 200

care_update_template = NotificationTemplate(
    type=NotificationType.CARE_UPDATE,
    title="Care Update: {{updateTitle}}",
    message="{{updateAuthor}} posted an update for {{familyName}}",
    rich_message="## {{updateTitle}}\n\n{{updateContent}}\n\n*Posted by {{updateAuthor}}*",
    cta_label="View Update",
    cta_url="{{actionUrl}}",
    secondary_label="View All Updates",
    secondary_url="{{familyUrl}}",
)


def get_care_update_notification(
    variables: TemplateVariables,
    custom_template: Mapping[str, Any] | None = None,
) -> ProcessedTemplate:
    content = truncate_text(variables.get("updateContent"), CARE_UPDATE_PREVIEW_LENGTH)
    merged = {**variables, "updateContent": content}

    processed = process_template(
        care_update_template.merged(custom_template), merged, rich_variables=variables
    )
    if variables.get("imageUrl"):
        processed.image_url = str(variables["imageUrl"])
    return processed
