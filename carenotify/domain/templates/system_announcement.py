"""Template for platform-wide announcements, updates and news."""

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

ANNOUNCEMENT_PREVIEW_LENGTH: Final[int] = 150

CATEGORY_CTA_LABELS: Final[dict[str, str]] = {
    "update": "See What's New",
    "maintenance": "View Details",
    "feature": "Try It Now",
    "news": "Read More",
}
DEFAULT_CTA_LABEL: Final[str] = "Learn More"

system_announcement_template = NotificationTemplate(
    type=NotificationType.SYSTEM_ANNOUNCEMENT,
    title="{{announcementTitle}}",
    message="{{announcementContent}}",
    rich_message="## {{announcementTitle}}\n\n{{announcementContent}}\n\n*From the {{brandName}} Team*",
    cta_label=DEFAULT_CTA_LABEL,
    cta_url="{{actionUrl}}",
)


def category_cta_label(category: str | None) -> str:
    return CATEGORY_CTA_LABELS.get((category or "").lower(), DEFAULT_CTA_LABEL)


def get_system_announcement_notification(
    variables: TemplateVariables,
    custom_template: Mapping[str, Any] | None = None,
) -> ProcessedTemplate:
    content = truncate_text(
        variables.get("announcementContent"), ANNOUNCEMENT_PREVIEW_LENGTH
    )
    merged = {**variables, "announcementContent": content}

    template = system_announcement_template.merged(
        {"cta_label": category_cta_label(variables.get("category"))}
    ).merged(custom_template)
    processed = process_template(template, merged, rich_variables=variables)
    if variables.get("bannerImageUrl"):
        processed.image_url = str(variables["bannerImageUrl"])
    return processed
