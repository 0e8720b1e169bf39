"""Template for family related events and activities."""

from __future__ import annotations

from typing import Any, Final, Mapping, Sequence

from carenotify.domain.entities import NotificationType

from .engine import (
    NotificationTemplate,
    ProcessedTemplate,
    TemplateVariables,
    process_template,
    truncate_text,
)

FAMILY_ACTIVITY_PREVIEW_LENGTH: Final[int] = 150

ACTIVITY_CTA_LABELS: Final[dict[str, str]] = {
    "member_joined": "Welcome Them",
    "member_left": "View Family",
    "resource_shared": "View Resource",
    "event_created": "View Event",
    "document_uploaded": "View Document",
    "task_completed": "View Task",
}
DEFAULT_ACTIVITY_CTA_LABEL: Final[str] = "View Activity"

family_activity_template = NotificationTemplate(
    type=NotificationType.FAMILY_ACTIVITY,
    title="{{activityTitle}}",
    message="{{activityDescription}}",
    rich_message="## {{activityTitle}}\n\n{{activityDescription}}\n\n*{{familyName}} Family*",
    cta_label=DEFAULT_ACTIVITY_CTA_LABEL,
    cta_url="{{actionUrl}}",
)


def format_participants(participants: Sequence[str] | None) -> str:
    """Return a compact, human readable list of participant names."""

    if not participants:
        return ""
    if len(participants) == 1:
        return participants[0]
    if len(participants) == 2:
        return f"{participants[0]} and {participants[1]}"
    return f"{participants[0]} and {len(participants) - 1} others"


def get_family_activity_notification(
    variables: TemplateVariables,
    custom_template: Mapping[str, Any] | None = None,
) -> ProcessedTemplate:
    description = truncate_text(
        variables.get("activityDescription"), FAMILY_ACTIVITY_PREVIEW_LENGTH
    )
    participants_text = format_participants(variables.get("participants"))
    merged = {
        **variables,
        "activityDescription": description,
        "participantsText": participants_text,
    }
    rich = {**variables, "participantsText": participants_text}

    label = ACTIVITY_CTA_LABELS.get(
        variables.get("activityType") or "", DEFAULT_ACTIVITY_CTA_LABEL
    )
    template = family_activity_template.merged({"cta_label": label}).merged(
        custom_template
    )
    processed = process_template(template, merged, rich_variables=rich)
    if variables.get("thumbnailUrl"):
        processed.thumbnail_url = str(variables["thumbnailUrl"])
    return processed
