"""Template for urgent alerts that require immediate attention."""

from __future__ import annotations

from typing import Any, Final, Mapping

from carenotify.domain.entities import NotificationType

from .engine import NotificationTemplate, ProcessedTemplate, TemplateVariables, process_template

SEVERITY_TITLE_PREFIXES: Final[dict[str, str]] = {
    "critical": "CRITICAL",
    "high": "URGENT",
    "medium": "ALERT",
    "low": "Notice",
}
DEFAULT_TITLE_PREFIX: Final[str] = "Notice"

emergency_alert_template = NotificationTemplate(
    type=NotificationType.EMERGENCY_ALERT,
    title="URGENT: {{alertTitle}}",
    message="{{alertContent}}",
    rich_message=(
        "## Emergency Alert\n\n**{{alertTitle}}**\n\n{{alertContent}}"
        "\n\n---\n\n*Contact: {{contactInfo}}*"
    ),
    cta_label="View Details",
    cta_url="{{actionUrl}}",
    secondary_label="Call Emergency Contact",
    secondary_url="tel:{{emergencyPhone}}",
)


def severity_title_prefix(severity: str | None) -> str:
    """Return the title label used for ``severity``."""

    return SEVERITY_TITLE_PREFIXES.get((severity or "").lower(), DEFAULT_TITLE_PREFIX)


def get_emergency_alert_notification(
    variables: TemplateVariables,
    custom_template: Mapping[str, Any] | None = None,
) -> ProcessedTemplate:
    """Render an emergency alert whose title carries the severity label."""

    prefix = severity_title_prefix(variables.get("severity"))
    template = emergency_alert_template.merged(
        {"title": f"{prefix}: {{{{alertTitle}}}}"}
    ).merged(custom_template)
    return process_template(template, variables)
