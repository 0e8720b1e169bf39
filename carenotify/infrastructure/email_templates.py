"""Email templates rendered for each notification type."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any, Final, Mapping

from carenotify.domain.entities import NotificationType
from carenotify.domain.templates import interpolate


@dataclass(frozen=True)
class EmailTemplate:
    id: str
    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class RenderedEmail:
    template_id: str
    subject: str
    html: str
    text: str


_FOOTER_HTML = (
    '<p style="font-size:12px;color:#6c757d">'
    '<a href="{{unsubscribeUrl}}">Unsubscribe</a> | '
    '<a href="{{baseUrl}}/support">Contact Support</a> | {{supportEmail}}</p>'
)
_FOOTER_TEXT = "Unsubscribe: {{unsubscribeUrl}}\nSupport: {{supportEmail}}"


def _html_body(heading: str, body: str, button_label: str, button_url: str) -> str:
    return (
        '<div style="max-width:600px;margin:0 auto;font-family:Arial,sans-serif">'
        f"<h1>{heading}</h1>"
        "<p>Hello {{recipientName}},</p>"
        f"{body}"
        f'<p><a href="{button_url}">{button_label}</a></p>'
        "<p>Best regards,<br>The {{brandName}} Team</p>"
        f"{_FOOTER_HTML}</div>"
    )


MESSAGE_EMAIL = EmailTemplate(
    id="message-notification",
    subject="New message from {{senderName}}",
    html=_html_body(
        "New Message",
        "<p><strong>{{senderName}}</strong> sent you a message.</p>"
        "<blockquote>{{messagePreview}}</blockquote>",
        "View Message",
        "{{conversationUrl}}",
    ),
    text=(
        "Hello {{recipientName}},\n\n{{senderName}} sent you a message:\n\n"
        "{{messagePreview}}\n\nView the message: {{conversationUrl}}\n\n" + _FOOTER_TEXT
    ),
)

CARE_UPDATE_EMAIL = EmailTemplate(
    id="care-update-notification",
    subject="Care update for {{familyName}}",
    html=_html_body(
        "Care Update",
        "<p><strong>{{updateAuthor}}</strong> posted an update for {{familyName}}.</p>"
        "<h2>{{updateTitle}}</h2><p>{{updateContent}}</p>",
        "View Update",
        "{{updateUrl}}",
    ),
    text=(
        "Hello {{recipientName}},\n\n{{updateAuthor}} posted an update for {{familyName}}:\n\n"
        "{{updateTitle}}\n{{updateContent}}\n\nView the update: {{updateUrl}}\n\n" + _FOOTER_TEXT
    ),
)

EMERGENCY_ALERT_EMAIL = EmailTemplate(
    id="emergency-alert-notification",
    subject="URGENT: {{alertTitle}}",
    html=_html_body(
        "Emergency Alert",
        "<h2>{{alertTitle}}</h2><p>{{alertContent}}</p>"
        "<p><strong>Severity:</strong> {{severity}}</p>"
        "<p><strong>Contact:</strong> {{contactInfo}}</p>",
        "View Details",
        "{{alertUrl}}",
    ),
    text=(
        "Hello {{recipientName}},\n\nEMERGENCY ALERT ({{severity}}): {{alertTitle}}\n\n"
        "{{alertContent}}\n\nContact: {{contactInfo}}\nDetails: {{alertUrl}}\n\n" + _FOOTER_TEXT
    ),
)

SYSTEM_ANNOUNCEMENT_EMAIL = EmailTemplate(
    id="system-announcement-notification",
    subject="{{announcementTitle}}",
    html=_html_body(
        "{{announcementTitle}}",
        "<p>{{announcementContent}}</p><p><em>{{authorName}}</em></p>",
        "Read More",
        "{{announcementUrl}}",
    ),
    text=(
        "Hello {{recipientName}},\n\n{{announcementTitle}}\n\n{{announcementContent}}\n\n"
        "{{authorName}}\nRead more: {{announcementUrl}}\n\n" + _FOOTER_TEXT
    ),
)

FAMILY_ACTIVITY_EMAIL = EmailTemplate(
    id="family-activity-notification",
    subject="{{activityTitle}}",
    html=_html_body(
        "Family Activity",
        "<h2>{{activityTitle}}</h2><p>{{activityDescription}}</p>"
        "<p><strong>Participants:</strong> {{participants}}</p>",
        "View Activity",
        "{{activityUrl}}",
    ),
    text=(
        "Hello {{recipientName}},\n\n{{activityTitle}} ({{familyName}})\n\n"
        "{{activityDescription}}\n\nView activity: {{activityUrl}}\n\n" + _FOOTER_TEXT
    ),
)

DEFAULT_EMAIL = EmailTemplate(
    id="default-notification",
    subject="{{announcementTitle}}",
    html=_html_body(
        "Notification",
        "<h2>{{announcementTitle}}</h2><p>{{announcementContent}}</p>",
        "Open",
        "{{announcementUrl}}",
    ),
    text=(
        "Hello {{recipientName}},\n\n{{announcementTitle}}\n\n{{announcementContent}}\n\n"
        "{{announcementUrl}}\n\n" + _FOOTER_TEXT
    ),
)

EMAIL_TEMPLATES: Final[dict[NotificationType, EmailTemplate]] = {
    NotificationType.MESSAGE: MESSAGE_EMAIL,
    NotificationType.CARE_UPDATE: CARE_UPDATE_EMAIL,
    NotificationType.EMERGENCY_ALERT: EMERGENCY_ALERT_EMAIL,
    NotificationType.SYSTEM_ANNOUNCEMENT: SYSTEM_ANNOUNCEMENT_EMAIL,
    NotificationType.FAMILY_ACTIVITY: FAMILY_ACTIVITY_EMAIL,
}

EMAIL_PRIORITIES: Final[dict[NotificationType, str]] = {
    NotificationType.EMERGENCY_ALERT: "urgent",
    NotificationType.CARE_UPDATE: "high",
    NotificationType.MESSAGE: "normal",
    NotificationType.SYSTEM_ANNOUNCEMENT: "normal",
    NotificationType.FAMILY_ACTIVITY: "low",
}


def get_email_template(notification_type: NotificationType | str) -> EmailTemplate:
    """Return the template for ``notification_type`` or the generic fallback."""

    try:
        return EMAIL_TEMPLATES[NotificationType(notification_type)]
    except (KeyError, ValueError):
        return DEFAULT_EMAIL


def get_email_priority(notification_type: NotificationType | str) -> str:
    try:
        return EMAIL_PRIORITIES[NotificationType(notification_type)]
    except (KeyError, ValueError):
        return "normal"


def _flatten(value: Any) -> Any:
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(item) for item in value)
    return value


def render_email(template: EmailTemplate, variables: Mapping[str, Any]) -> RenderedEmail:
    """Interpolate ``template``; values are HTML-escaped in the HTML body only."""

    plain = {key: _flatten(value) for key, value in variables.items()}
    escaped = {
        key: html.escape(str(value)) if value is not None else None
        for key, value in plain.items()
    }
    return RenderedEmail(
        template_id=template.id,
        subject=interpolate(template.subject, plain),
        html=interpolate(template.html, escaped),
        text=interpolate(template.text, plain),
    )


__all__ = [
    "DEFAULT_EMAIL",
    "EMAIL_PRIORITIES",
    "EMAIL_TEMPLATES",
    "EmailTemplate",
    "RenderedEmail",
    "get_email_priority",
    "get_email_template",
    "render_email",
]
