"""Variable interpolation for notification templates.

Templates use ``{{variableName}}`` placeholders. Interpolation is pure: missing
or ``None`` variables render as an empty string and nothing here performs I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any, Final, Mapping

from carenotify.domain.entities import NotificationContent, NotificationType

TemplateVariables = Mapping[str, Any]

_PLACEHOLDER: Final[re.Pattern[str]] = re.compile(r"\{\{(\w+)\}\}")
_ELLIPSIS: Final[str] = "..."


@dataclass(frozen=True)
class NotificationTemplate:
    """Raw template definition for one notification type."""

    type: NotificationType
    title: str
    message: str
    rich_message: str | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    cta_label: str | None = None
    cta_url: str | None = None
    secondary_label: str | None = None
    secondary_url: str | None = None

    def merged(self, overrides: Mapping[str, Any] | None) -> "NotificationTemplate":
        """Return a copy with every non-``None`` entry of ``overrides`` applied."""

        if not overrides:
            return self
        names = {item.name for item in fields(self)}
        changes = {
            key: value
            for key, value in overrides.items()
            if key in names and value is not None
        }
        return replace(self, **changes)


@dataclass
class ProcessedTemplate:
    """Fully interpolated template ready to become a notification."""

    title: str
    message: str
    rich_message: str | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    cta_label: str | None = None
    cta_url: str | None = None
    secondary_label: str | None = None
    secondary_url: str | None = None

    def to_content(self, **extra: Any) -> NotificationContent:
        """Convert into :class:`NotificationContent` for the dispatcher."""

        values: dict[str, Any] = {
            "title": self.title,
            "message": self.message,
            "rich_message": self.rich_message or None,
            "image_url": self.image_url or None,
            "thumbnail_url": self.thumbnail_url or None,
            "cta_label": self.cta_label or None,
            "action_url": self.cta_url or None,
            "secondary_label": self.secondary_label or None,
            "secondary_url": self.secondary_url or None,
            "is_actionable": bool(self.cta_url),
        }
        values.update(extra)
        return NotificationContent(**values)


def interpolate(template: str, variables: TemplateVariables) -> str:
    """Replace each ``{{name}}`` in ``template`` with ``variables[name]``."""

    def _substitute(match: re.Match[str]) -> str:
        value = variables.get(match.group(1))
        if value is None:
            return ""
        return str(value)

    return _PLACEHOLDER.sub(_substitute, template)


def _interpolate_optional(
    template: str | None, variables: TemplateVariables
) -> str | None:
    return interpolate(template, variables) if template else None


def process_template(
    template: NotificationTemplate,
    variables: TemplateVariables,
    *,
    rich_variables: TemplateVariables | None = None,
) -> ProcessedTemplate:
    """Interpolate every field of ``template``.

    ``rich_variables`` lets the rich message render untruncated values while the
    title and message use preview-sized ones.
    """

    rich_source = rich_variables if rich_variables is not None else variables
    return ProcessedTemplate(
        title=interpolate(template.title, variables),
        message=interpolate(template.message, variables),
        rich_message=_interpolate_optional(template.rich_message, rich_source),
        image_url=_interpolate_optional(template.image_url, variables),
        thumbnail_url=_interpolate_optional(template.thumbnail_url, variables),
        cta_label=_interpolate_optional(template.cta_label, variables),
        cta_url=_interpolate_optional(template.cta_url, variables),
        secondary_label=_interpolate_optional(template.secondary_label, variables),
        secondary_url=_interpolate_optional(template.secondary_url, variables),
    )


def truncate_text(text: str | None, max_length: int) -> str:
    """Truncate ``text`` to ``max_length`` characters ending in an ellipsis."""

    text = text or ""
    if len(text) <= max_length:
        return text
    return text[: max(0, max_length - len(_ELLIPSIS))] + _ELLIPSIS


def format_notification_date(date: datetime, now: datetime | None = None) -> str:
    """Return a short relative description of ``date``."""

    now = now or datetime.now(tz=date.tzinfo)
    diff_seconds = (now - date).total_seconds()
    minutes = int(diff_seconds // 60)
    hours = int(diff_seconds // 3600)
    days = int(diff_seconds // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} minute{'' if minutes == 1 else 's'} ago"
    if hours < 24:
        return f"{hours} hour{'' if hours == 1 else 's'} ago"
    if days < 7:
        return f"{days} day{'' if days == 1 else 's'} ago"

    label = f"{date.strftime('%b')} {date.day}"
    if date.year != now.year:
        label = f"{label}, {date.year}"
    return label


def get_display_name(
    first_name: str | None, last_name: str | None, email: str | None = None
) -> str:
    """Return the best human readable name for a user."""

    if first_name and last_name:
        return f"{first_name} {last_name}"
    if first_name:
        return first_name
    if last_name:
        return last_name
    if email:
        return email.split("@")[0]
    return "Unknown"


__all__ = [
    "NotificationTemplate",
    "ProcessedTemplate",
    "TemplateVariables",
    "format_notification_date",
    "get_display_name",
    "interpolate",
    "process_template",
    "truncate_text",
]
