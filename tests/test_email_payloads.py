from __future__ import annotations

from datetime import datetime, timezone

import pytest

from carenotify.application.use_cases.notifications import build_email_payload, user_channel
from carenotify.domain.entities import Notification, NotificationType

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _notification(notification_type: NotificationType, **overrides) -> Notification:
    values = {
        "id": "n1",
        "user_id": "u1",
        "type": notification_type,
        "title": "Title",
        "message": "Body",
    }
    values.update(overrides)
    return Notification(**values)


def test_message_payload_defaults() -> None:
    payload = build_email_payload(
        _notification(NotificationType.MESSAGE), {}, now=NOW, brand_name="Brand"
    )

    assert payload["senderName"] == "Unknown"
    assert payload["conversationUrl"] == "#"
    assert payload["messagePreview"] == "Body"
    assert payload["recipientName"] == ""


def test_care_update_payload_uses_context_and_notification() -> None:
    payload = build_email_payload(
        _notification(NotificationType.CARE_UPDATE, action_url="/updates/1"),
        {"familyName": "Rivera", "recipientName": "Ana"},
        now=NOW,
        brand_name="Brand",
    )

    assert payload == {
        "recipientName": "Ana",
        "familyName": "Rivera",
        "updateTitle": "Title",
        "updateContent": "Body",
        "updateUrl": "/updates/1",
        "updateAuthor": "System",
        "updateDate": NOW.isoformat(),
    }


@pytest.mark.parametrize(
    ("context", "author", "priority"),
    [
        ({}, "Brand Team", "normal"),
        ({"authorName": "Ops", "priority": "high"}, "Ops", "high"),
    ],
)
def test_announcement_payload_author_and_priority(context, author, priority) -> None:
    payload = build_email_payload(
        _notification(NotificationType.SYSTEM_ANNOUNCEMENT), context, now=NOW, brand_name="Brand"
    )

    assert payload["authorName"] == author
    assert payload["priority"] == priority
    assert payload["publishDate"] == NOW.isoformat()


def test_emergency_and_family_payloads() -> None:
    alert = build_email_payload(
        _notification(NotificationType.EMERGENCY_ALERT), {}, now=NOW, brand_name="Brand"
    )
    activity = build_email_payload(
        _notification(NotificationType.FAMILY_ACTIVITY),
        {"participants": ("Ana", "Ben")},
        now=NOW,
        brand_name="Brand",
    )

    assert alert["severity"] == "medium"
    assert alert["issueDate"] == NOW.isoformat()
    assert activity["participants"] == ["Ana", "Ben"]
    assert activity["activityDate"] == NOW.isoformat()


def test_user_channel_name() -> None:
    assert user_channel("u1") == "private-user-u1"
