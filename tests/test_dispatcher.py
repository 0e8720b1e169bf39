from __future__ import annotations

from datetime import datetime, timezone

import pytest

from carenotify.application.use_cases.notifications import EmailResult
from carenotify.domain.entities import (
    DeliveryStatus,
    NotificationContent,
    NotificationNotFoundError,
    NotificationPreferences,
    NotificationType,
)

pytestmark = pytest.mark.anyio


def _content(**overrides) -> NotificationContent:
    values = {
        "title": "New message from Alex",
        "message": "Hello there",
        "action_url": "/chat/1",
        "is_actionable": True,
        "data": {"conversationId": "c1"},
    }
    values.update(overrides)
    return NotificationContent(**values)


def _quiet_preferences(user_id: str = "u1", **overrides) -> NotificationPreferences:
    values = {
        "user_id": user_id,
        "quiet_hours_enabled": True,
        "quiet_hours_start": "22:00",
        "quiet_hours_end": "07:00",
        "timezone": "UTC",
    }
    values.update(overrides)
    return NotificationPreferences(**values)


async def test_dispatch_persists_publishes_and_emails(harness) -> None:
    dispatcher = harness.dispatcher()

    result = await dispatcher.dispatch_notification(
        "u1", NotificationType.MESSAGE, _content(), {"senderName": "Alex"}
    )

    assert result.success is True
    assert result.delivered is True
    assert result.email_sent is True
    assert result.errors == []
    assert result.notification.id == "n1"
    assert result.notification.created_at == harness.clock.now

    log = harness.delivery_logs.for_notification("n1")
    assert result.delivery_log_id == log.id
    assert log.status is DeliveryStatus.DELIVERED
    assert log.latency_ms == 0
    assert log.was_connected is True

    assert [event for _, event, _ in harness.publisher.events] == [
        "notification",
        "unread-count",
    ]
    published = harness.publisher.events_named("notification", "u1")[0]
    assert published["id"] == "n1"
    assert published["type"] == "MESSAGE"
    assert harness.publisher.events_named("unread-count", "u1") == [{"count": 1}]

    user_id, notification_type, payload = harness.email_sender.sent[0]
    assert user_id == "u1"
    assert notification_type is NotificationType.MESSAGE
    assert payload["senderName"] == "Alex"
    assert payload["messagePreview"] == "Hello there"
    assert payload["conversationUrl"] == "/chat/1"


async def test_unread_count_tracks_dispatches_and_mark_all(harness) -> None:
    dispatcher = harness.dispatcher()

    await dispatcher.dispatch_notification("u1", NotificationType.MESSAGE, _content())
    await dispatcher.dispatch_notification("u1", NotificationType.MESSAGE, _content())

    assert harness.publisher.events_named("unread-count", "u1")[-1] == {"count": 2}

    updated = await dispatcher.mark_all_notifications_as_read("u1")

    assert updated == 2
    assert harness.publisher.events_named("all-read", "u1") == [{"updated": 2}]
    assert harness.publisher.events_named("unread-count", "u1")[-1] == {"count": 0}
    assert all(n.is_read for n in harness.notifications.for_user("u1"))


async def test_dispatch_without_email_context_skips_email(harness) -> None:
    result = await harness.dispatcher().dispatch_notification(
        "u1", NotificationType.MESSAGE, _content()
    )

    assert result.email_sent is False
    assert harness.email_sender.sent == []


async def test_publish_failure_is_reported_and_keeps_notification(harness) -> None:
    harness.publisher.fail_for["u1"] = "channel offline"

    result = await harness.dispatcher().dispatch_notification(
        "u1", NotificationType.MESSAGE, _content()
    )

    assert result.success is True
    assert result.delivered is False
    assert "Broadcast failed: channel offline" in result.errors
    assert len(harness.notifications.for_user("u1")) == 1

    log = harness.delivery_logs.for_notification(result.notification.id)
    assert log.status is DeliveryStatus.FAILED
    assert log.error == "channel offline"
    assert log.latency_ms is None


async def test_publisher_exception_is_reported_and_later_legs_still_run(harness) -> None:
    harness.publisher.raise_for.add("u1")

    result = await harness.dispatcher().dispatch_notification(
        "u1", NotificationType.MESSAGE, _content(), {"senderName": "Alex"}
    )

    assert result.success is False
    assert result.delivered is False
    assert result.errors == ["Broadcast failed: channel exploded for u1"]
    assert result.email_sent is True
    assert len(harness.email_sender.sent) == 1
    assert harness.publisher.events_named("unread-count", "u1") == [{"count": 1}]

    [notification] = harness.notifications.for_user("u1")
    log = harness.delivery_logs.for_notification(notification.id)
    assert log.status is DeliveryStatus.FAILED
    assert log.error == "channel exploded for u1"


async def test_create_failure_propagates_without_side_effects(harness) -> None:
    harness.notifications.fail_create = RuntimeError("database unavailable")

    with pytest.raises(RuntimeError, match="database unavailable"):
        await harness.dispatcher().dispatch_notification(
            "u1", NotificationType.MESSAGE, _content(), {"senderName": "Alex"}
        )

    assert harness.publisher.events == []
    assert harness.delivery_logs.logs == {}
    assert harness.email_sender.sent == []


async def test_delivery_log_failure_does_not_block_delivery(harness) -> None:
    harness.delivery_logs.fail_create = RuntimeError("log table locked")

    result = await harness.dispatcher().dispatch_notification(
        "u1", NotificationType.MESSAGE, _content()
    )

    assert result.success is True
    assert result.delivered is True
    assert result.delivery_log_id is None
    assert result.errors == ["Delivery log error: log table locked"]


async def test_unread_count_failure_is_reported(harness, monkeypatch) -> None:
    async def _broken(user_id: str) -> int:
        raise RuntimeError("count failed")

    monkeypatch.setattr(harness.notifications, "get_unread_count", _broken)

    result = await harness.dispatcher().dispatch_notification(
        "u1", NotificationType.MESSAGE, _content()
    )

    assert result.delivered is True
    assert result.errors == ["Unread count broadcast failed: count failed"]


async def test_quiet_hours_suppress_routine_email(harness) -> None:
    harness.clock.now = datetime(2024, 5, 1, 23, 0, tzinfo=timezone.utc)
    harness.preferences.set(_quiet_preferences())

    result = await harness.dispatcher().dispatch_notification(
        "u1",
        NotificationType.CARE_UPDATE,
        _content(title="Care Update: Meds"),
        {"familyName": "Rivera"},
    )

    assert result.delivered is True
    assert result.email_sent is False
    assert result.email_deferred_until is None
    assert result.errors == []
    assert harness.email_sender.sent == []


async def test_emergency_alert_bypasses_quiet_hours(harness) -> None:
    harness.clock.now = datetime(2024, 5, 1, 23, 0, tzinfo=timezone.utc)
    harness.preferences.set(_quiet_preferences())

    result = await harness.dispatcher().dispatch_notification(
        "u1",
        NotificationType.EMERGENCY_ALERT,
        _content(title="URGENT: Fall detected"),
        {"severity": "high"},
    )

    assert result.email_sent is True
    _, _, payload = harness.email_sender.sent[0]
    assert payload["alertTitle"] == "URGENT: Fall detected"
    assert payload["severity"] == "high"


async def test_quiet_hours_defer_policy_schedules_email(harness) -> None:
    harness.clock.now = datetime(2024, 5, 1, 23, 0, tzinfo=timezone.utc)
    harness.preferences.set(_quiet_preferences())
    dispatcher = harness.dispatcher(quiet_hours_policy="defer")

    result = await dispatcher.dispatch_notification(
        "u1", NotificationType.CARE_UPDATE, _content(), {"familyName": "Rivera"}
    )

    expected = datetime(2024, 5, 2, 7, 1, tzinfo=timezone.utc)
    assert result.email_sent is False
    assert result.email_deferred_until == expected
    [(run_at, callback)] = harness.scheduler.scheduled
    assert run_at == expected
    assert harness.email_sender.sent == []

    await callback()

    [(user_id, notification_type, payload)] = harness.email_sender.sent
    assert user_id == "u1"
    assert notification_type is NotificationType.CARE_UPDATE
    assert payload["familyName"] == "Rivera"


async def test_defer_policy_without_scheduler_suppresses(harness) -> None:
    harness.clock.now = datetime(2024, 5, 1, 23, 0, tzinfo=timezone.utc)
    harness.preferences.set(_quiet_preferences())
    dispatcher = harness.dispatcher(quiet_hours_policy="defer", scheduler=None)

    result = await dispatcher.dispatch_notification(
        "u1", NotificationType.CARE_UPDATE, _content(), {"familyName": "Rivera"}
    )

    assert result.email_deferred_until is None
    assert harness.email_sender.sent == []


async def test_preferences_block_email_channel(harness) -> None:
    harness.preferences.set(NotificationPreferences(user_id="u1", email_care_updates=False))

    result = await harness.dispatcher().dispatch_notification(
        "u1", NotificationType.CARE_UPDATE, _content(), {"familyName": "Rivera"}
    )

    assert result.delivered is True
    assert result.email_sent is False
    assert result.errors == []


async def test_email_failure_is_reported_without_failing_dispatch(harness) -> None:
    harness.email_sender.result = EmailResult(success=False, error="mailbox full")

    result = await harness.dispatcher().dispatch_notification(
        "u1", NotificationType.MESSAGE, _content(), {"senderName": "Alex"}
    )

    assert result.success is True
    assert result.email_sent is False
    assert result.errors == ["Email failed: mailbox full"]


async def test_email_exception_is_reported(harness) -> None:
    harness.email_sender.error = RuntimeError("smtp down")

    result = await harness.dispatcher().dispatch_notification(
        "u1", NotificationType.MESSAGE, _content(), {"senderName": "Alex"}
    )

    assert result.success is True
    assert result.delivered is True
    assert result.errors == ["Email error: smtp down"]


async def test_mark_notification_as_read_is_idempotent(harness) -> None:
    dispatcher = harness.dispatcher()
    created = await dispatcher.dispatch_notification(
        "u1", NotificationType.MESSAGE, _content()
    )

    first = await dispatcher.mark_notification_as_read(created.notification.id, "u1")
    read_at = first.read_at
    second = await dispatcher.mark_notification_as_read(created.notification.id, "u1")

    assert second.is_read is True
    assert second.read_at == read_at
    assert harness.publisher.events_named("notification-read", "u1") == [
        {"notificationId": "n1"},
        {"notificationId": "n1"},
    ]
    assert harness.publisher.events_named("unread-count", "u1")[-1] == {"count": 0}


async def test_mark_notification_of_other_user_is_not_found(harness) -> None:
    dispatcher = harness.dispatcher()
    created = await dispatcher.dispatch_notification(
        "u1", NotificationType.MESSAGE, _content()
    )

    with pytest.raises(NotificationNotFoundError):
        await dispatcher.mark_notification_as_read(created.notification.id, "u2")

    assert harness.notifications.items["n1"].is_read is False


async def test_mark_source_as_read_matches_payload_field(harness) -> None:
    dispatcher = harness.dispatcher()
    await dispatcher.dispatch_notification("u1", NotificationType.MESSAGE, _content())
    await dispatcher.dispatch_notification(
        "u1", NotificationType.MESSAGE, _content(data={"conversationId": "c2"})
    )

    updated = await dispatcher.mark_source_as_read("u1", "conversationId", "c1")

    assert updated == 1
    assert harness.publisher.events_named("unread-count", "u1")[-1] == {"count": 1}


async def test_mark_source_as_read_without_matches_stays_quiet(harness) -> None:
    dispatcher = harness.dispatcher()

    assert await dispatcher.mark_source_as_read("u1", "conversationId", "none") == 0
    assert harness.publisher.events == []


@pytest.mark.parametrize(("connected", "expected"), [([], False), (["u1"], True)])
async def test_presence_check_records_connection_hint(harness, connected, expected) -> None:
    harness.publisher.connected = connected

    result = await harness.dispatcher(presence_check=True).dispatch_notification(
        "u1", NotificationType.MESSAGE, _content()
    )

    assert harness.delivery_logs.logs[result.delivery_log_id].was_connected is expected
