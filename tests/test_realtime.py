from __future__ import annotations

from datetime import datetime, timedelta, timezone

import anyio
import pytest

from carenotify.infrastructure.notifications import (
    DelayedEmailScheduler,
    NotificationConnectionManager,
    WebsocketChannelPublisher,
    serialize_payload,
)

pytestmark = pytest.mark.anyio


class FakeWebSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.broken = broken
        self.accepted = False
        self.sent: list[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message: dict) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(message)


async def test_publish_reaches_every_connection_of_user() -> None:
    manager = NotificationConnectionManager()
    first, second, other = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
    await manager.connect("u1", first)
    manager.register("u1", second)
    manager.register("u2", other)
    publisher = WebsocketChannelPublisher(manager)

    result = await publisher.publish("u1", "unread-count", {"count": 3})

    assert result.success is True
    assert first.accepted is True
    assert first.sent == [{"type": "unread-count", "data": {"count": 3}}]
    assert second.sent == first.sent
    assert other.sent == []


async def test_publish_without_connections_succeeds() -> None:
    publisher = WebsocketChannelPublisher(NotificationConnectionManager())

    result = await publisher.publish("u1", "notification", {"id": "n1"})

    assert result.success is True


async def test_publish_fails_only_when_every_connection_fails() -> None:
    manager = NotificationConnectionManager()
    healthy, broken = FakeWebSocket(), FakeWebSocket(broken=True)
    manager.register("u1", healthy)
    manager.register("u1", broken)
    manager.register("u2", FakeWebSocket(broken=True))
    publisher = WebsocketChannelPublisher(manager)

    partial = await publisher.publish("u1", "notification", {"id": "n1"})
    failed = await publisher.publish("u2", "notification", {"id": "n2"})

    assert partial.success is True
    assert failed.success is False
    assert failed.error == "All 1 websocket connections failed"
    # Broken sockets are dropped from the pool.
    assert manager.connected_user_ids() == ["u1"]


async def test_query_connected_users_by_channel() -> None:
    manager = NotificationConnectionManager()
    socket = FakeWebSocket()
    manager.register("u1", socket)
    publisher = WebsocketChannelPublisher(manager)

    assert await publisher.query_connected_users("presence-global") == ["u1"]
    assert await publisher.query_connected_users("private-user-u1") == ["u1"]
    assert await publisher.query_connected_users("private-user-u2") == []
    assert await publisher.query_connected_users("other") == []

    manager.disconnect("u1", socket)
    assert manager.is_connected("u1") is False


def test_serialize_payload_converts_nested_datetimes() -> None:
    created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    payload = {"created_at": created, "items": [{"at": created}, created], "count": 1}

    serialized = serialize_payload(payload)

    assert serialized == {
        "created_at": created.isoformat(),
        "items": [{"at": created.isoformat()}, created.isoformat()],
        "count": 1,
    }
    assert payload["created_at"] is created


async def test_scheduler_runs_callback_after_delay() -> None:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    scheduler = DelayedEmailScheduler(clock=lambda: now)
    fired = anyio.Event()

    async def _callback() -> None:
        fired.set()

    scheduler.schedule(now + timedelta(milliseconds=20), _callback)
    assert scheduler.pending == 1

    with anyio.fail_after(1):
        await fired.wait()
    assert scheduler.pending == 0


async def test_scheduler_cancel_all_drops_pending_timers() -> None:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    scheduler = DelayedEmailScheduler(clock=lambda: now)
    calls: list[str] = []

    async def _callback() -> None:
        calls.append("sent")

    scheduler.schedule(now + timedelta(hours=8), _callback)
    scheduler.schedule(now + timedelta(hours=9), _callback)

    assert await scheduler.cancel_all() == 2
    assert scheduler.pending == 0
    assert calls == []


async def test_scheduler_cancel_all_stops_running_callbacks() -> None:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    scheduler = DelayedEmailScheduler(clock=lambda: now)
    started = anyio.Event()
    outcome: list[str] = []

    async def _callback() -> None:
        started.set()
        try:
            await anyio.sleep(60)
            outcome.append("sent")
        except BaseException:
            outcome.append("cancelled")
            raise

    scheduler.schedule(now, _callback)
    with anyio.fail_after(1):
        await started.wait()
    assert scheduler.pending == 0
    assert scheduler.running == 1

    assert await scheduler.cancel_all() == 1
    assert scheduler.running == 0
    assert outcome == ["cancelled"]
