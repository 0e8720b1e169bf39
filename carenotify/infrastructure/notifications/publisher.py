"""Publish notification events to websocket subscribers."""

from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Any, Mapping

from carenotify.application.use_cases.notifications.ports import (
    GLOBAL_PRESENCE_CHANNEL,
    USER_CHANNEL_PREFIX,
    PublishResult,
)

from .manager import NotificationConnectionManager

logger = logging.getLogger(__name__)


class WebsocketChannelPublisher:
    """Channel publisher backed by the in-process websocket pool.

    A user without open connections counts as a successful publish; the
    notification stays in the feed and is confirmed later by polling.
    """

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager

    async def publish(
        self, user_id: str, event: str, payload: Mapping[str, Any]
    ) -> PublishResult:
        message = {"type": event, "data": serialize_payload(payload)}
        try:
            delivered, failed = await self._manager.send_to_user(user_id, message)
        except Exception as exc:
            logger.warning("Websocket publish of %s to user %s failed: %s", event, user_id, exc)
            return PublishResult(success=False, error=str(exc) or exc.__class__.__name__)

        if failed and not delivered:
            return PublishResult(
                success=False, error=f"All {failed} websocket connections failed"
            )
        return PublishResult(success=True)

    async def query_connected_users(self, channel_key: str) -> list[str]:
        if channel_key == GLOBAL_PRESENCE_CHANNEL:
            return self._manager.connected_user_ids()
        if channel_key.startswith(USER_CHANNEL_PREFIX):
            user_id = channel_key[len(USER_CHANNEL_PREFIX):]
            return [user_id] if self._manager.is_connected(user_id) else []
        return []


def serialize_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-serializable deep copy of ``payload``."""

    data = copy.deepcopy(dict(payload))
    _normalize_datetime_values(data)
    return data


def _normalize_datetime_values(data: dict[str, Any] | list[Any]) -> None:
    """Convert ``datetime`` instances nested inside ``data`` into ISO strings."""

    if isinstance(data, dict):
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
            elif isinstance(value, (dict, list)):
                _normalize_datetime_values(value)
    elif isinstance(data, list):
        for index, item in enumerate(data):
            if isinstance(item, datetime):
                data[index] = item.isoformat()
            elif isinstance(item, (dict, list)):
                _normalize_datetime_values(item)


__all__ = ["WebsocketChannelPublisher", "serialize_payload"]
