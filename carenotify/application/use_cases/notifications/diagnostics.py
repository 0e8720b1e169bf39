"""Read-path helpers for inspecting delivery outcomes."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Sequence

from carenotify.domain.entities import (
    DeliveryLogWithNotification,
    DeliveryMetrics,
    DeliveryStatus,
)
from carenotify.utils import now_in_app_timezone

from .ports import DeliveryLogStore

logger = logging.getLogger(__name__)

DEFAULT_METRICS_WINDOW_HOURS = 24


async def record_polled_deliveries(
    delivery_logs: DeliveryLogStore, user_id: str, notification_ids: Sequence[str]
) -> int:
    """Confirm receipt of notifications fetched through the polling fallback."""

    ids = [notification_id for notification_id in notification_ids if notification_id]
    if not ids:
        return 0
    updated = await delivery_logs.mark_polled(user_id, ids)
    if updated:
        logger.debug("Marked %s delivery logs as polled for user %s", updated, user_id)
    return updated


async def get_delivery_metrics(
    delivery_logs: DeliveryLogStore,
    *,
    since: datetime | None = None,
    hours: int = DEFAULT_METRICS_WINDOW_HOURS,
) -> DeliveryMetrics:
    """Aggregate delivery outcomes since ``since`` (or the last ``hours``)."""

    if since is None:
        since = now_in_app_timezone() - timedelta(hours=hours)
    return await delivery_logs.get_delivery_metrics(since)


async def get_recent_delivery_logs(
    delivery_logs: DeliveryLogStore,
    *,
    limit: int = 50,
    since: datetime | None = None,
    status: DeliveryStatus | None = None,
) -> list[DeliveryLogWithNotification]:
    return await delivery_logs.get_recent_logs(limit=limit, since=since, status=status)


async def cleanup_delivery_logs(
    delivery_logs: DeliveryLogStore, older_than_days: int
) -> int:
    """Purge successful delivery logs older than ``older_than_days``."""

    if older_than_days <= 0:
        raise ValueError("older_than_days must be a positive number of days")
    removed = await delivery_logs.cleanup_older_than(older_than_days)
    logger.info(
        "Removed %s delivery logs older than %s days", removed, older_than_days
    )
    return removed


__all__ = [
    "DEFAULT_METRICS_WINDOW_HOURS",
    "cleanup_delivery_logs",
    "get_delivery_metrics",
    "get_recent_delivery_logs",
    "record_polled_deliveries",
]
