"""Administrative endpoints exposing delivery diagnostics."""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Body, Depends, Query

from carenotify.application.use_cases.notifications import (
    cleanup_delivery_logs,
    get_delivery_metrics,
    get_recent_delivery_logs,
)
from carenotify.bootstrap import NotificationServices
from carenotify.config import get_settings
from carenotify.domain.entities import DeliveryLogWithNotification, DeliveryStatus
from carenotify.interfaces.api.dependencies import get_services, require_admin
from carenotify.interfaces.api.schemas import (
    DeliveryCleanupRequest,
    DeliveryCleanupResponse,
    DeliveryLogRead,
    DeliveryMetricsRead,
)
from carenotify.utils import now_in_app_timezone

router = APIRouter(
    prefix="/admin/notifications/deliveries",
    tags=["deliveries"],
    dependencies=[Depends(require_admin)],
)


def _to_read_model(entry: DeliveryLogWithNotification) -> DeliveryLogRead:
    log = entry.log
    return DeliveryLogRead(
        id=log.id,
        notification_id=log.notification_id,
        user_id=log.user_id,
        status=log.status,
        was_connected=log.was_connected,
        connection_id=log.connection_id,
        error=log.error,
        latency_ms=log.latency_ms,
        created_at=log.created_at,
        dispatched_at=log.dispatched_at,
        delivered_at=log.delivered_at,
        notification_type=entry.notification_type,
        notification_title=entry.notification_title,
    )


@router.get("/metrics", response_model=DeliveryMetricsRead)
async def read_delivery_metrics(
    hours: int = Query(24, ge=1, le=24 * 90),
    services: NotificationServices = Depends(get_services),
) -> DeliveryMetricsRead:
    """Return delivery outcome counts and latency for the last ``hours``."""

    since = now_in_app_timezone() - timedelta(hours=hours)
    metrics = await get_delivery_metrics(services.delivery_logs, since=since)
    return DeliveryMetricsRead(
        since=since,
        total=metrics.total,
        delivered=metrics.delivered,
        failed=metrics.failed,
        polled=metrics.polled,
        pending=metrics.pending,
        avg_latency_ms=metrics.avg_latency_ms,
        max_latency_ms=metrics.max_latency_ms,
        min_latency_ms=metrics.min_latency_ms,
        success_rate=metrics.success_rate,
    )


@router.get("/recent", response_model=list[DeliveryLogRead])
async def read_recent_delivery_logs(
    limit: int | None = Query(None, ge=1, le=500),
    hours: int | None = Query(None, ge=1),
    delivery_status: DeliveryStatus | None = Query(None, alias="status"),
    services: NotificationServices = Depends(get_services),
) -> list[DeliveryLogRead]:
    since = now_in_app_timezone() - timedelta(hours=hours) if hours else None
    entries = await get_recent_delivery_logs(
        services.delivery_logs,
        limit=limit or get_settings().recent_delivery_logs_limit,
        since=since,
        status=delivery_status,
    )
    return [_to_read_model(entry) for entry in entries]


@router.post("/cleanup", response_model=DeliveryCleanupResponse)
async def cleanup_deliveries(
    payload: DeliveryCleanupRequest | None = Body(None),
    services: NotificationServices = Depends(get_services),
) -> DeliveryCleanupResponse:
    """Purge successful delivery logs older than the retention window."""

    days = (payload.older_than_days if payload else None) or (
        get_settings().delivery_log_retention_days
    )
    removed = await cleanup_delivery_logs(services.delivery_logs, days)
    return DeliveryCleanupResponse(removed=removed, older_than_days=days)
