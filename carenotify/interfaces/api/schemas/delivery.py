"""Pydantic models for delivery diagnostics."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from carenotify.domain.entities import DeliveryStatus


class DeliveryMetricsRead(BaseModel):
    since: datetime
    total: int
    delivered: int
    failed: int
    polled: int
    pending: int
    avg_latency_ms: float | None = None
    max_latency_ms: int | None = None
    min_latency_ms: int | None = None
    success_rate: float


class DeliveryLogRead(BaseModel):
    id: str
    notification_id: str
    user_id: str
    status: DeliveryStatus
    was_connected: bool
    connection_id: str | None = None
    error: str | None = None
    latency_ms: int | None = None
    created_at: datetime | None = None
    dispatched_at: datetime | None = None
    delivered_at: datetime | None = None
    notification_type: str
    notification_title: str


class DeliveryCleanupRequest(BaseModel):
    older_than_days: int | None = Field(default=None, gt=0)


class DeliveryCleanupResponse(BaseModel):
    removed: int
    older_than_days: int


__all__ = [
    "DeliveryCleanupRequest",
    "DeliveryCleanupResponse",
    "DeliveryLogRead",
    "DeliveryMetricsRead",
]
