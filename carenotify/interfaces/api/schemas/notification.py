"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from carenotify.domain.entities import NotificationType


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] | None = None
    is_actionable: bool = False
    action_url: str | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    rich_message: str | None = None
    cta_label: str | None = None
    secondary_url: str | None = None
    secondary_label: str | None = None
    is_read: bool = False
    created_at: datetime
    read_at: datetime | None = None
    expires_at: datetime | None = None


class NotificationListResponse(BaseModel):
    items: list[NotificationRead] = Field(default_factory=list)
    total: int
    page: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class UnreadCountResponse(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    updated: int


__all__ = [
    "MarkAllReadResponse",
    "NotificationListResponse",
    "NotificationRead",
    "UnreadCountResponse",
]
