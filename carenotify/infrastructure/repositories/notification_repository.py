"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from carenotify.domain.entities import (
    Notification,
    NotificationNotFoundError,
    NotificationPage,
    NotificationType,
)
from carenotify.infrastructure.models import NotificationModel
from carenotify.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: str, *, user_id: str | None = None) -> Notification | None:
        model = self._get_model(notification_id, user_id=user_id)
        return self._to_entity(model) if model else None

    def list_for_user(
        self,
        user_id: str,
        *,
        is_read: bool | None = None,
        notification_type: NotificationType | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> NotificationPage:
        page = max(page, 1)
        limit = max(limit, 1)

        query = self._active_query(user_id)
        if is_read is not None:
            query = query.filter(NotificationModel.is_read.is_(is_read))
        if notification_type is not None:
            query = query.filter(
                NotificationModel.type == NotificationType(notification_type).value
            )

        total = query.count()
        models = (
            query.order_by(
                NotificationModel.created_at.desc(), NotificationModel.id.desc()
            )
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return NotificationPage(
            items=[self._to_entity(model) for model in models],
            total=total,
            page=page,
            limit=limit,
        )

    def list_unread_for_user(
        self, user_id: str, *, limit: int | None = 50
    ) -> Sequence[Notification]:
        query = (
            self._active_query(user_id)
            .filter(NotificationModel.is_read.is_(False))
            .order_by(
                NotificationModel.created_at.desc(), NotificationModel.id.desc()
            )
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def get_unread_count(self, user_id: str) -> int:
        return (
            self._active_query(user_id)
            .filter(NotificationModel.is_read.is_(False))
            .count()
        )

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_as_read(self, notification_id: str, *, user_id: str) -> Notification:
        """Mark one notification as read; already-read rows are left untouched."""

        model = self._get_model(notification_id, user_id=user_id)
        if model is None:
            msg = f"Notification with id {notification_id} not found"
            raise NotificationNotFoundError(msg)

        if not model.is_read:
            model.is_read = True
            model.read_at = ensure_app_naive_datetime(now_in_app_timezone())
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def mark_many_as_read(self, notification_ids: Sequence[str], *, user_id: str) -> int:
        ids = [notification_id for notification_id in notification_ids if notification_id]
        if not ids:
            return 0
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: ensure_app_naive_datetime(
                        now_in_app_timezone()
                    ),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def mark_all_as_read(self, user_id: str) -> int:
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: ensure_app_naive_datetime(
                        now_in_app_timezone()
                    ),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def mark_read_by_source(self, user_id: str, field: str, value: Any) -> int:
        """Mark unread notifications whose data payload has ``field == value``."""

        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id,
            NotificationModel.is_read.is_(False),
        )
        read_at = ensure_app_naive_datetime(now_in_app_timezone())
        updated = 0
        for model in query.all():
            data = model.data or {}
            if field in data and data[field] == value:
                model.is_read = True
                model.read_at = read_at
                updated += 1
        if updated:
            self.session.commit()
        return updated

    def delete_expired(self, *, now: datetime | None = None) -> int:
        cutoff = ensure_app_naive_datetime(now or now_in_app_timezone())
        deleted = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.expires_at.is_not(None),
                NotificationModel.expires_at <= cutoff,
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def _active_query(self, user_id: str) -> Query:
        now = ensure_app_naive_datetime(now_in_app_timezone())
        return self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id,
            or_(
                NotificationModel.expires_at.is_(None),
                NotificationModel.expires_at > now,
            ),
        )

    def _get_model(
        self, notification_id: str, *, user_id: str | None = None
    ) -> NotificationModel | None:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.id == notification_id
        )
        if user_id is not None:
            query = query.filter(NotificationModel.user_id == user_id)
        return query.first()

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel, notification: Notification
    ) -> None:
        if notification.id:
            model.id = notification.id
        model.created_at = ensure_app_naive_datetime(
            notification.created_at or now_in_app_timezone()
        )
        model.user_id = notification.user_id
        model.type = NotificationType(notification.type).value
        model.title = notification.title
        model.message = notification.message
        model.data = notification.data or None
        model.is_read = notification.is_read
        model.is_actionable = notification.is_actionable
        model.action_url = notification.action_url
        model.image_url = notification.image_url
        model.thumbnail_url = notification.thumbnail_url
        model.rich_message = notification.rich_message
        model.cta_label = notification.cta_label
        model.secondary_url = notification.secondary_url
        model.secondary_label = notification.secondary_label
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            data=model.data or None,
            is_actionable=bool(model.is_actionable),
            action_url=model.action_url,
            image_url=model.image_url,
            thumbnail_url=model.thumbnail_url,
            rich_message=model.rich_message,
            cta_label=model.cta_label,
            secondary_url=model.secondary_url,
            secondary_label=model.secondary_label,
            is_read=bool(model.is_read),
            created_at=ensure_app_timezone(model.created_at),
            read_at=ensure_app_timezone(model.read_at),
            expires_at=ensure_app_timezone(model.expires_at),
        )


__all__ = ["NotificationRepository"]
