"""Persistence helpers for delivery log entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from carenotify.domain.entities import (
    POLLABLE_STATUSES,
    SUCCESS_STATUSES,
    DeliveryLog,
    DeliveryLogCreate,
    DeliveryLogNotFoundError,
    DeliveryLogWithNotification,
    DeliveryMetrics,
    DeliveryStatus,
)
from carenotify.infrastructure.models import DeliveryLogModel, NotificationModel
from carenotify.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class DeliveryLogRepository:
    """Provide CRUD operations and aggregates for :class:`DeliveryLog` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, log_id: str) -> DeliveryLog | None:
        model = self.session.get(DeliveryLogModel, log_id)
        return self._to_entity(model) if model else None

    def list_for_notification(self, notification_id: str) -> Sequence[DeliveryLog]:
        query = (
            self.session.query(DeliveryLogModel)
            .filter(DeliveryLogModel.notification_id == notification_id)
            .order_by(DeliveryLogModel.created_at.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def create(self, data: DeliveryLogCreate) -> DeliveryLog:
        now = ensure_app_naive_datetime(now_in_app_timezone())
        model = DeliveryLogModel(
            notification_id=data.notification_id,
            user_id=data.user_id,
            status=DeliveryStatus.PENDING.value,
            was_connected=data.was_connected,
            connection_id=data.connection_id,
            created_at=now,
            dispatched_at=now,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update_status(
        self,
        log_id: str,
        status: DeliveryStatus,
        *,
        error: str | None = None,
        latency_ms: int | None = None,
    ) -> DeliveryLog:
        """Move a log to ``status``, rejecting transitions the lifecycle forbids."""

        model = self.session.get(DeliveryLogModel, log_id)
        if model is None:
            msg = f"Delivery log with id {log_id} not found"
            raise DeliveryLogNotFoundError(msg)

        updated = self._to_entity(model).transition(
            status, at=now_in_app_timezone(), error=error, latency_ms=latency_ms
        )
        model.status = updated.status.value
        model.error = updated.error
        model.latency_ms = updated.latency_ms
        model.delivered_at = ensure_app_naive_datetime(updated.delivered_at)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_polled(self, user_id: str, notification_ids: Sequence[str]) -> int:
        ids = [notification_id for notification_id in notification_ids if notification_id]
        if not ids:
            return 0
        updated = (
            self.session.query(DeliveryLogModel)
            .filter(
                DeliveryLogModel.user_id == user_id,
                DeliveryLogModel.notification_id.in_(ids),
                DeliveryLogModel.status.in_([status.value for status in POLLABLE_STATUSES]),
            )
            .update(
                {
                    DeliveryLogModel.status: DeliveryStatus.POLLED.value,
                    DeliveryLogModel.error: None,
                    DeliveryLogModel.latency_ms: None,
                    DeliveryLogModel.delivered_at: ensure_app_naive_datetime(
                        now_in_app_timezone()
                    ),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def get_delivery_metrics(self, since: datetime) -> DeliveryMetrics:
        cutoff = ensure_app_naive_datetime(since)
        status_rows = (
            self.session.query(DeliveryLogModel.status, func.count(DeliveryLogModel.id))
            .filter(DeliveryLogModel.created_at >= cutoff)
            .group_by(DeliveryLogModel.status)
            .all()
        )
        counts = {status: count for status, count in status_rows}

        avg_latency, max_latency, min_latency = (
            self.session.query(
                func.avg(DeliveryLogModel.latency_ms),
                func.max(DeliveryLogModel.latency_ms),
                func.min(DeliveryLogModel.latency_ms),
            )
            .filter(
                DeliveryLogModel.created_at >= cutoff,
                DeliveryLogModel.latency_ms.is_not(None),
            )
            .one()
        )

        return DeliveryMetrics(
            total=sum(counts.values()),
            delivered=counts.get(DeliveryStatus.DELIVERED.value, 0),
            failed=counts.get(DeliveryStatus.FAILED.value, 0),
            polled=counts.get(DeliveryStatus.POLLED.value, 0),
            pending=counts.get(DeliveryStatus.PENDING.value, 0),
            avg_latency_ms=float(avg_latency) if avg_latency is not None else None,
            max_latency_ms=int(max_latency) if max_latency is not None else None,
            min_latency_ms=int(min_latency) if min_latency is not None else None,
        )

    def get_recent_logs(
        self,
        *,
        limit: int = 50,
        since: datetime | None = None,
        status: DeliveryStatus | None = None,
    ) -> list[DeliveryLogWithNotification]:
        query = self.session.query(
            DeliveryLogModel, NotificationModel.type, NotificationModel.title
        ).join(NotificationModel, NotificationModel.id == DeliveryLogModel.notification_id)
        if since is not None:
            query = query.filter(
                DeliveryLogModel.created_at >= ensure_app_naive_datetime(since)
            )
        if status is not None:
            query = query.filter(DeliveryLogModel.status == DeliveryStatus(status).value)

        rows = (
            query.order_by(DeliveryLogModel.created_at.desc(), DeliveryLogModel.id.desc())
            .limit(limit)
            .all()
        )
        return [
            DeliveryLogWithNotification(
                log=self._to_entity(model),
                notification_type=notification_type,
                notification_title=notification_title,
            )
            for model, notification_type, notification_title in rows
        ]

    def cleanup_older_than(self, days: int, *, now: datetime | None = None) -> int:
        """Delete terminal-success rows created more than ``days`` days ago."""

        cutoff = ensure_app_naive_datetime(
            (now or now_in_app_timezone()) - timedelta(days=days)
        )
        deleted = (
            self.session.query(DeliveryLogModel)
            .filter(
                DeliveryLogModel.created_at < cutoff,
                DeliveryLogModel.status.in_([status.value for status in SUCCESS_STATUSES]),
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    @staticmethod
    def _to_entity(model: DeliveryLogModel) -> DeliveryLog:
        return DeliveryLog(
            id=model.id,
            notification_id=model.notification_id,
            user_id=model.user_id,
            status=DeliveryStatus(model.status),
            was_connected=bool(model.was_connected),
            connection_id=model.connection_id,
            error=model.error,
            latency_ms=model.latency_ms,
            created_at=ensure_app_timezone(model.created_at),
            dispatched_at=ensure_app_timezone(model.dispatched_at),
            delivered_at=ensure_app_timezone(model.delivered_at),
        )


__all__ = ["DeliveryLogRepository"]
