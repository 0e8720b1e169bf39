"""SQLAlchemy model tracking realtime delivery attempts."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from carenotify.infrastructure.database import Base
from carenotify.utils import now_in_app_naive_datetime


class DeliveryLogModel(Base):
    """One delivery attempt for a notification and its recipient."""

    __tablename__ = "notification_delivery_log"

    id = Column(String(32), primary_key=True, default=lambda: uuid4().hex)
    notification_id = Column(
        String(32),
        ForeignKey("notification.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(64), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="PENDING", index=True)
    was_connected = Column(Boolean, nullable=False, default=True)
    connection_id = Column(String(128), nullable=True)
    error = Column(Text, nullable=True)
    latency_ms = Column(Integer, nullable=True)
    created_at = Column(
        DateTime(), nullable=False, default=now_in_app_naive_datetime, index=True
    )
    dispatched_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    delivered_at = Column(DateTime(), nullable=True)

    notification = relationship("NotificationModel", back_populates="delivery_logs")


__all__ = ["DeliveryLogModel"]
