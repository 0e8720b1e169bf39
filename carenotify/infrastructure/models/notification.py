"""SQLAlchemy model for persisted notifications."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.orm import relationship

from carenotify.infrastructure.database import Base
from carenotify.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"

    id = Column(String(32), primary_key=True, default=lambda: uuid4().hex)
    user_id = Column(String(64), ForeignKey("user.id"), nullable=False, index=True)
    type = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    is_actionable = Column(Boolean, nullable=False, default=False)
    action_url = Column(String(500), nullable=True)
    image_url = Column(String(500), nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    rich_message = Column(Text, nullable=True)
    cta_label = Column(String(100), nullable=True)
    secondary_url = Column(String(500), nullable=True)
    secondary_label = Column(String(100), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    read_at = Column(DateTime(), nullable=True)
    expires_at = Column(DateTime(), nullable=True)

    user = relationship("UserModel", lazy="select")
    delivery_logs = relationship(
        "DeliveryLogModel",
        back_populates="notification",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


__all__ = ["NotificationModel"]
