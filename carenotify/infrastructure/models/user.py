"""SQLAlchemy model for the user table."""

from sqlalchemy import Column, DateTime, String, func

from carenotify.infrastructure.database import Base


class UserModel(Base):
    """Recipient identity mirrored from the identity layer."""

    __tablename__ = "user"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


__all__ = ["UserModel"]
