"""SQLAlchemy models for families and their memberships."""

from sqlalchemy import Column, DateTime, ForeignKey, String, func
from sqlalchemy.orm import relationship

from carenotify.infrastructure.database import Base


class FamilyModel(Base):
    """Database representation of a family group."""

    __tablename__ = "family"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    memberships = relationship(
        "FamilyMemberModel",
        back_populates="family",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )


class FamilyMemberModel(Base):
    """Association between a family and one of its member users."""

    __tablename__ = "family_member"

    family_id = Column(
        String(64), ForeignKey("family.id", ondelete="CASCADE"), primary_key=True
    )
    user_id = Column(String(64), ForeignKey("user.id"), primary_key=True)
    joined_at = Column(DateTime, nullable=False, server_default=func.now())

    family = relationship("FamilyModel", back_populates="memberships")
    user = relationship("UserModel", lazy="joined")


__all__ = ["FamilyMemberModel", "FamilyModel"]
