"""Persistence layer for recipient identities."""

from __future__ import annotations

from sqlalchemy.orm import Session

from carenotify.domain.entities import User
from carenotify.infrastructure.models import UserModel


class UserRepository:
    """Provide lookups and upserts for user entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        model = self.session.query(UserModel).filter(UserModel.email == email).first()
        return self._to_entity(model) if model else None

    def upsert(self, user: User) -> User:
        model = self.session.get(UserModel, user.id)
        if model is None:
            model = UserModel(id=user.id)
        model.email = user.email
        model.first_name = user.first_name
        model.last_name = user.last_name
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            email=model.email,
            first_name=model.first_name,
            last_name=model.last_name,
        )


__all__ = ["UserRepository"]
