"""Persistence layer for families and their members."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from carenotify.domain.entities import Family, FamilyNotFoundError
from carenotify.infrastructure.models import FamilyMemberModel, FamilyModel

from .user_repository import UserRepository


class FamilyRepository:
    """Resolve families together with their member users."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, family_id: str) -> Family | None:
        model = self.session.get(FamilyModel, family_id)
        return self._to_entity(model) if model else None

    def get_by_id(self, family_id: str) -> Family:
        family = self.get(family_id)
        if family is None:
            msg = f"Family with id {family_id} not found"
            raise FamilyNotFoundError(msg)
        return family

    def create(self, family_id: str, name: str, member_ids: Iterable[str] = ()) -> Family:
        model = FamilyModel(id=family_id, name=name)
        model.memberships = [
            FamilyMemberModel(user_id=user_id) for user_id in dict.fromkeys(member_ids)
        ]
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def add_member(self, family_id: str, user_id: str) -> None:
        if self.session.get(FamilyMemberModel, (family_id, user_id)) is not None:
            return
        self.session.add(FamilyMemberModel(family_id=family_id, user_id=user_id))
        self.session.commit()

    @staticmethod
    def _to_entity(model: FamilyModel) -> Family:
        members = [
            UserRepository._to_entity(membership.user)
            for membership in model.memberships
            if membership.user is not None
        ]
        return Family(id=model.id, name=model.name, members=members)


__all__ = ["FamilyRepository"]
