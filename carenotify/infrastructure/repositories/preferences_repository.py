"""Persistence helpers for notification preferences."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import fields

from sqlalchemy.orm import Session

from carenotify.domain.entities import (
    DeliveryChannel,
    NotificationPreferences,
    NotificationType,
    preference_field,
)
from carenotify.infrastructure.models import NotificationPreferencesModel

_PREFERENCE_FIELDS = tuple(
    item.name for item in fields(NotificationPreferences) if item.name != "user_id"
)


class NotificationPreferencesRepository:
    """Read and write per-user notification preferences."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> NotificationPreferences | None:
        model = self.session.get(NotificationPreferencesModel, user_id)
        return self._to_entity(model) if model else None

    def get_or_create(self, user_id: str) -> NotificationPreferences:
        """Return the stored preferences, persisting defaults on first access."""

        model = self.session.get(NotificationPreferencesModel, user_id)
        if model is None:
            model = NotificationPreferencesModel(user_id=user_id)
            self._apply_entity_to_model(model, NotificationPreferences.defaults(user_id))
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def upsert(self, preferences: NotificationPreferences) -> NotificationPreferences:
        model = self.session.get(NotificationPreferencesModel, preferences.user_id)
        if model is None:
            model = NotificationPreferencesModel(user_id=preferences.user_id)
        self._apply_entity_to_model(model, preferences)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def disable_email(
        self,
        user_id: str,
        notification_types: Iterable[NotificationType] | None = None,
    ) -> NotificationPreferences:
        """Turn off email entirely, or only for ``notification_types``."""

        preferences = self.get_or_create(user_id)
        if notification_types is None:
            preferences.email_enabled = False
        else:
            for notification_type in notification_types:
                flag = preference_field(notification_type, DeliveryChannel.EMAIL)
                if flag is not None:
                    setattr(preferences, flag, False)
        return self.upsert(preferences)

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationPreferencesModel, preferences: NotificationPreferences
    ) -> None:
        for name in _PREFERENCE_FIELDS:
            setattr(model, name, getattr(preferences, name))

    @staticmethod
    def _to_entity(model: NotificationPreferencesModel) -> NotificationPreferences:
        values = {name: getattr(model, name) for name in _PREFERENCE_FIELDS}
        return NotificationPreferences(user_id=model.user_id, **values)


__all__ = ["NotificationPreferencesRepository"]
