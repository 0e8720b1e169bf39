"""Orchestrate notification creation, realtime delivery and companion emails.

A dispatch persists the notification first; everything after that point is
best effort and reported through :class:`DispatchResult` rather than raised, so
the user-visible notification never disappears because a channel misbehaved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Literal, Mapping, Sequence

import anyio

from carenotify.domain.entities import (
    DeliveryChannel,
    DeliveryLog,
    DeliveryLogCreate,
    DeliveryStatus,
    Family,
    Notification,
    NotificationContent,
    NotificationType,
    User,
    serialize_notification,
)
from carenotify.utils import milliseconds_between, now_in_app_timezone

from .email_payloads import EmailContext, build_email_payload
from .ports import (
    EVENT_ALL_READ,
    EVENT_NOTIFICATION,
    EVENT_NOTIFICATION_READ,
    EVENT_UNREAD_COUNT,
    GLOBAL_PRESENCE_CHANNEL,
    ChannelPublisher,
    DeliveryLogStore,
    EmailScheduler,
    EmailSender,
    FamilyLookup,
    NotificationStore,
    PreferenceStore,
)

logger = logging.getLogger(__name__)

QuietHoursPolicy = Literal["suppress", "defer"]

FAMILY_RESULT_USER_ID = "family"


@dataclass
class DispatchResult:
    """Outcome of dispatching one notification to one recipient."""

    success: bool
    notification: Notification | None = None
    delivery_log_id: str | None = None
    delivered: bool = False
    email_sent: bool = False
    email_deferred_until: datetime | None = None
    errors: list[str] = field(default_factory=list)


@dataclass
class RecipientDispatchResult:
    """Per-recipient entry of a bulk dispatch.

    ``raised`` is ``True`` when the dispatch call itself failed with an
    exception instead of returning a result.
    """

    user_id: str
    result: DispatchResult
    raised: bool = False

    @property
    def success(self) -> bool:
        return self.result.success

    @property
    def delivered(self) -> bool:
        return self.result.delivered

    @property
    def email_sent(self) -> bool:
        return self.result.email_sent

    @property
    def errors(self) -> list[str]:
        return self.result.errors


@dataclass
class BulkDispatchResult:
    """Aggregated outcome of a fan-out dispatch."""

    results: list[RecipientDispatchResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for item in self.results if item.success)

    @property
    def failure_count(self) -> int:
        return self.total - self.success_count

    @property
    def delivered_count(self) -> int:
        return sum(1 for item in self.results if item.delivered)

    @classmethod
    def failure(cls, user_id: str, error: str) -> "BulkDispatchResult":
        """Return a result holding a single synthetic failure."""

        return cls(
            results=[
                RecipientDispatchResult(
                    user_id=user_id,
                    result=DispatchResult(success=False, errors=[error]),
                )
            ]
        )


@dataclass(frozen=True)
class BulkRecipient:
    """Recipient of a bulk dispatch with its optional email context."""

    user_id: str
    email_context: EmailContext | None = None


class NotificationDispatcher:
    """Deliver notifications through the in-app feed, realtime channel and email."""

    def __init__(
        self,
        *,
        notifications: NotificationStore,
        delivery_logs: DeliveryLogStore,
        preferences: PreferenceStore,
        publisher: ChannelPublisher,
        email_sender: EmailSender,
        families: FamilyLookup | None = None,
        scheduler: EmailScheduler | None = None,
        clock: Callable[[], datetime] = now_in_app_timezone,
        brand_name: str = "Living & Leaving",
        quiet_hours_policy: QuietHoursPolicy = "suppress",
        presence_check: bool = False,
    ) -> None:
        self._notifications = notifications
        self._delivery_logs = delivery_logs
        self._preferences = preferences
        self._publisher = publisher
        self._email_sender = email_sender
        self._families = families
        self._scheduler = scheduler
        self._clock = clock
        self._brand_name = brand_name
        self._quiet_hours_policy = quiet_hours_policy
        self._presence_check = presence_check

    async def dispatch_notification(
        self,
        user_id: str,
        notification_type: NotificationType,
        content: NotificationContent,
        email_context: EmailContext | None = None,
    ) -> DispatchResult:
        """Create ``content`` for ``user_id`` and deliver it on every allowed channel.

        Only a failure to persist the notification propagates to the caller.
        A publisher that raises marks the result unsuccessful, but the unread
        count and email legs still run.
        """

        notification_type = NotificationType(notification_type)
        draft = Notification.from_content(
            user_id, notification_type, content, created_at=self._clock()
        )
        notification = await self._notifications.create(draft)
        logger.info(
            "Notification %s (%s) created for user %s",
            notification.id,
            notification_type.value,
            user_id,
        )

        result = DispatchResult(success=True, notification=notification)

        delivery_log = await self._open_delivery_log(notification, result)
        await self._publish_notification(notification, delivery_log, result)

        try:
            error = await self._broadcast_unread_count(user_id)
        except Exception as exc:
            logger.warning("Unable to compute unread count for user %s: %s", user_id, exc)
            error = str(exc)
        if error:
            result.errors.append(f"Unread count broadcast failed: {error}")

        if email_context is not None:
            await self._send_companion_email(notification, email_context, result)

        return result

    async def dispatch_bulk_notifications(
        self,
        recipients: Sequence[BulkRecipient | str],
        notification_type: NotificationType,
        content: NotificationContent,
    ) -> BulkDispatchResult:
        """Dispatch ``content`` to every recipient concurrently.

        Waits for every recipient to settle; an exception raised for one
        recipient becomes a failed entry and never cancels the others.
        """

        targets = [_as_recipient(recipient) for recipient in recipients]
        outcomes: list[RecipientDispatchResult | None] = [None] * len(targets)

        async def _dispatch_one(index: int, recipient: BulkRecipient) -> None:
            try:
                result = await self.dispatch_notification(
                    recipient.user_id,
                    notification_type,
                    content,
                    recipient.email_context,
                )
            except Exception as exc:
                logger.exception(
                    "Unexpected error dispatching notification to user %s",
                    recipient.user_id,
                )
                outcomes[index] = RecipientDispatchResult(
                    user_id=recipient.user_id,
                    result=DispatchResult(
                        success=False, errors=[f"Failed to dispatch: {exc}"]
                    ),
                    raised=True,
                )
            else:
                outcomes[index] = RecipientDispatchResult(
                    user_id=recipient.user_id, result=result
                )

        async with anyio.create_task_group() as task_group:
            for index, recipient in enumerate(targets):
                task_group.start_soon(_dispatch_one, index, recipient)

        bulk = BulkDispatchResult(
            results=[outcome for outcome in outcomes if outcome is not None]
        )
        logger.info(
            "Bulk notification dispatch complete: total=%s success=%s failed=%s delivered=%s",
            bulk.total,
            bulk.success_count,
            bulk.failure_count,
            bulk.delivered_count,
        )
        return bulk

    async def dispatch_family_notification(
        self,
        family_id: str,
        notification_type: NotificationType,
        content: NotificationContent,
        email_context_template: EmailContext | None = None,
        *,
        exclude_user_ids: Iterable[str] = (),
    ) -> BulkDispatchResult:
        """Dispatch ``content`` to every member of ``family_id``.

        Members without an email address still receive the in-app notification
        but are never sent the companion email.
        """

        if self._families is None:
            return BulkDispatchResult.failure(
                FAMILY_RESULT_USER_ID, "Family lookup is not configured"
            )

        try:
            family = await self._families.get_family_by_id(family_id)
        except Exception as exc:
            logger.warning("Family notification dispatch error for %s: %s", family_id, exc)
            return BulkDispatchResult.failure(FAMILY_RESULT_USER_ID, str(exc))

        excluded = set(exclude_user_ids)
        members = [member for member in family.members if member.id not in excluded]
        if not members:
            logger.info("Family %s has no members to notify", family_id)
            return BulkDispatchResult.failure(
                FAMILY_RESULT_USER_ID, "Family not found or has no members"
            )

        recipients = [
            BulkRecipient(
                user_id=member.id,
                email_context=_member_email_context(member, family, email_context_template),
            )
            for member in members
        ]
        return await self.dispatch_bulk_notifications(recipients, notification_type, content)

    async def mark_notification_as_read(
        self, notification_id: str, user_id: str
    ) -> Notification:
        """Mark one notification as read and refresh the recipient's counters."""

        notification = await self._notifications.mark_as_read(notification_id, user_id)
        await self._publish(
            user_id, EVENT_NOTIFICATION_READ, {"notificationId": notification_id}
        )
        await self._broadcast_unread_count(user_id)
        logger.info("Notification %s marked as read by user %s", notification_id, user_id)
        return notification

    async def mark_all_notifications_as_read(self, user_id: str) -> int:
        """Mark every unread notification of ``user_id`` as read."""

        updated = await self._notifications.mark_all_as_read(user_id)
        await self._publish(user_id, EVENT_ALL_READ, {"updated": updated})
        await self._broadcast_unread_count(user_id)
        logger.info("All notifications marked as read for user %s (%s updated)", user_id, updated)
        return updated

    async def mark_source_as_read(self, user_id: str, field_name: str, value: Any) -> int:
        """Mark unread notifications whose payload has ``field_name == value``."""

        updated = await self._notifications.mark_read_by_source(user_id, field_name, value)
        if updated:
            await self._broadcast_unread_count(user_id)
        return updated

    async def _open_delivery_log(
        self, notification: Notification, result: DispatchResult
    ) -> DeliveryLog | None:
        try:
            was_connected = await self._was_connected(notification.user_id)
            delivery_log = await self._delivery_logs.create(
                DeliveryLogCreate(
                    notification_id=notification.id,
                    user_id=notification.user_id,
                    was_connected=was_connected,
                )
            )
        except Exception as exc:
            logger.warning(
                "Unable to create delivery log for notification %s: %s",
                notification.id,
                exc,
            )
            result.errors.append(f"Delivery log error: {exc}")
            return None

        result.delivery_log_id = delivery_log.id
        return delivery_log

    async def _was_connected(self, user_id: str) -> bool:
        if not self._presence_check:
            return True
        try:
            connected = await self._publisher.query_connected_users(GLOBAL_PRESENCE_CHANNEL)
        except Exception as exc:
            logger.warning("Presence query failed for user %s: %s", user_id, exc)
            return True
        return user_id in connected

    async def _publish_notification(
        self,
        notification: Notification,
        delivery_log: DeliveryLog | None,
        result: DispatchResult,
    ) -> None:
        logger.debug(
            "Dispatching notification %s to user %s", notification.id, notification.user_id
        )
        try:
            outcome = await self._publisher.publish(
                notification.user_id, EVENT_NOTIFICATION, serialize_notification(notification)
            )
        except Exception as exc:
            logger.exception(
                "Publisher raised while dispatching notification %s", notification.id
            )
            error = str(exc) or repr(exc)
            result.success = False
            result.errors.append(f"Broadcast failed: {error}")
            if delivery_log is not None:
                await self._update_delivery_log(
                    delivery_log, DeliveryStatus.FAILED, result, error=error
                )
            return

        if outcome.success:
            latency_ms = milliseconds_between(
                notification.created_at or self._clock(), self._clock()
            )
            result.delivered = True
            logger.info(
                "Notification %s delivered to user %s in %sms",
                notification.id,
                notification.user_id,
                latency_ms,
            )
            if delivery_log is not None:
                await self._update_delivery_log(
                    delivery_log, DeliveryStatus.DELIVERED, result, latency_ms=latency_ms
                )
            return

        error = outcome.error or "Unknown error"
        logger.warning(
            "Notification %s dispatch to user %s failed: %s",
            notification.id,
            notification.user_id,
            error,
        )
        result.errors.append(f"Broadcast failed: {error}")
        if delivery_log is not None:
            await self._update_delivery_log(
                delivery_log, DeliveryStatus.FAILED, result, error=error
            )

    async def _update_delivery_log(
        self,
        delivery_log: DeliveryLog,
        status: DeliveryStatus,
        result: DispatchResult,
        *,
        error: str | None = None,
        latency_ms: int | None = None,
    ) -> None:
        try:
            await self._delivery_logs.update_status(
                delivery_log.id, status, error=error, latency_ms=latency_ms
            )
        except Exception as exc:
            logger.warning(
                "Unable to update delivery log %s to %s: %s",
                delivery_log.id,
                status.value,
                exc,
            )
            result.errors.append(f"Delivery log error: {exc}")

    async def _broadcast_unread_count(self, user_id: str) -> str | None:
        """Publish the recomputed unread count; return the publish error if any."""

        count = await self._notifications.get_unread_count(user_id)
        return await self._publish(user_id, EVENT_UNREAD_COUNT, {"count": count})

    async def _publish(
        self, user_id: str, event: str, payload: Mapping[str, Any]
    ) -> str | None:
        try:
            outcome = await self._publisher.publish(user_id, event, payload)
        except Exception as exc:
            logger.warning("Unable to publish %s event to user %s: %s", event, user_id, exc)
            return str(exc) or repr(exc)
        if not outcome.success:
            logger.warning(
                "Publishing %s event to user %s failed: %s", event, user_id, outcome.error
            )
            return outcome.error or "Unknown error"
        return None

    async def _send_companion_email(
        self,
        notification: Notification,
        email_context: EmailContext,
        result: DispatchResult,
    ) -> None:
        user_id = notification.user_id
        try:
            allowed = await self._preferences.should_send_notification(
                user_id, notification.type, DeliveryChannel.EMAIL
            )
            if not allowed:
                logger.info("Email notification disabled by preferences for user %s", user_id)
                return

            now = self._clock()
            if notification.type is not NotificationType.EMERGENCY_ALERT and (
                await self._preferences.is_within_quiet_hours(user_id, now)
            ):
                if self._quiet_hours_policy == "defer" and self._scheduler is not None:
                    run_at = await self._preferences.next_available_time(user_id, now)
                    self._defer_email(notification, email_context, run_at)
                    result.email_deferred_until = run_at
                    logger.info(
                        "Email notification for user %s deferred until %s",
                        user_id,
                        run_at.isoformat(),
                    )
                else:
                    logger.info(
                        "Email notification skipped due to quiet hours for user %s", user_id
                    )
                return

            payload = build_email_payload(
                notification, email_context, now=now, brand_name=self._brand_name
            )
            outcome = await self._email_sender.send_notification_email(
                user_id, notification.type, payload
            )
        except Exception as exc:
            logger.exception("Email notification error for user %s", user_id)
            result.errors.append(f"Email error: {exc}")
            return

        if outcome.success:
            result.email_sent = True
            logger.info(
                "Email notification sent to user %s (message id %s)", user_id, outcome.message_id
            )
        else:
            result.errors.append(f"Email failed: {outcome.error}")

    def _defer_email(
        self, notification: Notification, email_context: EmailContext, run_at: datetime
    ) -> None:
        context = dict(email_context)

        async def _send_later() -> None:
            payload = build_email_payload(
                notification, context, now=self._clock(), brand_name=self._brand_name
            )
            try:
                outcome = await self._email_sender.send_notification_email(
                    notification.user_id, notification.type, payload
                )
            except Exception:
                logger.exception(
                    "Deferred email for notification %s failed", notification.id
                )
                return
            if outcome.success:
                logger.info("Deferred email for notification %s sent", notification.id)
            else:
                logger.warning(
                    "Deferred email for notification %s failed: %s",
                    notification.id,
                    outcome.error,
                )

        self._scheduler.schedule(run_at, _send_later)


def _as_recipient(recipient: BulkRecipient | str) -> BulkRecipient:
    if isinstance(recipient, BulkRecipient):
        return recipient
    return BulkRecipient(user_id=recipient)


def _member_email_context(
    member: User, family: Family, template: EmailContext | None
) -> dict[str, Any] | None:
    if template is None or not member.email:
        return None
    return {
        **template,
        "recipientName": member.full_name or member.email,
        "familyName": family.name,
    }


__all__ = [
    "BulkDispatchResult",
    "BulkRecipient",
    "DispatchResult",
    "FAMILY_RESULT_USER_ID",
    "NotificationDispatcher",
    "QuietHoursPolicy",
    "RecipientDispatchResult",
]
