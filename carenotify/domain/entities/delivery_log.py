"""Domain entities tracking realtime delivery attempts."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Final


class DeliveryStatus(str, Enum):
    """Lifecycle states of a realtime delivery attempt."""

    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    POLLED = "POLLED"

    @property
    def is_terminal_success(self) -> bool:
        return self in (DeliveryStatus.DELIVERED, DeliveryStatus.POLLED)


_ALLOWED_TRANSITIONS: Final[dict[DeliveryStatus, frozenset[DeliveryStatus]]] = {
    DeliveryStatus.PENDING: frozenset(
        {DeliveryStatus.DELIVERED, DeliveryStatus.FAILED, DeliveryStatus.POLLED}
    ),
    DeliveryStatus.FAILED: frozenset({DeliveryStatus.POLLED}),
    DeliveryStatus.DELIVERED: frozenset(),
    DeliveryStatus.POLLED: frozenset(),
}

SUCCESS_STATUSES: Final[tuple[DeliveryStatus, ...]] = (
    DeliveryStatus.DELIVERED,
    DeliveryStatus.POLLED,
)
POLLABLE_STATUSES: Final[tuple[DeliveryStatus, ...]] = (
    DeliveryStatus.PENDING,
    DeliveryStatus.FAILED,
)


class InvalidDeliveryTransitionError(ValueError):
    """Raised when a delivery log is moved through an illegal transition."""

    def __init__(self, current: DeliveryStatus, target: DeliveryStatus) -> None:
        super().__init__(
            f"Cannot move delivery log from {current.value} to {target.value}"
        )
        self.current = current
        self.target = target


class DeliveryLogNotFoundError(LookupError):
    """Raised when a delivery log cannot be located."""


def can_transition(current: DeliveryStatus, target: DeliveryStatus) -> bool:
    """Return ``True`` when ``current`` may move to ``target``."""

    return target in _ALLOWED_TRANSITIONS[DeliveryStatus(current)]


@dataclass(frozen=True)
class DeliveryLogCreate:
    """Input used to open a delivery log for a freshly created notification."""

    notification_id: str
    user_id: str
    was_connected: bool = True
    connection_id: str | None = None


@dataclass
class DeliveryLog:
    """One realtime delivery attempt for a (notification, recipient) pair.

    ``was_connected`` is an advisory presence hint captured when the attempt
    was opened; the terminal status is the source of truth.
    """

    id: str | None
    notification_id: str
    user_id: str
    status: DeliveryStatus = DeliveryStatus.PENDING
    was_connected: bool = True
    connection_id: str | None = None
    error: str | None = None
    latency_ms: int | None = None
    created_at: datetime | None = None
    dispatched_at: datetime | None = None
    delivered_at: datetime | None = None

    def transition(
        self,
        status: DeliveryStatus,
        *,
        at: datetime,
        error: str | None = None,
        latency_ms: int | None = None,
    ) -> "DeliveryLog":
        """Return a copy of the log moved to ``status``.

        Latency is only kept for ``DELIVERED`` rows and the error string only for
        ``FAILED`` rows.
        """

        status = DeliveryStatus(status)
        if not can_transition(self.status, status):
            raise InvalidDeliveryTransitionError(self.status, status)

        return replace(
            self,
            status=status,
            error=(error or "Unknown error") if status is DeliveryStatus.FAILED else None,
            latency_ms=latency_ms if status is DeliveryStatus.DELIVERED else None,
            delivered_at=at if status.is_terminal_success else self.delivered_at,
        )


@dataclass
class DeliveryLogWithNotification:
    """Delivery log joined with the type and title of its notification."""

    log: DeliveryLog
    notification_type: str
    notification_title: str


@dataclass
class DeliveryMetrics:
    """Aggregated delivery outcomes since a point in time."""

    total: int = 0
    delivered: int = 0
    failed: int = 0
    polled: int = 0
    pending: int = 0
    avg_latency_ms: float | None = None
    max_latency_ms: int | None = None
    min_latency_ms: int | None = None

    @property
    def success_rate(self) -> float:
        if not self.total:
            return 0.0
        return (self.delivered + self.polled) / self.total


__all__ = [
    "DeliveryLog",
    "DeliveryLogCreate",
    "DeliveryLogNotFoundError",
    "DeliveryLogWithNotification",
    "DeliveryMetrics",
    "DeliveryStatus",
    "InvalidDeliveryTransitionError",
    "POLLABLE_STATUSES",
    "SUCCESS_STATUSES",
    "can_transition",
]
