"""Retention job that purges successful delivery logs past their retention."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from carenotify.config import get_settings
from carenotify.infrastructure.database import get_session_factory, initialize_database
from carenotify.infrastructure.repositories import (
    DeliveryLogRepository,
    NotificationRepository,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments for the cleanup job."""

    parser = argparse.ArgumentParser(
        description="Delete delivered or polled notification delivery logs.",
    )
    parser.add_argument(
        "--older-than-days",
        type=int,
        default=None,
        help="Age in days of the rows to delete (default: DELIVERY_LOG_RETENTION_DAYS)",
    )
    parser.add_argument(
        "--purge-expired-notifications",
        action="store_true",
        help="Also delete notifications whose expiry date has passed.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Run the cleanup with the provided command line arguments."""

    args = parse_args(argv)
    days = args.older_than_days
    if days is None:
        days = get_settings().delivery_log_retention_days
    if days <= 0:
        raise SystemExit("--older-than-days must be a positive number")

    initialize_database()

    session = get_session_factory()()
    try:
        removed = DeliveryLogRepository(session).cleanup_older_than(days)
        expired = (
            NotificationRepository(session).delete_expired()
            if args.purge_expired_notifications
            else 0
        )
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Delivery log cleanup failed: {exc}") from exc
    else:
        print(
            "Cleanup finished:\n"
            f"  Delivery logs removed: {removed} (older than {days} days)\n"
            f"  Expired notifications removed: {expired}"
        )
    finally:
        session.close()


if __name__ == "__main__":
    main()
