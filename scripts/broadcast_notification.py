"""Send one notification to every active user."""

from __future__ import annotations

import argparse
import logging

from intranet.application.use_cases.notifications import broadcast_notification
from intranet.domain.entities import NotificationType
from intranet.domain.exceptions import PersistenceError
from intranet.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--title", default=None, help="Notification title")
    parser.add_argument("--message", default=None, help="Notification message")
    parser.add_argument(
        "--type",
        dest="notification_type",
        choices=[member.value for member in NotificationType],
        default=NotificationType.INFO.value,
    )
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        sent = broadcast_notification(
            session,
            title=args.title,
            message=args.message,
            notification_type=args.notification_type,
        )
    except (ValueError, PersistenceError) as exc:
        raise SystemExit(f"Broadcast failed: {exc}") from exc
    finally:
        session.close()
    print(f"Notified {sent} users")


if __name__ == "__main__":
    main()
