"""Delete read notifications that fall outside the retention window."""

from __future__ import annotations

import argparse
import logging

from intranet.application.use_cases.notifications import purge_old_notifications
from intranet.domain.exceptions import PersistenceError
from intranet.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Retention in days (defaults to NOTIFICATION_RETENTION_DAYS; 0 disables)",
    )
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        deleted = purge_old_notifications(session, retention_days=args.days)
    except (ValueError, PersistenceError) as exc:
        raise SystemExit(f"Purge failed: {exc}") from exc
    finally:
        session.close()
    print(f"Deleted {deleted} read notifications")


if __name__ == "__main__":
    main()
