"""Retention policy for read notifications."""

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from intranet.config import get_settings
from intranet.infrastructure.repositories import NotificationRepository
from intranet.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


def purge_old_notifications(session: Session, *, retention_days: int | None = None) -> int:
    """Delete read notifications older than the retention window.

    Unread notifications are always kept. A retention of ``0`` disables purging.
    """

    days = retention_days
    if days is None:
        days = get_settings().notification_retention_days
    if days < 0:
        raise ValueError("Retention days cannot be negative")
    if days == 0:
        logger.info("Notification retention disabled; nothing purged")
        return 0

    cutoff = now_in_app_timezone() - timedelta(days=days)
    deleted = NotificationRepository(session).purge_read_older_than(cutoff)
    logger.info("Purged %s read notifications created before %s", deleted, cutoff.isoformat())
    return deleted
