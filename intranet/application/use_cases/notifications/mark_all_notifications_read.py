"""Use case for marking every unread notification of a user as read."""

import logging

from sqlalchemy.orm import Session

from intranet.infrastructure.notifications import NotificationPublisher
from intranet.infrastructure.repositories import NotificationRepository
from intranet.utils import now_in_app_timezone

from .reconcile import broadcast_safely, publish_unread_count

logger = logging.getLogger(__name__)


def mark_all_notifications_read(
    session: Session,
    *,
    user_id: int,
    publisher: NotificationPublisher | None = None,
) -> int:
    """Return how many notifications transitioned from unread to read.

    The pushed event carries exactly the ids that were updated and the
    ``read_at`` value that was stored for them.
    """

    repository = NotificationRepository(session)
    read_at = now_in_app_timezone()
    unread_ids = repository.list_unread_ids(user_id)
    if not unread_ids:
        logger.info("No unread notifications found for user %s", user_id)
        return 0

    count = repository.mark_all_as_read(
        user_id, read_at=read_at, notification_ids=unread_ids
    )
    logger.info("Marked %s notifications as read for user %s", count, user_id)
    broadcast_safely(
        publisher,
        user_id,
        lambda target: target.notifications_read(user_id, unread_ids, read_at),
    )
    publish_unread_count(session, user_id=user_id, publisher=publisher)
    return count
