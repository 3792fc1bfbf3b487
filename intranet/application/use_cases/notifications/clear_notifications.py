"""Use case for deleting every notification of a user."""

import logging

from sqlalchemy.orm import Session

from intranet.infrastructure.notifications import NotificationPublisher
from intranet.infrastructure.repositories import NotificationRepository

from .reconcile import broadcast_safely, publish_unread_count

logger = logging.getLogger(__name__)


def clear_notifications(
    session: Session,
    *,
    user_id: int,
    publisher: NotificationPublisher | None = None,
) -> int:
    """Hard delete all of ``user_id``'s notifications and return how many went."""

    deleted = NotificationRepository(session).delete_all_for_user(user_id)
    if deleted == 0:
        return 0

    logger.info("Cleared %s notifications for user %s", deleted, user_id)
    broadcast_safely(
        publisher,
        user_id,
        lambda target: target.notifications_cleared(user_id, deleted),
    )
    publish_unread_count(session, user_id=user_id, publisher=publisher)
    return deleted
