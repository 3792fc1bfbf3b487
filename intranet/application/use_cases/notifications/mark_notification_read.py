"""Use case for marking a single notification as read."""

import logging

from sqlalchemy.orm import Session

from intranet.infrastructure.notifications import NotificationPublisher
from intranet.infrastructure.repositories import NotificationRepository

from .reconcile import broadcast_safely, publish_unread_count

logger = logging.getLogger(__name__)


def mark_notification_read(
    session: Session,
    notification_id: str,
    *,
    user_id: int,
    publisher: NotificationPublisher | None = None,
) -> bool:
    """Mark the notification as read.

    Returns ``False`` when the notification does not exist or belongs to a
    different user. Marking an already read notification succeeds without
    changing it.
    """

    repository = NotificationRepository(session)
    existing = repository.get_for_user(notification_id, user_id)
    if existing is None:
        logger.warning(
            "Notification %s not found or not owned by user %s", notification_id, user_id
        )
        return False
    if existing.is_read:
        return True

    repository.mark_as_read(notification_id, user_id=user_id)
    updated = repository.get_for_user(notification_id, user_id)
    logger.info("Marked notification %s as read", notification_id)

    read_at = updated.read_at if updated else None
    broadcast_safely(
        publisher,
        user_id,
        lambda target: target.notifications_read(user_id, [notification_id], read_at),
    )
    publish_unread_count(session, user_id=user_id, publisher=publisher)
    return True
