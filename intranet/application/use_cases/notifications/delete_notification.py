"""Use case for deleting notifications."""

import logging

from sqlalchemy.orm import Session

from intranet.infrastructure.notifications import NotificationPublisher
from intranet.infrastructure.repositories import NotificationRepository

from .reconcile import broadcast_safely, publish_unread_count

logger = logging.getLogger(__name__)


def delete_notification(
    session: Session,
    notification_id: str,
    *,
    user_id: int,
    publisher: NotificationPublisher | None = None,
) -> bool:
    """Hard delete a notification owned by ``user_id``."""

    repository = NotificationRepository(session)
    existing = repository.get_for_user(notification_id, user_id)
    if existing is None or not repository.delete(notification_id, user_id=user_id):
        logger.warning(
            "Notification %s not found or not owned by user %s", notification_id, user_id
        )
        return False

    logger.info("Deleted notification %s", notification_id)
    broadcast_safely(
        publisher,
        user_id,
        lambda target: target.notification_deleted(user_id, notification_id),
    )
    if not existing.is_read:
        publish_unread_count(session, user_id=user_id, publisher=publisher)
    return True
