"""Use case for announcing something to every active user."""

import logging

from sqlalchemy.orm import Session

from intranet.domain.entities import NotificationType
from intranet.infrastructure.notifications import NotificationPublisher
from intranet.infrastructure.repositories import UserRepository

from .create_notification import create_notification
from .validators import validate_message, validate_title

logger = logging.getLogger(__name__)

DEFAULT_BROADCAST_TITLE = "System Announcement"
DEFAULT_BROADCAST_MESSAGE = "This is a broadcast message to all users"


def broadcast_notification(
    session: Session,
    *,
    title: str | None = None,
    message: str | None = None,
    notification_type: NotificationType | str = NotificationType.INFO,
    publisher: NotificationPublisher | None = None,
) -> int:
    """Create one notification per active user and return how many were sent."""

    title = validate_title(title or DEFAULT_BROADCAST_TITLE)
    message = validate_message(message or DEFAULT_BROADCAST_MESSAGE)

    user_ids = UserRepository(session).list_active_ids()
    for user_id in user_ids:
        create_notification(
            session,
            user_id=user_id,
            title=title,
            message=message,
            notification_type=notification_type,
            publisher=publisher,
        )
    logger.info("Broadcast '%s' to %s users", title, len(user_ids))
    return len(user_ids)
