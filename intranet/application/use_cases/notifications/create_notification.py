"""Use case for creating notifications."""

import logging

from sqlalchemy.orm import Session

from intranet.domain.entities import Notification, NotificationType
from intranet.infrastructure.notifications import NotificationPublisher
from intranet.infrastructure.repositories import NotificationRepository
from intranet.utils import now_in_app_timezone

from .reconcile import broadcast_safely, publish_unread_count
from .validators import (
    validate_action_url,
    validate_message,
    validate_metadata,
    validate_title,
    validate_type,
)

logger = logging.getLogger(__name__)


def create_notification(
    session: Session,
    *,
    user_id: int,
    title: str,
    message: str,
    notification_type: NotificationType | str = NotificationType.INFO,
    action_url: str | None = None,
    metadata: str | None = None,
    publisher: NotificationPublisher | None = None,
) -> Notification:
    """Persist a notification for ``user_id`` and push it to their sessions."""

    if not user_id:
        raise ValueError("A recipient user is required")

    notification = Notification(
        id=None,
        user_id=user_id,
        title=validate_title(title),
        message=validate_message(message),
        type=validate_type(notification_type),
        action_url=validate_action_url(action_url),
        metadata=validate_metadata(metadata),
        created_at=now_in_app_timezone(),
    )
    saved = NotificationRepository(session).create(notification)
    logger.info("Notification %s created for user %s: %s", saved.id, user_id, saved.title)

    broadcast_safely(publisher, user_id, lambda target: target.notification_created(saved))
    publish_unread_count(session, user_id=user_id, publisher=publisher)
    return saved
