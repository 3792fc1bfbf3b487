"""Helpers other features use to notify a user about something that happened."""

from __future__ import annotations

from sqlalchemy.orm import Session

from intranet.domain.entities import Notification, NotificationType
from intranet.infrastructure.notifications import NotificationPublisher

from .create_notification import create_notification

_TITLE_MAX_LENGTH = 50
_DEFAULT_TITLES: dict[NotificationType, str] = {
    NotificationType.INFO: "Notification",
    NotificationType.SUCCESS: "Success",
    NotificationType.WARNING: "Warning",
    NotificationType.ERROR: "Error",
}


def derive_title(message: str, notification_type: NotificationType) -> str:
    """Use the first sentence of ``message`` as title when it is short enough."""

    first_sentence = message.split(".", 1)[0].strip()
    if first_sentence and len(first_sentence) <= _TITLE_MAX_LENGTH:
        return first_sentence
    return _DEFAULT_TITLES[NotificationType(notification_type)]


def notify_user(
    session: Session,
    *,
    user_id: int,
    message: str,
    notification_type: NotificationType = NotificationType.INFO,
    action_url: str | None = None,
    metadata: str | None = None,
    publisher: NotificationPublisher | None = None,
) -> Notification:
    """Persist and push a notification whose title is derived from ``message``."""

    return create_notification(
        session,
        user_id=user_id,
        title=derive_title(message, notification_type),
        message=message,
        notification_type=notification_type,
        action_url=action_url,
        metadata=metadata,
        publisher=publisher,
    )
