"""Use case for sending a batch of sample notifications to one user."""

import logging

from sqlalchemy.orm import Session

from intranet.domain.entities import Notification, NotificationType
from intranet.infrastructure.notifications import NotificationPublisher

from .create_notification import create_notification

logger = logging.getLogger(__name__)

MAX_BULK_NOTIFICATIONS = 20
DEFAULT_BULK_NOTIFICATIONS = 5

_TYPE_CYCLE = list(NotificationType)


def create_bulk_notifications(
    session: Session,
    *,
    user_id: int,
    count: int | None = None,
    publisher: NotificationPublisher | None = None,
) -> list[Notification]:
    """Create ``count`` numbered notifications, capped at ``MAX_BULK_NOTIFICATIONS``.

    Types rotate through every :class:`NotificationType`; even positions link
    to the dashboard.
    """

    requested = DEFAULT_BULK_NOTIFICATIONS if count is None else count
    if requested < 1:
        raise ValueError("At least one notification must be requested")
    total = min(requested, MAX_BULK_NOTIFICATIONS)

    created: list[Notification] = []
    for index in range(total):
        created.append(
            create_notification(
                session,
                user_id=user_id,
                title=f"Test Notification {index + 1}",
                message=f"This is test notification {index + 1} of {total}",
                notification_type=_TYPE_CYCLE[index % len(_TYPE_CYCLE)],
                action_url="/dashboard" if index % 2 == 0 else None,
                publisher=publisher,
            )
        )
    logger.info("Created %s bulk notifications for user %s", total, user_id)
    return created
