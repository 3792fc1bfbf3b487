"""Use cases for reading a user's notifications."""

import logging

from sqlalchemy.orm import Session

from intranet.domain.entities import NotificationPage, NotificationType
from intranet.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


def list_notifications(
    session: Session,
    *,
    user_id: int,
    page_number: int = 1,
    page_size: int = 20,
    is_read: bool | None = None,
    notification_type: NotificationType | None = None,
) -> NotificationPage:
    """Return one page of notifications, newest first.

    Bounds for ``page_number`` and ``page_size`` are enforced by the caller.
    """

    if page_number < 1 or page_size < 1:
        raise ValueError("Page number and page size must be positive")

    page = NotificationRepository(session).list_for_user(
        user_id,
        page_number=page_number,
        page_size=page_size,
        is_read=is_read,
        notification_type=notification_type,
    )
    logger.debug(
        "Retrieved %s notifications for user %s (page %s, size %s)",
        len(page.items),
        user_id,
        page_number,
        page_size,
    )
    return page


def get_unread_count(session: Session, *, user_id: int) -> int:
    """Return how many unread notifications ``user_id`` has."""

    return NotificationRepository(session).count_unread(user_id)
