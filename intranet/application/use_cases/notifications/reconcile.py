"""Keep the unread counter shown to clients aligned with the database."""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from intranet.infrastructure.notifications import NotificationPublisher
from intranet.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


def broadcast_safely(
    publisher: NotificationPublisher | None,
    user_id: int,
    action: Callable[[NotificationPublisher], None],
) -> None:
    """Run ``action`` against ``publisher``; a failed push never fails the caller."""

    if publisher is None:
        return
    try:
        action(publisher)
    except Exception:
        logger.warning(
            "Failed to send realtime notification update to user %s",
            user_id,
            exc_info=True,
        )


def publish_unread_count(
    session: Session,
    *,
    user_id: int,
    publisher: NotificationPublisher | None,
) -> int | None:
    """Recount the user's unread notifications and push the absolute value.

    Returns the count that was pushed, or ``None`` when push is disabled.
    """

    if publisher is None:
        return None
    count = NotificationRepository(session).count_unread(user_id)
    broadcast_safely(
        publisher,
        user_id,
        lambda target: target.unread_count_changed(user_id, count),
    )
    return count


__all__ = ["broadcast_safely", "publish_unread_count"]
