"""Use case for summarizing a user's notifications."""

from sqlalchemy.orm import Session

from intranet.domain.entities import NotificationStats
from intranet.infrastructure.repositories import NotificationRepository


def get_notification_stats(session: Session, *, user_id: int) -> NotificationStats:
    repository = NotificationRepository(session)
    return NotificationStats(
        total=repository.count_for_user(user_id),
        unread=repository.count_unread(user_id),
        by_type=repository.count_by_type(user_id),
    )
