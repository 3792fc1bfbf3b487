"""Persistence helpers for notification entities."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import false, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from intranet.domain.entities import Notification, NotificationPage, NotificationType
from intranet.domain.exceptions import PersistenceError
from intranet.infrastructure.models import NotificationModel
from intranet.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

logger = logging.getLogger(__name__)

_ID_BATCH_SIZE = 500


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects.

    Every read and write is scoped by the owning user id. A notification that
    belongs to somebody else is reported exactly like a missing one.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _guard(self, operation: str, *, user_id: int | None = None) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(
                "Notification store failed during %s for user %s: %s",
                operation,
                user_id,
                exc,
            )
            raise PersistenceError(operation, user_id=user_id) from exc

    def create(self, notification: Notification) -> Notification:
        with self._guard("create", user_id=notification.user_id):
            model = NotificationModel(
                user_id=notification.user_id,
                title=notification.title,
                message=notification.message,
                type=NotificationType(notification.type),
                is_read=False,
                read_at=None,
                action_url=notification.action_url,
                metadata_json=notification.metadata,
                created_at=ensure_app_naive_datetime(
                    notification.created_at or now_in_app_timezone()
                ),
            )
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
            return self._to_entity(model)

    def list_for_user(
        self,
        user_id: int,
        *,
        page_number: int = 1,
        page_size: int = 20,
        is_read: bool | None = None,
        notification_type: NotificationType | None = None,
    ) -> NotificationPage:
        with self._guard("list", user_id=user_id):
            query = self._owned(user_id)
            if is_read is not None:
                query = query.filter(NotificationModel.is_read == is_read)
            if notification_type is not None:
                query = query.filter(
                    NotificationModel.type == NotificationType(notification_type)
                )
            total_count = query.count()
            models = (
                query.order_by(
                    NotificationModel.created_at.desc(), NotificationModel.id.desc()
                )
                .offset((page_number - 1) * page_size)
                .limit(page_size)
                .all()
            )
            unread_count = self._count_unread(user_id)
        return NotificationPage(
            items=[self._to_entity(model) for model in models],
            unread_count=unread_count,
            total_count=total_count,
            page_number=page_number,
            page_size=page_size,
        )

    def count_unread(self, user_id: int) -> int:
        with self._guard("unread_count", user_id=user_id):
            return self._count_unread(user_id)

    def list_unread_ids(self, user_id: int) -> list[str]:
        with self._guard("list_unread_ids", user_id=user_id):
            rows = (
                self._owned(user_id)
                .filter(NotificationModel.is_read == false())
                .with_entities(NotificationModel.id)
                .all()
            )
            return [row[0] for row in rows]

    def get_for_user(self, notification_id: str, user_id: int) -> Notification | None:
        with self._guard("get", user_id=user_id):
            model = self._get_owned_model(notification_id, user_id)
            return self._to_entity(model) if model else None

    def mark_as_read(self, notification_id: str, *, user_id: int) -> bool:
        """Flag the notification as read, leaving ``read_at`` alone if it already is."""

        with self._guard("mark_read", user_id=user_id):
            model = self._get_owned_model(notification_id, user_id)
            if model is None:
                return False
            if model.is_read:
                return True
            model.is_read = True
            model.read_at = ensure_app_naive_datetime(now_in_app_timezone())
            self.session.commit()
            return True

    def mark_all_as_read(
        self,
        user_id: int,
        *,
        read_at: datetime | None = None,
        notification_ids: Sequence[str] | None = None,
    ) -> int:
        """Mark unread notifications as read in one commit.

        When ``notification_ids`` is given only those rows are touched, so a
        notification created after the ids were listed stays unread.
        """

        stored_read_at = ensure_app_naive_datetime(read_at or now_in_app_timezone())
        with self._guard("mark_all_read", user_id=user_id):
            if notification_ids is None:
                batches: list[Sequence[str] | None] = [None]
            else:
                ids = list(notification_ids)
                batches = [
                    ids[start : start + _ID_BATCH_SIZE]
                    for start in range(0, len(ids), _ID_BATCH_SIZE)
                ]
            updated = 0
            for batch in batches:
                query = self._owned(user_id).filter(NotificationModel.is_read == false())
                if batch is not None:
                    query = query.filter(NotificationModel.id.in_(batch))
                updated += query.update(
                    {
                        NotificationModel.is_read: True,
                        NotificationModel.read_at: stored_read_at,
                    },
                    synchronize_session=False,
                ) or 0
            self.session.commit()
            return updated

    def delete(self, notification_id: str, *, user_id: int) -> bool:
        with self._guard("delete", user_id=user_id):
            model = self._get_owned_model(notification_id, user_id)
            if model is None:
                return False
            self.session.delete(model)
            self.session.commit()
            return True

    def delete_all_for_user(self, user_id: int) -> int:
        with self._guard("clear", user_id=user_id):
            deleted = self._owned(user_id).delete(synchronize_session=False)
            self.session.commit()
            return int(deleted or 0)

    def count_for_user(self, user_id: int) -> int:
        with self._guard("count", user_id=user_id):
            return self._owned(user_id).count()

    def count_by_type(self, user_id: int) -> dict[NotificationType, int]:
        with self._guard("count_by_type", user_id=user_id):
            rows = (
                self._owned(user_id)
                .with_entities(NotificationModel.type, func.count(NotificationModel.id))
                .group_by(NotificationModel.type)
                .all()
            )
            return {NotificationType(row[0]): int(row[1]) for row in rows}

    def purge_read_older_than(self, cutoff: datetime) -> int:
        """Delete read notifications created before ``cutoff``."""

        with self._guard("purge"):
            deleted = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.is_read.is_(True))
                .filter(NotificationModel.created_at < ensure_app_naive_datetime(cutoff))
                .delete(synchronize_session=False)
            )
            self.session.commit()
            return int(deleted or 0)

    def _owned(self, user_id: int) -> Query:
        return self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id
        )

    def _count_unread(self, user_id: int) -> int:
        return self._owned(user_id).filter(NotificationModel.is_read == false()).count()

    def _get_owned_model(
        self, notification_id: str, user_id: int
    ) -> NotificationModel | None:
        return (
            self._owned(user_id)
            .filter(NotificationModel.id == str(notification_id))
            .one_or_none()
        )

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            title=model.title,
            message=model.message,
            type=NotificationType(model.type),
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            action_url=model.action_url,
            metadata=model.metadata_json,
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["NotificationRepository"]
