"""Utility helpers to push notification events to websocket subscribers."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from anyio import from_thread

from intranet.domain.entities import Notification
from intranet.utils import isoformat_or_none

from .manager import NotificationConnectionManager

logger = logging.getLogger(__name__)

NOTIFICATION_CREATED = "notification-created"
UNREAD_COUNT_CHANGED = "unread-count-changed"
NOTIFICATION_READ = "notification-read"
NOTIFICATION_DELETED = "notification-deleted"
NOTIFICATIONS_CLEARED = "notifications-cleared"


class NotificationPublisher:
    """Serialize notification events and schedule their delivery.

    Delivery is best effort: the database stays the source of truth, so any
    problem while scheduling a push is logged and otherwise ignored.
    """

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def manager(self) -> NotificationConnectionManager:
        return self._manager

    def notification_created(self, notification: Notification) -> None:
        self.dispatch(
            notification.user_id,
            event_type=NOTIFICATION_CREATED,
            payload=serialize_notification(notification),
        )

    def unread_count_changed(self, user_id: int, count: int) -> None:
        self.dispatch(user_id, event_type=UNREAD_COUNT_CHANGED, payload={"count": count})

    def notifications_read(
        self, user_id: int, notification_ids: Iterable[str], read_at: datetime | None
    ) -> None:
        self.dispatch(
            user_id,
            event_type=NOTIFICATION_READ,
            payload={"ids": list(notification_ids), "read_at": isoformat_or_none(read_at)},
        )

    def notification_deleted(self, user_id: int, notification_id: str) -> None:
        self.dispatch(
            user_id, event_type=NOTIFICATION_DELETED, payload={"id": notification_id}
        )

    def notifications_cleared(self, user_id: int, deleted_count: int) -> None:
        self.dispatch(
            user_id, event_type=NOTIFICATIONS_CLEARED, payload={"deleted_count": deleted_count}
        )

    def dispatch(self, user_id: int, *, event_type: str, payload: Any) -> None:
        """Schedule a realtime ``event_type`` event for ``user_id``."""

        if not user_id:
            return
        if self._manager.connection_count(user_id) == 0:
            logger.debug("No open connections for user %s; skipping %s", user_id, event_type)
            return

        message = {"type": event_type, "data": copy.deepcopy(payload)}
        try:
            self._schedule_send(user_id, message)
        except RuntimeError as exc:
            logger.warning(
                "Could not schedule %s for user %s: %s", event_type, user_id, exc
            )

    def _schedule_send(self, user_id: int, message: dict[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if hasattr(from_thread, "start_soon"):
                from_thread.start_soon(self._manager.send_to_user, user_id, message)
            else:
                from_thread.run(self._manager.send_to_user, user_id, message)
        else:
            task = loop.create_task(self._manager.send_to_user(user_id, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type.value,
        "action_url": notification.action_url,
        "metadata": notification.metadata,
        "created_at": isoformat_or_none(notification.created_at),
        "is_read": notification.is_read,
        "read_at": isoformat_or_none(notification.read_at),
    }


__all__ = [
    "NOTIFICATION_CREATED",
    "NOTIFICATION_DELETED",
    "NOTIFICATION_READ",
    "NOTIFICATIONS_CLEARED",
    "UNREAD_COUNT_CHANGED",
    "NotificationPublisher",
    "serialize_notification",
]
