"""Realtime notification helpers for the infrastructure layer."""

from .manager import (
    CLOSE_CODE_DELIVERY_FAILED,
    NotificationConnectionManager,
    PushConnection,
)
from .publisher import (
    NOTIFICATION_CREATED,
    NOTIFICATION_DELETED,
    NOTIFICATION_READ,
    NOTIFICATIONS_CLEARED,
    UNREAD_COUNT_CHANGED,
    NotificationPublisher,
    serialize_notification,
)

__all__ = [
    "CLOSE_CODE_DELIVERY_FAILED",
    "NotificationConnectionManager",
    "PushConnection",
    "NotificationPublisher",
    "serialize_notification",
    "NOTIFICATION_CREATED",
    "NOTIFICATION_DELETED",
    "NOTIFICATION_READ",
    "NOTIFICATIONS_CLEARED",
    "UNREAD_COUNT_CHANGED",
]
