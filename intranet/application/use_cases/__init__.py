"""Aggregate application use cases."""

from .notifications import (
    create_notification,
    delete_notification,
    get_unread_count,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
)

__all__ = [
    "create_notification",
    "delete_notification",
    "get_unread_count",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
]
