"""Domain entities exposed by the application."""

from .notification import (
    Notification,
    NotificationPage,
    NotificationStats,
    NotificationType,
)
from .user import User

__all__ = [
    "Notification",
    "NotificationPage",
    "NotificationStats",
    "NotificationType",
    "User",
]
