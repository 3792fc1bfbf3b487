"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    """Closed set of notification categories."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    """Information message delivered to a specific user.

    ``metadata`` is an opaque JSON string supplied by whichever feature
    produced the notification; it is stored and returned verbatim.
    """

    id: str | None
    user_id: int
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    is_read: bool = False
    read_at: datetime | None = None
    action_url: str | None = None
    metadata: str | None = None
    created_at: datetime | None = None


@dataclass
class NotificationPage:
    """One page of a user's notifications plus the unfiltered unread count."""

    items: list[Notification] = field(default_factory=list)
    unread_count: int = 0
    total_count: int = 0
    page_number: int = 1
    page_size: int = 20


@dataclass
class NotificationStats:
    """Totals shown on a user's notification dashboard."""

    total: int = 0
    unread: int = 0
    by_type: dict[NotificationType, int] = field(default_factory=dict)


__all__ = ["Notification", "NotificationPage", "NotificationStats", "NotificationType"]
