"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from intranet.domain.entities import NotificationType


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    message: str
    type: NotificationType
    is_read: bool
    read_at: datetime | None = None
    action_url: str | None = None
    metadata: str | None = None
    created_at: datetime


class NotificationPageRead(BaseModel):
    """A page of notifications plus the user's total unread count."""

    items: list[NotificationRead] = Field(default_factory=list)
    unread_count: int
    total_count: int
    page_number: int
    page_size: int


class UnreadCountRead(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    marked_as_read: int


class NotificationTrigger(BaseModel):
    """Payload used to send a notification to the caller."""

    title: str | None = Field(default=None, max_length=200)
    message: str | None = Field(default=None, max_length=1000)
    type: NotificationType | None = None
    action_url: str | None = Field(default=None, max_length=500)
    metadata: str | None = Field(default=None, max_length=2000)


class NotificationTriggerResult(BaseModel):
    notification_id: str


class BulkNotificationRequest(BaseModel):
    count: int | None = Field(default=None, ge=1)


class BulkNotificationResult(BaseModel):
    notification_ids: list[str]
    count: int


class ClearNotificationsResult(BaseModel):
    deleted_count: int


class NotificationStatsRead(BaseModel):
    """Totals for the dashboard; ``by_type`` lists every type, zeros included."""

    total: int
    unread: int
    by_type: dict[NotificationType, int]


class JobStartedRead(BaseModel):
    job_id: str
    message: str


__all__ = [
    "BulkNotificationRequest",
    "BulkNotificationResult",
    "ClearNotificationsResult",
    "JobStartedRead",
    "MarkAllReadResponse",
    "NotificationPageRead",
    "NotificationRead",
    "NotificationStatsRead",
    "NotificationTrigger",
    "NotificationTriggerResult",
    "UnreadCountRead",
]
