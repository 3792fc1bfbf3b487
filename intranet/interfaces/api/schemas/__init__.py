from .notification import (
    BulkNotificationRequest,
    BulkNotificationResult,
    ClearNotificationsResult,
    JobStartedRead,
    MarkAllReadResponse,
    NotificationPageRead,
    NotificationRead,
    NotificationStatsRead,
    NotificationTrigger,
    NotificationTriggerResult,
    UnreadCountRead,
)

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
