"""Notification store operations and unread-count reconciliation."""

from .broadcast_notification import broadcast_notification
from .bulk_notifications import MAX_BULK_NOTIFICATIONS, create_bulk_notifications
from .clear_notifications import clear_notifications
from .create_notification import create_notification
from .delete_notification import delete_notification
from .events import derive_title, notify_user
from .job_progress import new_job_id, run_job_simulation
from .list_notifications import get_unread_count, list_notifications
from .mark_all_notifications_read import mark_all_notifications_read
from .mark_notification_read import mark_notification_read
from .notification_stats import get_notification_stats
from .purge_notifications import purge_old_notifications
from .reconcile import broadcast_safely, publish_unread_count

__all__ = [
    "MAX_BULK_NOTIFICATIONS",
    "broadcast_notification",
    "broadcast_safely",
    "clear_notifications",
    "create_bulk_notifications",
    "create_notification",
    "delete_notification",
    "derive_title",
    "get_notification_stats",
    "get_unread_count",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
    "new_job_id",
    "notify_user",
    "publish_unread_count",
    "purge_old_notifications",
    "run_job_simulation",
]
