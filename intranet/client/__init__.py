"""Client helpers for consuming the notification API and push channel."""

from .api import InboxRequestError, NotificationApiClient, NotificationNotFoundError
from .inbox import InboxQuery, InboxSnapshot, NotificationInbox

__all__ = [
    "InboxQuery",
    "InboxRequestError",
    "InboxSnapshot",
    "NotificationApiClient",
    "NotificationInbox",
    "NotificationNotFoundError",
]
