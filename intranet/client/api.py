"""HTTP client for the notification endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from intranet.domain.entities import NotificationType
from intranet.interfaces.api.schemas import NotificationPageRead

logger = logging.getLogger(__name__)


class InboxRequestError(RuntimeError):
    """A notification request failed; the caller may retry it."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotificationNotFoundError(LookupError):
    """The notification no longer exists for the current user."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(f"Notification {notification_id} not found")
        self.notification_id = notification_id


class NotificationApiClient:
    """Call the notification API on behalf of one authenticated user.

    ``http_client`` is any :class:`httpx.Client` whose base URL points at the
    service; FastAPI's ``TestClient`` works as well.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        token: str,
        *,
        prefix: str = "/notifications",
    ) -> None:
        self._http = http_client
        self._headers = {"Authorization": f"Bearer {token}"}
        self._prefix = prefix.rstrip("/")

    def list_page(
        self,
        *,
        page_number: int = 1,
        page_size: int = 20,
        is_read: bool | None = None,
        notification_type: NotificationType | None = None,
    ) -> NotificationPageRead:
        params: dict[str, Any] = {"page_number": page_number, "page_size": page_size}
        if is_read is not None:
            params["is_read"] = str(is_read).lower()
        if notification_type is not None:
            params["type"] = NotificationType(notification_type).value
        response = self._request("GET", "/", params=params)
        return NotificationPageRead.model_validate(response.json())

    def unread_count(self) -> int:
        response = self._request("GET", "/unread-count")
        return int(response.json()["count"])

    def mark_read(self, notification_id: str) -> None:
        self._request("PUT", f"/{notification_id}/read", notification_id=notification_id)

    def mark_all_read(self) -> int:
        response = self._request("PUT", "/read-all")
        return int(response.json()["marked_as_read"])

    def delete(self, notification_id: str) -> None:
        self._request("DELETE", f"/{notification_id}", notification_id=notification_id)

    def clear(self) -> int:
        response = self._request("DELETE", "/clear")
        return int(response.json()["deleted_count"])

    def _request(
        self,
        method: str,
        path: str,
        *,
        notification_id: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        url = f"{self._prefix}{path}"
        try:
            response = self._http.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Notification request %s %s failed: %s", method, url, exc)
            raise InboxRequestError(str(exc)) from exc

        if response.status_code == httpx.codes.NOT_FOUND and notification_id is not None:
            raise NotificationNotFoundError(notification_id)
        if response.is_error:
            raise InboxRequestError(
                _extract_detail(response) or f"{method} {url} failed",
                status_code=response.status_code,
            )
        return response


def _extract_detail(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return None


__all__ = ["InboxRequestError", "NotificationApiClient", "NotificationNotFoundError"]
