"""Client-side inbox that merges fetched pages with live push events."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from intranet.domain.entities import NotificationType
from intranet.infrastructure.notifications import (
    NOTIFICATION_CREATED,
    NOTIFICATION_DELETED,
    NOTIFICATION_READ,
    NOTIFICATIONS_CLEARED,
    UNREAD_COUNT_CHANGED,
)
from intranet.interfaces.api.schemas import NotificationPageRead, NotificationRead

from .api import InboxRequestError, NotificationApiClient, NotificationNotFoundError

logger = logging.getLogger(__name__)

Listener = Callable[["InboxSnapshot"], None]


@dataclass(frozen=True)
class InboxSnapshot:
    """What the interface renders: the visible list plus the unread badge."""

    items: tuple[NotificationRead, ...]
    unread_count: int
    is_loading: bool


@dataclass(frozen=True)
class InboxQuery:
    page_number: int = 1
    is_read: bool | None = None
    notification_type: NotificationType | None = None

    @property
    def is_first_unfiltered_page(self) -> bool:
        return (
            self.page_number == 1
            and self.is_read is None
            and self.notification_type is None
        )


@dataclass
class _CachedPage:
    page: NotificationPageRead
    fetched_at: float


class NotificationInbox:
    """Reactive view over the current user's notifications.

    Pages are cached per query for ``stale_after`` seconds. New notifications
    pushed by the server are prepended to the first unfiltered page; any other
    view is invalidated instead. The unread counter is only ever overwritten,
    by a fetch or by an ``unread-count-changed`` event, except for the local
    optimistic adjustments made by :meth:`mark_read`, :meth:`mark_all_read` and
    :meth:`delete`, which the next server count replaces.
    """

    def __init__(
        self,
        api: NotificationApiClient,
        *,
        page_size: int = 20,
        stale_after: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api = api
        self._page_size = page_size
        self._stale_after = stale_after
        self._clock = clock
        self._lock = threading.RLock()
        self._cache: dict[InboxQuery, _CachedPage] = {}
        self._query: InboxQuery | None = None
        self._items: list[NotificationRead] = []
        self._unread_count = 0
        self._is_loading = False
        self._listeners: list[Listener] = []

    def snapshot(self) -> InboxSnapshot:
        with self._lock:
            return InboxSnapshot(
                items=tuple(self._items),
                unread_count=self._unread_count,
                is_loading=self._is_loading,
            )

    @property
    def items(self) -> tuple[NotificationRead, ...]:
        return self.snapshot().items

    @property
    def unread_count(self) -> int:
        with self._lock:
            return self._unread_count

    @property
    def is_loading(self) -> bool:
        with self._lock:
            return self._is_loading

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot after every change."""

        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def load(
        self,
        *,
        page_number: int = 1,
        is_read: bool | None = None,
        notification_type: NotificationType | None = None,
        force: bool = False,
    ) -> InboxSnapshot:
        """Show the requested page, reusing a cached copy while it is fresh."""

        query = InboxQuery(page_number, is_read, notification_type)
        with self._lock:
            cached = self._cache.get(query)
            if cached is not None and not force and self._is_fresh(cached):
                self._query = query
                self._items = list(cached.page.items)
                hit = True
            else:
                self._is_loading = True
                hit = False
        self._notify()
        if hit:
            return self.snapshot()

        try:
            page = self._api.list_page(
                page_number=page_number,
                page_size=self._page_size,
                is_read=is_read,
                notification_type=notification_type,
            )
        except Exception:
            with self._lock:
                self._is_loading = False
            self._notify()
            raise

        with self._lock:
            self._cache[query] = _CachedPage(page=page, fetched_at=self._clock())
            self._query = query
            self._items = list(page.items)
            self._unread_count = page.unread_count
            self._is_loading = False
        self._notify()
        return self.snapshot()

    def refresh_unread_count(self) -> int:
        count = self._api.unread_count()
        self._set_unread_count(count)
        return count

    def invalidate(self) -> None:
        """Forget every cached page so the next :meth:`load` hits the server."""

        with self._lock:
            self._cache.clear()

    def on_reconnect(self) -> InboxSnapshot:
        """Resynchronize after a (re)connection; missed events are not replayed."""

        self.invalidate()
        self.refresh_unread_count()
        with self._lock:
            query = self._query
        if query is not None:
            self.load(
                page_number=1,
                is_read=query.is_read,
                notification_type=query.notification_type,
                force=True,
            )
        return self.snapshot()

    def handle_event(self, message: Mapping[str, Any]) -> None:
        """Apply one ``{"type": ..., "data": ...}`` message from the push channel."""

        event_type = message.get("type")
        data = message.get("data") or {}

        if event_type == UNREAD_COUNT_CHANGED:
            self._set_unread_count(int(data["count"]))
        elif event_type == NOTIFICATION_CREATED:
            self._apply_created(NotificationRead.model_validate(data))
        elif event_type == NOTIFICATION_READ:
            self._apply_read(
                [str(value) for value in data.get("ids", [])],
                _parse_datetime(data.get("read_at")),
            )
        elif event_type == NOTIFICATION_DELETED:
            self._apply_deleted(str(data["id"]))
        elif event_type == NOTIFICATIONS_CLEARED:
            self._apply_cleared()
        else:
            logger.debug("Ignoring push message of type %s", event_type)

    def _apply_created(self, notification: NotificationRead) -> None:
        with self._lock:
            query = self._query
            if query is None or not query.is_first_unfiltered_page:
                self._cache.clear()
                return
            if any(item.id == notification.id for item in self._items):
                return
            self._items.insert(0, notification)
            del self._items[self._page_size :]
            self._store_current_page()
        self._notify()

    def _apply_read(self, ids: list[str], read_at: datetime | None) -> None:
        targets = set(ids)
        with self._lock:
            changed = self._mark_items_read(targets, read_at or _utcnow())
            if changed:
                self._store_current_page()
        if changed:
            self._notify()

    def _apply_deleted(self, notification_id: str) -> None:
        with self._lock:
            removed = self._remove_item(notification_id)
            if removed is not None:
                self._store_current_page()
        if removed is not None:
            self._notify()

    def _apply_cleared(self) -> None:
        with self._lock:
            self._items = []
            self._cache.clear()
        self._notify()

    def mark_read(self, notification_id: str) -> None:
        """Optimistically mark one notification as read."""

        with self._lock:
            index, item = self._find(notification_id)
            if item is not None and item.is_read:
                return
            previous_count = optimistic_count = self._unread_count
            if item is not None:
                self._mark_items_read({notification_id}, _utcnow())
                optimistic_count = self._unread_count = max(0, self._unread_count - 1)
                self._store_current_page()
        self._notify()

        try:
            self._api.mark_read(notification_id)
        except NotificationNotFoundError:
            self._drop_stale(notification_id)
        except InboxRequestError:
            if item is not None:
                with self._lock:
                    self._restore_item(index, item)
                    self._store_current_page()
                self._rollback_count(previous_count, optimistic_count)
            raise

    def mark_all_read(self) -> int:
        """Optimistically mark everything as read; returns the server's count.

        The request is always sent, because the server may hold unread
        notifications this inbox has not seen yet.
        """

        with self._lock:
            previous_items = list(self._items)
            previous_count = self._unread_count
            has_unread = previous_count > 0 or any(not item.is_read for item in self._items)
            if has_unread:
                self._mark_items_read({item.id for item in self._items}, _utcnow())
                self._unread_count = 0
                self._store_current_page()
        if has_unread:
            self._notify()

        try:
            marked = self._api.mark_all_read()
        except InboxRequestError:
            if has_unread:
                with self._lock:
                    self._items = previous_items
                    self._store_current_page()
                self._rollback_count(previous_count, 0)
            raise
        self.invalidate()
        self._refresh_unread_count_quietly()
        return marked

    def delete(self, notification_id: str) -> None:
        """Optimistically remove one notification."""

        with self._lock:
            index, item = self._find(notification_id)
            previous_count = optimistic_count = self._unread_count
            if item is not None:
                self._remove_item(notification_id)
                if not item.is_read:
                    optimistic_count = self._unread_count = max(0, self._unread_count - 1)
                self._store_current_page()
        self._notify()

        try:
            self._api.delete(notification_id)
        except NotificationNotFoundError:
            self._drop_stale(notification_id)
        except InboxRequestError:
            if item is not None:
                with self._lock:
                    self._items.insert(min(index, len(self._items)), item)
                    self._store_current_page()
                self._rollback_count(previous_count, optimistic_count)
            raise

    def clear(self) -> int:
        """Optimistically delete every notification; returns the server's count."""

        with self._lock:
            previous_items = list(self._items)
            previous_count = self._unread_count
            self._items = []
            self._unread_count = 0
            self._store_current_page()
        self._notify()

        try:
            deleted = self._api.clear()
        except InboxRequestError:
            with self._lock:
                self._items = previous_items
                self._store_current_page()
            self._rollback_count(previous_count, 0)
            raise
        self.invalidate()
        self._refresh_unread_count_quietly()
        return deleted

    def _rollback_count(self, previous_count: int, optimistic_count: int) -> None:
        """Undo an optimistic counter edit unless the server already overwrote it."""

        with self._lock:
            untouched = self._unread_count == optimistic_count
            if untouched:
                self._unread_count = previous_count
                self._store_current_page()
        if untouched:
            self._notify()
        else:
            self._refresh_unread_count_quietly()

    def _drop_stale(self, notification_id: str) -> None:
        """The server no longer knows the notification; align the local copy."""

        logger.info("Notification %s no longer exists; removing it locally", notification_id)
        with self._lock:
            self._remove_item(notification_id)
            self._store_current_page()
        self._notify()
        self._refresh_unread_count_quietly()

    def _refresh_unread_count_quietly(self) -> None:
        try:
            self.refresh_unread_count()
        except InboxRequestError:
            logger.warning("Could not refresh the unread count", exc_info=True)

    def _set_unread_count(self, count: int) -> None:
        with self._lock:
            if self._unread_count == count:
                return
            self._unread_count = max(0, count)
        self._notify()

    def _is_fresh(self, cached: _CachedPage) -> bool:
        return self._clock() - cached.fetched_at < self._stale_after

    def _find(self, notification_id: str) -> tuple[int, NotificationRead | None]:
        for index, item in enumerate(self._items):
            if item.id == notification_id:
                return index, item
        return -1, None

    def _remove_item(self, notification_id: str) -> NotificationRead | None:
        index, item = self._find(notification_id)
        if item is not None:
            del self._items[index]
        return item

    def _restore_item(self, index: int, item: NotificationRead) -> None:
        current_index, _ = self._find(item.id)
        if current_index >= 0:
            self._items[current_index] = item
        else:
            self._items.insert(min(index, len(self._items)), item)

    def _mark_items_read(self, ids: set[str], read_at: datetime) -> bool:
        changed = False
        hide_read = self._query is not None and self._query.is_read is False
        updated: list[NotificationRead] = []
        for item in self._items:
            if item.id in ids and not item.is_read:
                changed = True
                if hide_read:
                    continue
                item = item.model_copy(update={"is_read": True, "read_at": read_at})
            updated.append(item)
        self._items = updated
        return changed

    def _store_current_page(self) -> None:
        """Write local edits into the cached page and drop every other page."""

        query = self._query
        current = self._cache.get(query) if query is not None else None
        self._cache.clear()
        if query is None or current is None:
            return
        page = current.page.model_copy(
            update={"items": list(self._items), "unread_count": self._unread_count}
        )
        self._cache[query] = _CachedPage(page=page, fetched_at=current.fetched_at)

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        snapshot = self.snapshot()
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Inbox listener failed")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


__all__ = ["InboxQuery", "InboxSnapshot", "NotificationInbox"]
