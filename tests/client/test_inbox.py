"""Tests for the client-side notification inbox."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from intranet.client import (
    InboxRequestError,
    NotificationApiClient,
    NotificationInbox,
    NotificationNotFoundError,
)
from intranet.domain.entities import NotificationType
from intranet.interfaces.api.schemas import NotificationPageRead, NotificationRead
from intranet.main import create_app

BASE_TIME = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


def _notification(identifier: str, minute: int, *, is_read: bool = False) -> NotificationRead:
    return NotificationRead(
        id=identifier,
        title=f"Title {identifier}",
        message=f"Message {identifier}",
        type=NotificationType.INFO,
        is_read=is_read,
        read_at=BASE_TIME if is_read else None,
        action_url=None,
        metadata=None,
        created_at=BASE_TIME + timedelta(minutes=minute),
    )


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNotificationApi:
    """In-memory stand-in for :class:`NotificationApiClient`."""

    def __init__(self, notifications: list[NotificationRead] | None = None) -> None:
        self.notifications = list(notifications or [])
        self.calls: list[str] = []
        self.failure: Exception | None = None
        self.before_response: Callable[[], None] | None = None

    def _maybe_fail(self) -> None:
        if self.before_response is not None:
            self.before_response()
        if self.failure is not None:
            raise self.failure

    def list_page(self, *, page_number=1, page_size=20, is_read=None, notification_type=None):
        self.calls.append("list")
        self._maybe_fail()
        rows = sorted(self.notifications, key=lambda item: item.created_at, reverse=True)
        if is_read is not None:
            rows = [row for row in rows if row.is_read == is_read]
        if notification_type is not None:
            rows = [row for row in rows if row.type == notification_type]
        start = (page_number - 1) * page_size
        return NotificationPageRead(
            items=rows[start : start + page_size],
            unread_count=self.unread_count(record=False),
            total_count=len(rows),
            page_number=page_number,
            page_size=page_size,
        )

    def unread_count(self, record: bool = True) -> int:
        if record:
            self.calls.append("count")
        return sum(1 for item in self.notifications if not item.is_read)

    def mark_read(self, notification_id: str) -> None:
        self.calls.append(f"read:{notification_id}")
        self._maybe_fail()
        index = self._index(notification_id)
        self.notifications[index] = self.notifications[index].model_copy(
            update={"is_read": True, "read_at": BASE_TIME}
        )

    def mark_all_read(self) -> int:
        self.calls.append("read-all")
        self._maybe_fail()
        changed = 0
        for index, item in enumerate(self.notifications):
            if not item.is_read:
                changed += 1
                self.notifications[index] = item.model_copy(
                    update={"is_read": True, "read_at": BASE_TIME}
                )
        return changed

    def delete(self, notification_id: str) -> None:
        self.calls.append(f"delete:{notification_id}")
        self._maybe_fail()
        del self.notifications[self._index(notification_id)]

    def clear(self) -> int:
        self.calls.append("clear")
        self._maybe_fail()
        deleted = len(self.notifications)
        self.notifications = []
        return deleted

    def _index(self, notification_id: str) -> int:
        for index, item in enumerate(self.notifications):
            if item.id == notification_id:
                return index
        raise NotificationNotFoundError(notification_id)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api():
    return FakeNotificationApi(
        [_notification("a", 1), _notification("b", 2), _notification("c", 3, is_read=True)]
    )


@pytest.fixture
def inbox(api, clock):
    return NotificationInbox(api, page_size=20, stale_after=5.0, clock=clock)


def _ids(inbox: NotificationInbox) -> list[str]:
    return [item.id for item in inbox.items]


def test_load_shows_the_page_and_server_count(inbox):
    snapshot = inbox.load()

    assert [item.id for item in snapshot.items] == ["c", "b", "a"]
    assert snapshot.unread_count == 2
    assert snapshot.is_loading is False


def test_fresh_pages_come_from_the_cache(inbox, api, clock):
    inbox.load()
    clock.advance(4.9)
    inbox.load()
    assert api.calls.count("list") == 1

    clock.advance(0.2)
    inbox.load()
    assert api.calls.count("list") == 2

    inbox.load(force=True)
    assert api.calls.count("list") == 3


def test_failed_load_clears_the_loading_flag(inbox, api):
    api.failure = InboxRequestError("offline")

    with pytest.raises(InboxRequestError):
        inbox.load()

    assert inbox.is_loading is False


def test_created_event_prepends_without_touching_the_counter(inbox):
    inbox.load()
    pushed = _notification("d", 10)

    inbox.handle_event({"type": "notification-created", "data": pushed.model_dump(mode="json")})
    inbox.handle_event({"type": "notification-created", "data": pushed.model_dump(mode="json")})

    assert _ids(inbox) == ["d", "c", "b", "a"]
    assert inbox.unread_count == 2

    inbox.handle_event({"type": "unread-count-changed", "data": {"count": 3}})
    assert inbox.unread_count == 3


def test_created_event_respects_the_page_size(api, clock):
    inbox = NotificationInbox(api, page_size=3, clock=clock)
    inbox.load()

    inbox.handle_event(
        {"type": "notification-created", "data": _notification("d", 10).model_dump(mode="json")}
    )

    assert _ids(inbox) == ["d", "c", "b"]


def test_created_event_invalidates_filtered_views(inbox, api):
    inbox.load(is_read=False)
    assert _ids(inbox) == ["b", "a"]

    inbox.handle_event(
        {"type": "notification-created", "data": _notification("d", 10).model_dump(mode="json")}
    )
    assert _ids(inbox) == ["b", "a"]

    api.notifications.append(_notification("d", 10))
    inbox.load(is_read=False)
    assert api.calls.count("list") == 2
    assert _ids(inbox) == ["d", "b", "a"]


def test_unread_count_event_always_overwrites(inbox):
    inbox.load()

    inbox.handle_event({"type": "unread-count-changed", "data": {"count": 7}})
    inbox.handle_event({"type": "unread-count-changed", "data": {"count": 1}})

    assert inbox.unread_count == 1


def test_read_and_deleted_events_apply_once(inbox):
    inbox.load()
    read_event = {
        "type": "notification-read",
        "data": {"ids": ["a", "missing"], "read_at": "2024-05-01T09:00:00+00:00"},
    }

    inbox.handle_event(read_event)
    inbox.handle_event(read_event)
    item = next(entry for entry in inbox.items if entry.id == "a")
    assert item.is_read is True
    assert item.read_at == datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    inbox.handle_event({"type": "notification-deleted", "data": {"id": "b"}})
    inbox.handle_event({"type": "notification-deleted", "data": {"id": "b"}})
    assert _ids(inbox) == ["c", "a"]

    inbox.handle_event({"type": "something-else", "data": {}})
    assert _ids(inbox) == ["c", "a"]


def test_mark_read_is_optimistic_and_skips_read_items(inbox, api):
    inbox.load()

    inbox.mark_read("a")
    assert inbox.unread_count == 1
    assert next(item for item in inbox.items if item.id == "a").is_read is True

    inbox.mark_read("a")
    inbox.mark_read("c")
    assert [call for call in api.calls if call.startswith("read:")] == ["read:a"]


def test_mark_read_hides_items_in_unread_view(inbox):
    inbox.load(is_read=False)

    inbox.mark_read("b")

    assert _ids(inbox) == ["a"]


def test_mark_read_rolls_back_when_the_request_fails(inbox, api):
    inbox.load()
    api.failure = InboxRequestError("server error", status_code=503)

    with pytest.raises(InboxRequestError):
        inbox.mark_read("b")

    assert inbox.unread_count == 2
    assert _ids(inbox) == ["c", "b", "a"]
    assert next(item for item in inbox.items if item.id == "b").is_read is False


def test_mark_read_of_vanished_notification_drops_it(inbox, api):
    inbox.load()
    api.notifications = [item for item in api.notifications if item.id != "b"]

    inbox.mark_read("b")

    assert _ids(inbox) == ["c", "a"]
    assert inbox.unread_count == 1
    assert "count" in api.calls


def test_delete_is_optimistic_and_rolls_back(inbox, api):
    inbox.load()

    inbox.delete("a")
    assert _ids(inbox) == ["c", "b"]
    assert inbox.unread_count == 1

    api.failure = InboxRequestError("server error", status_code=500)
    with pytest.raises(InboxRequestError):
        inbox.delete("c")
    assert _ids(inbox) == ["c", "b"]
    assert inbox.unread_count == 1


def test_delete_of_vanished_notification_is_silent(inbox, api):
    inbox.load()
    api.notifications = [item for item in api.notifications if item.id != "a"]

    inbox.delete("a")

    assert _ids(inbox) == ["c", "b"]
    assert inbox.unread_count == 1


def test_mark_all_read_and_rollback(inbox, api):
    inbox.load()
    api.failure = InboxRequestError("offline")

    with pytest.raises(InboxRequestError):
        inbox.mark_all_read()
    assert inbox.unread_count == 2
    assert [item.is_read for item in inbox.items] == [True, False, False]

    api.failure = None
    assert inbox.mark_all_read() == 2
    assert inbox.unread_count == 0
    assert all(item.is_read for item in inbox.items)

    assert inbox.mark_all_read() == 0
    assert api.calls.count("read-all") == 3


def test_failed_mark_read_keeps_a_count_pushed_meanwhile(inbox, api):
    inbox.load()

    def push_then_fail():
        inbox.handle_event({"type": "unread-count-changed", "data": {"count": 3}})
        api.notifications.append(_notification("d", 10))
        raise InboxRequestError("server error", status_code=503)

    api.before_response = push_then_fail
    with pytest.raises(InboxRequestError):
        inbox.mark_read("b")
    api.before_response = None

    assert inbox.unread_count == 3
    assert "count" in api.calls
    assert next(item for item in inbox.items if item.id == "b").is_read is False


def test_failed_delete_keeps_a_count_pushed_meanwhile(inbox, api):
    inbox.load()

    def push_then_fail():
        inbox.handle_event({"type": "unread-count-changed", "data": {"count": 3}})
        api.notifications.append(_notification("d", 10))
        raise InboxRequestError("server error", status_code=503)

    api.before_response = push_then_fail
    with pytest.raises(InboxRequestError):
        inbox.delete("a")
    api.before_response = None

    assert inbox.unread_count == 3
    assert "a" in _ids(inbox)


def test_mark_all_read_always_asks_the_server(api, clock):
    api.notifications = []
    inbox = NotificationInbox(api, clock=clock)
    inbox.load()
    assert inbox.unread_count == 0

    api.notifications.extend([_notification("x", 1), _notification("y", 2)])

    assert inbox.mark_all_read() == 2
    assert "read-all" in api.calls
    assert inbox.unread_count == 0
    assert api.unread_count(record=False) == 0


def test_clear_is_optimistic_and_rolls_back(inbox, api):
    inbox.load()

    api.failure = InboxRequestError("offline")
    with pytest.raises(InboxRequestError):
        inbox.clear()
    assert _ids(inbox) == ["c", "b", "a"]
    assert inbox.unread_count == 2

    api.failure = None
    assert inbox.clear() == 3
    assert _ids(inbox) == []
    assert inbox.unread_count == 0


def test_cleared_event_empties_the_list(inbox, api):
    inbox.load()

    inbox.handle_event({"type": "notifications-cleared", "data": {"deleted_count": 3}})
    inbox.handle_event({"type": "unread-count-changed", "data": {"count": 0}})

    assert _ids(inbox) == []
    assert inbox.unread_count == 0
    inbox.load()
    assert api.calls.count("list") == 2


def test_reconnect_refetches_the_count_and_first_page(inbox, api):
    inbox.load()
    api.notifications.append(_notification("d", 10))

    snapshot = inbox.on_reconnect()

    assert "count" in api.calls
    assert api.calls.count("list") == 2
    assert [item.id for item in snapshot.items] == ["d", "c", "b", "a"]
    assert snapshot.unread_count == 3


def test_subscribers_receive_snapshots_until_unsubscribed(inbox):
    seen = []
    unsubscribe = inbox.subscribe(seen.append)

    inbox.load()
    assert seen[-1].unread_count == 2
    assert seen[-1].is_loading is False
    assert any(snapshot.is_loading for snapshot in seen)

    unsubscribe()
    inbox.handle_event({"type": "unread-count-changed", "data": {"count": 9}})
    assert seen[-1].unread_count == 2


def test_broken_subscriber_does_not_break_the_inbox(inbox):
    def explode(snapshot):
        raise RuntimeError("render failed")

    inbox.subscribe(explode)

    inbox.load()

    assert inbox.unread_count == 2


def test_inbox_stays_consistent_with_the_live_service(make_user, token_for):
    user = make_user()
    token = token_for(user)

    with TestClient(create_app()) as client:
        headers = {"Authorization": f"Bearer {token}"}
        for title in ("One", "Two"):
            client.post("/notifications/test", json={"title": title}, headers=headers)

        inbox = NotificationInbox(NotificationApiClient(client, token))
        inbox.load()
        assert [item.title for item in inbox.items] == ["Two", "One"]
        assert inbox.unread_count == 2

        with client.websocket_connect(f"/notifications/ws?token={token}") as websocket:
            inbox.handle_event(websocket.receive_json())
            assert inbox.unread_count == 2

            target = inbox.items[0].id
            inbox.mark_read(target)
            inbox.handle_event(websocket.receive_json())
            inbox.handle_event(websocket.receive_json())

            client.post("/notifications/test", json={"title": "Three"}, headers=headers)
            inbox.handle_event(websocket.receive_json())
            inbox.handle_event(websocket.receive_json())

        assert [item.title for item in inbox.items] == ["Three", "Two", "One"]
        assert inbox.unread_count == 2
        assert client.get("/notifications/unread-count", headers=headers).json() == {
            "count": inbox.unread_count
        }

        inbox.delete("00000000-0000-4000-8000-000000000000")
        with pytest.raises(NotificationNotFoundError):
            NotificationApiClient(client, token).mark_read("00000000-0000-4000-8000-000000000000")
