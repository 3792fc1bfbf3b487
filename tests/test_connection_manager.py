"""Tests for websocket fan-out and push scheduling."""

from __future__ import annotations

import anyio
import pytest

from intranet.domain.entities import Notification, NotificationType
from intranet.infrastructure.notifications import (
    CLOSE_CODE_DELIVERY_FAILED,
    NOTIFICATION_CREATED,
    UNREAD_COUNT_CHANGED,
    NotificationConnectionManager,
    NotificationPublisher,
)


class FakeConnection:
    def __init__(self) -> None:
        self.accepted = False
        self.messages: list[dict] = []
        self.closed_with: int | None = None

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data, mode: str = "text") -> None:
        self.messages.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed_with = code


class BrokenConnection(FakeConnection):
    async def send_json(self, data, mode: str = "text") -> None:
        raise RuntimeError("socket closed")


class StalledConnection(FakeConnection):
    async def send_json(self, data, mode: str = "text") -> None:
        await anyio.sleep(10)


class UnclosableConnection(BrokenConnection):
    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        raise RuntimeError("already closed")


@pytest.mark.anyio
async def test_connect_accepts_and_registers():
    manager = NotificationConnectionManager()
    connection = FakeConnection()

    await manager.connect(1, connection)

    assert connection.accepted is True
    assert manager.connection_count(1) == 1


@pytest.mark.anyio
async def test_send_reaches_every_connection_of_the_user_only():
    manager = NotificationConnectionManager()
    laptop, phone, stranger = FakeConnection(), FakeConnection(), FakeConnection()
    manager.register(1, laptop)
    manager.register(1, phone)
    manager.register(2, stranger)

    message = {"type": UNREAD_COUNT_CHANGED, "data": {"count": 3}}
    await manager.send_to_user(1, message)

    assert laptop.messages == [message]
    assert phone.messages == [message]
    assert stranger.messages == []


@pytest.mark.anyio
async def test_failing_connection_is_dropped_without_affecting_others():
    manager = NotificationConnectionManager()
    healthy, broken, other_user = FakeConnection(), BrokenConnection(), FakeConnection()
    manager.register(1, healthy)
    manager.register(1, broken)
    manager.register(2, other_user)

    await manager.send_to_user(1, {"type": UNREAD_COUNT_CHANGED, "data": {"count": 1}})
    await manager.send_to_user(2, {"type": UNREAD_COUNT_CHANGED, "data": {"count": 5}})

    assert len(healthy.messages) == 1
    assert healthy.closed_with is None
    assert broken.closed_with == CLOSE_CODE_DELIVERY_FAILED
    assert manager.connection_count(1) == 1
    assert other_user.messages == [{"type": UNREAD_COUNT_CHANGED, "data": {"count": 5}}]


@pytest.mark.anyio
async def test_stalled_connection_times_out_and_is_dropped():
    manager = NotificationConnectionManager(send_timeout=0.05)
    healthy, stalled = FakeConnection(), StalledConnection()
    manager.register(1, healthy)
    manager.register(1, stalled)

    with anyio.fail_after(2):
        await manager.send_to_user(1, {"type": UNREAD_COUNT_CHANGED, "data": {"count": 2}})

    assert len(healthy.messages) == 1
    assert manager.connection_count(1) == 1
    assert stalled.closed_with == CLOSE_CODE_DELIVERY_FAILED
    assert healthy.closed_with is None


@pytest.mark.anyio
async def test_close_errors_on_dropped_connections_are_contained():
    manager = NotificationConnectionManager()
    healthy, unclosable = FakeConnection(), UnclosableConnection()
    manager.register(1, healthy)
    manager.register(1, unclosable)

    await manager.send_to_user(1, {"type": UNREAD_COUNT_CHANGED, "data": {"count": 1}})

    assert len(healthy.messages) == 1
    assert manager.connection_count(1) == 1


@pytest.mark.anyio
async def test_send_without_connections_is_a_noop():
    manager = NotificationConnectionManager()

    await manager.send_to_user(42, {"type": UNREAD_COUNT_CHANGED, "data": {"count": 0}})

    assert manager.connection_count(42) == 0


def test_disconnect_forgets_empty_groups():
    manager = NotificationConnectionManager()
    connection = FakeConnection()
    manager.register(7, connection)

    manager.disconnect(7, connection)
    manager.disconnect(7, connection)

    assert manager.connection_count(7) == 0


@pytest.mark.anyio
async def test_publisher_schedules_delivery_on_the_running_loop():
    manager = NotificationConnectionManager()
    connection = FakeConnection()
    manager.register(1, connection)
    publisher = NotificationPublisher(manager)
    notification = Notification(
        id="8f0c6a56-0000-4000-8000-000000000001",
        user_id=1,
        title="Hello",
        message="World",
        type=NotificationType.SUCCESS,
    )

    publisher.notification_created(notification)
    publisher.unread_count_changed(1, 4)

    with anyio.fail_after(2):
        while len(connection.messages) < 2:
            await anyio.sleep(0.01)

    assert connection.messages[0]["type"] == NOTIFICATION_CREATED
    assert connection.messages[0]["data"]["id"] == notification.id
    assert connection.messages[0]["data"]["type"] == "success"
    assert connection.messages[1] == {"type": UNREAD_COUNT_CHANGED, "data": {"count": 4}}


def test_publisher_skips_users_without_connections(caplog):
    manager = NotificationConnectionManager()
    publisher = NotificationPublisher(manager)

    publisher.unread_count_changed(1, 3)

    assert "Could not schedule" not in caplog.text


def test_publisher_outside_any_event_loop_logs_instead_of_raising(caplog):
    manager = NotificationConnectionManager()
    connection = FakeConnection()
    manager.register(1, connection)
    publisher = NotificationPublisher(manager)

    publisher.unread_count_changed(1, 3)

    assert connection.messages == []
    assert "Could not schedule" in caplog.text
