"""Connection management helpers for notification websockets."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, DefaultDict, Protocol, Set

import anyio

logger = logging.getLogger(__name__)

CLOSE_CODE_DELIVERY_FAILED = 1011


class PushConnection(Protocol):
    """Subset of :class:`fastapi.WebSocket` used by the manager."""

    async def accept(self) -> None: ...

    async def send_json(self, data: Any, mode: str = "text") -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class NotificationConnectionManager:
    """Manage active websocket connections grouped by user.

    The registry is shared by every request, so membership changes and the
    snapshot taken before a broadcast happen under a lock. Sends to the
    connections of one user run concurrently and each one is bounded by
    ``send_timeout``; a connection that fails or stalls is dropped without
    affecting the rest of the group. Dropped connections are closed with
    code 1011 so the client notices and resynchronizes on reconnect.
    """

    def __init__(self, *, send_timeout: float = 5.0, close_timeout: float = 1.0) -> None:
        self._connections: DefaultDict[int, Set[PushConnection]] = defaultdict(set)
        self._lock = threading.Lock()
        self._send_timeout = send_timeout
        self._close_timeout = close_timeout

    async def connect(self, user_id: int, websocket: PushConnection) -> None:
        """Accept the websocket connection and register it for ``user_id``."""

        await websocket.accept()
        self.register(user_id, websocket)

    def register(self, user_id: int, websocket: PushConnection) -> None:
        """Add an already accepted ``websocket`` to the group of ``user_id``."""

        with self._lock:
            self._connections[user_id].add(websocket)
            total = len(self._connections[user_id])
        logger.info("User %s connected to notifications (%s active)", user_id, total)

    def disconnect(self, user_id: int, websocket: PushConnection) -> None:
        """Remove ``websocket`` from the pool for ``user_id``."""

        with self._lock:
            connections = self._connections.get(user_id)
            if connections is None or websocket not in connections:
                return
            connections.discard(websocket)
            if not connections:
                self._connections.pop(user_id, None)
        logger.info("User %s disconnected from notifications", user_id)

    def connection_count(self, user_id: int) -> int:
        """Return how many live connections ``user_id`` currently has."""

        with self._lock:
            return len(self._connections.get(user_id, ()))

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> None:
        """Send ``message`` to every active connection for ``user_id``."""

        with self._lock:
            connections = list(self._connections.get(user_id, ()))
        if not connections:
            return

        async with anyio.create_task_group() as task_group:
            for connection in connections:
                task_group.start_soon(self._send, user_id, connection, message)

    async def _send(
        self, user_id: int, connection: PushConnection, message: dict[str, Any]
    ) -> None:
        try:
            with anyio.fail_after(self._send_timeout):
                await connection.send_json(message)
        except TimeoutError:
            logger.warning(
                "Timed out delivering '%s' to a connection of user %s; dropping it",
                message.get("type"),
                user_id,
            )
            await self._drop(user_id, connection)
        except Exception as exc:  # delivery failures are isolated to the connection
            logger.warning(
                "Failed to deliver '%s' to a connection of user %s: %s",
                message.get("type"),
                user_id,
                exc,
            )
            await self._drop(user_id, connection)

    async def _drop(self, user_id: int, connection: PushConnection) -> None:
        self.disconnect(user_id, connection)
        with anyio.move_on_after(self._close_timeout):
            try:
                await connection.close(code=CLOSE_CODE_DELIVERY_FAILED)
            except Exception as exc:
                logger.debug("Closing a dropped connection of user %s failed: %s", user_id, exc)


__all__ = ["CLOSE_CODE_DELIVERY_FAILED", "NotificationConnectionManager", "PushConnection"]
