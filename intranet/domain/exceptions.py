"""Errors raised by the domain and persistence layers."""

from __future__ import annotations


class PersistenceError(RuntimeError):
    """The notification store could not complete ``operation``."""

    error_code = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, *, user_id: int | None = None) -> None:
        self.operation = operation
        self.user_id = user_id
        super().__init__(f"Notification store failed during '{operation}'")


__all__ = ["PersistenceError"]
