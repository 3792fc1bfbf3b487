"""Validation helpers for notification use cases."""

from __future__ import annotations

import json
from urllib.parse import urlparse

from intranet.domain.entities import NotificationType

TITLE_MAX_LENGTH = 200
MESSAGE_MAX_LENGTH = 1000
ACTION_URL_MAX_LENGTH = 500
METADATA_MAX_LENGTH = 2000


def validate_title(title: str) -> str:
    normalized = (title or "").strip()
    if not normalized:
        raise ValueError("Notification title is required")
    if len(normalized) > TITLE_MAX_LENGTH:
        raise ValueError(f"Notification title must be at most {TITLE_MAX_LENGTH} characters")
    return normalized


def validate_message(message: str) -> str:
    normalized = (message or "").strip()
    if not normalized:
        raise ValueError("Notification message is required")
    if len(normalized) > MESSAGE_MAX_LENGTH:
        raise ValueError(
            f"Notification message must be at most {MESSAGE_MAX_LENGTH} characters"
        )
    return normalized


def validate_type(value: NotificationType | str) -> NotificationType:
    try:
        return NotificationType(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in NotificationType)
        raise ValueError(f"Notification type must be one of: {allowed}") from exc


def validate_action_url(action_url: str | None) -> str | None:
    """Accept relative paths for in-app navigation or absolute http(s) URLs."""

    if action_url is None or not action_url.strip():
        return None
    normalized = action_url.strip()
    if len(normalized) > ACTION_URL_MAX_LENGTH:
        raise ValueError(
            f"Action URL must be at most {ACTION_URL_MAX_LENGTH} characters"
        )
    if normalized.startswith("/"):
        return normalized
    parsed = urlparse(normalized)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError("Action URL must be a relative path or an http(s) URL")
    return normalized


def validate_metadata(metadata: str | None) -> str | None:
    """Check that ``metadata`` is JSON text; the value itself is kept verbatim."""

    if metadata is None or not metadata.strip():
        return None
    if len(metadata) > METADATA_MAX_LENGTH:
        raise ValueError(f"Metadata must be at most {METADATA_MAX_LENGTH} characters")
    try:
        json.loads(metadata)
    except json.JSONDecodeError as exc:
        raise ValueError("Metadata must be valid JSON") from exc
    return metadata
