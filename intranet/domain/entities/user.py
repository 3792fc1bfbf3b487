"""Domain entity representing a user."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """Authenticated principal that owns notifications."""

    id: int | None
    email: str
    name: str
    is_active: bool = True
    created_at: datetime | None = None
