"""Tests for the application timezone helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from intranet.config import reset_settings_cache
from intranet.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    get_app_timezone,
    isoformat_or_none,
)


@pytest.fixture
def app_timezone(monkeypatch):
    """Switch ``APP_TIMEZONE`` for one test and restore the cached values after."""

    def _set(name: str) -> None:
        monkeypatch.setenv("APP_TIMEZONE", name)
        reset_settings_cache()
        get_app_timezone.cache_clear()

    yield _set

    monkeypatch.undo()
    reset_settings_cache()
    get_app_timezone.cache_clear()


def test_unknown_timezone_falls_back_to_utc(app_timezone):
    app_timezone("Mars/Olympus_Mons")

    assert get_app_timezone() is timezone.utc


def test_named_timezone_is_used_for_storage_and_reads(app_timezone):
    app_timezone("America/Lima")
    moment = datetime(2024, 6, 1, 15, 30, tzinfo=timezone.utc)

    stored = ensure_app_naive_datetime(moment)
    assert stored == datetime(2024, 6, 1, 10, 30)
    assert stored.tzinfo is None

    restored = ensure_app_timezone(stored)
    assert restored == moment
    assert restored.utcoffset() == timedelta(hours=-5)


def test_none_values_pass_through():
    assert ensure_app_timezone(None) is None
    assert ensure_app_naive_datetime(None) is None
    assert isoformat_or_none(None) is None
    assert isoformat_or_none(datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)) == (
        "2024-01-02T03:04:00+00:00"
    )
