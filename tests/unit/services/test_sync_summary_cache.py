"""
Unit tests for the sync run summary store.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest

from bnb_booking.cache import SyncSummaryCache
from bnb_booking.utils.datetime import utc_now


@pytest.mark.unit
def test_set_and_get_summary() -> None:
    cache = SyncSummaryCache(ttl_seconds=60)
    cache.set("sync:1", {"successful": 2})

    assert cache.get("sync:1") == {"successful": 2}
    assert cache.get("sync:missing") is None


@pytest.mark.unit
def test_expired_summary_is_dropped() -> None:
    cache = SyncSummaryCache(ttl_seconds=60)
    cache.set("sync:1", {"successful": 2})

    later = utc_now() + timedelta(seconds=61)
    with patch("bnb_booking.cache.utc_now", return_value=later):
        assert cache.get("sync:1") is None
    assert cache.size() == 0


@pytest.mark.unit
def test_recent_returns_newest_first() -> None:
    cache = SyncSummaryCache(ttl_seconds=3600)
    start = utc_now()
    for offset, run_id in enumerate(["sync:a", "sync:b", "sync:c"]):
        with patch("bnb_booking.cache.utc_now", return_value=start + timedelta(seconds=offset)):
            cache.set(run_id, {"run_id": run_id})

    assert [s["run_id"] for s in cache.recent(limit=2)] == ["sync:c", "sync:b"]


@pytest.mark.unit
def test_purge_expired_counts_removed_entries() -> None:
    cache = SyncSummaryCache(ttl_seconds=60)
    cache.set("sync:old", {})
    with patch("bnb_booking.cache.utc_now", return_value=utc_now() + timedelta(seconds=30)):
        cache.set("sync:new", {})

    with patch("bnb_booking.cache.utc_now", return_value=utc_now() + timedelta(seconds=75)):
        assert cache.purge_expired() == 1

    assert cache.size() == 1
