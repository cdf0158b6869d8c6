"""
In-memory store for scheduled sync run summaries, with TTL.

Run summaries are operational breadcrumbs: the admin API lists the recent ones
and nothing depends on them surviving a restart. Entries expire after the
configured retention (7 days by default).

For distributed deployments with multiple instances, consider migrating to Redis.
"""

from datetime import timedelta
from typing import Any

from bnb_booking.config import SYNC_SUMMARY_TTL_SECONDS
from bnb_booking.utils.datetime import utc_now


class SyncSummaryCache:
    """
    In-memory summary store with time-to-live (TTL) expiration.

    Attributes:
        ttl: Time-to-live for stored summaries
        _cache: Internal storage mapping run id to (summary, stored_at) tuples

    Example:
        >>> cache = SyncSummaryCache(ttl_seconds=3600)
        >>> cache.set("sync:2025-09-10T10:00:00+00:00", {"successful": 4, "failed": 0})
        >>> cache.recent(limit=1)
        [{'successful': 4, 'failed': 0}]
    """

    def __init__(self, ttl_seconds: int = SYNC_SUMMARY_TTL_SECONDS):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._cache: dict[str, tuple[dict[str, Any], Any]] = {}

    def get(self, run_id: str) -> dict[str, Any] | None:
        """
        Get a stored summary if not expired.

        Args:
            run_id: Run identifier

        Returns:
            Summary dict if found and not expired, None otherwise
        """
        if run_id in self._cache:
            summary, stored_at = self._cache[run_id]
            if utc_now() < stored_at + self.ttl:
                return summary
            del self._cache[run_id]
        return None

    def set(self, run_id: str, summary: dict[str, Any]) -> None:
        self._cache[run_id] = (summary, utc_now())

    def recent(self, limit: int = 10) -> list[dict[str, Any]]:
        """
        Return unexpired summaries, newest first.

        Args:
            limit: Maximum number of summaries

        Returns:
            List of summary dicts
        """
        self.purge_expired()
        entries = sorted(self._cache.values(), key=lambda entry: entry[1], reverse=True)
        return [summary for summary, _ in entries[:limit]]

    def purge_expired(self) -> int:
        """
        Drop expired summaries.

        Returns:
            Number of summaries removed
        """
        cutoff = utc_now() - self.ttl
        expired = [run_id for run_id, (_, stored_at) in self._cache.items() if stored_at <= cutoff]
        for run_id in expired:
            del self._cache[run_id]
        return len(expired)

    def clear(self) -> None:
        self._cache.clear()

    def size(self) -> int:
        return len(self._cache)


# Global store shared by the scheduler and the admin API
sync_summary_cache = SyncSummaryCache()
