"""Scheduled calendar sync and sync-log housekeeping."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

import structlog
from sqlalchemy.engine import Engine

from bnb_booking.cache import SyncSummaryCache, sync_summary_cache
from bnb_booking.config import DRY_RUN, SYNC_INTER_CALL_DELAY, SYNC_LOG_RETENTION_DAYS
from bnb_booking.db.readers.rooms import list_active_rooms
from bnb_booking.db.writers.sync_log import delete_sync_logs_before
from bnb_booking.metrics import active_rooms, scheduled_runs
from bnb_booking.services.calendar_sync import (
    CALENDAR_URL_COLUMNS,
    PLATFORMS,
    SyncResult,
    sync_external_calendar,
)
from bnb_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


@dataclass
class SyncRunSummary:
    started_at: datetime
    finished_at: Optional[datetime] = None
    rooms_processed: int = 0
    syncs_attempted: int = 0
    successful: int = 0
    failed: int = 0
    bookings_processed: int = 0
    nights_blocked: int = 0
    results: list[dict[str, Any]] = field(default_factory=list)

    @property
    def run_id(self) -> str:
        return f"sync:{self.started_at.isoformat()}"

    def record(self, result: SyncResult) -> None:
        self.syncs_attempted += 1
        if result.success:
            self.successful += 1
        else:
            self.failed += 1
        self.bookings_processed += result.bookings_processed
        self.nights_blocked += result.nights_blocked
        self.results.append(result.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "rooms_processed": self.rooms_processed,
            "syncs_attempted": self.syncs_attempted,
            "successful": self.successful,
            "failed": self.failed,
            "bookings_processed": self.bookings_processed,
            "nights_blocked": self.nights_blocked,
            "results": self.results,
        }


def sync_all_rooms(
    engine: Engine,
    dry_run: bool = DRY_RUN,
    delay: float = SYNC_INTER_CALL_DELAY,
    cache: SyncSummaryCache = sync_summary_cache,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncRunSummary:
    """
    Sync every active room's Airbnb feed, then its Expedia feed.

    Calls run one at a time with a fixed pause between them to go easy on the
    calendar hosts. Each call is isolated: an exception is logged, counted as a
    failure, and the run moves on.

    Args:
        engine: SQLAlchemy Engine
        dry_run: If True, skip DB writes
        delay: Seconds to wait between sync calls
        cache: Store for the run summary
        sleep: Sleep function (injected by tests)

    Returns:
        SyncRunSummary
    """
    summary = SyncRunSummary(started_at=utc_now())
    logger.info("sync_all_rooms_started", dry_run=dry_run)

    with engine.connect() as conn:
        rooms = list_active_rooms(conn)
    active_rooms.set(len(rooms))
    logger.info("active_rooms_found", count=len(rooms))

    first_call = True
    for room in rooms:
        summary.rooms_processed += 1
        for platform in PLATFORMS:
            if not room[CALENDAR_URL_COLUMNS[platform]]:
                continue
            if not first_call and delay > 0:
                sleep(delay)
            first_call = False

            try:
                result = sync_external_calendar(engine, room["id"], platform, dry_run=dry_run)
            except Exception as e:
                logger.exception(
                    "room_sync_failed", room_id=room["id"], platform=platform, error=str(e)
                )
                result = SyncResult(
                    room_id=room["id"],
                    platform=platform,
                    error_message=str(e),
                    error_code="internal_error",
                )
            summary.record(result)

    summary.finished_at = utc_now()
    cache.set(summary.run_id, summary.to_dict())
    scheduled_runs.labels(job="hourly_sync").inc()

    logger.info(
        "sync_all_rooms_completed",
        rooms=summary.rooms_processed,
        syncs=summary.syncs_attempted,
        successful=summary.successful,
        failed=summary.failed,
    )
    return summary


def cleanup_sync_logs(
    engine: Engine,
    retention_days: int = SYNC_LOG_RETENTION_DAYS,
    cache: SyncSummaryCache = sync_summary_cache,
) -> dict[str, Any]:
    """
    Delete sync log rows older than the retention window.

    Also drops expired run summaries from the side store.

    Returns:
        dict: deleted row count, cutoff timestamp and purged summary count
    """
    cutoff = utc_now() - timedelta(days=retention_days)
    with engine.begin() as conn:
        deleted = delete_sync_logs_before(conn, cutoff)
    purged = cache.purge_expired()
    scheduled_runs.labels(job="weekly_cleanup").inc()

    logger.info(
        "sync_logs_cleaned",
        deleted=deleted,
        cutoff=cutoff.isoformat(),
        summaries_purged=purged,
    )
    return {"deleted": deleted, "cutoff": cutoff.isoformat(), "summaries_purged": purged}
