"""Recurring calendar sync and sync-log cleanup jobs."""

from __future__ import annotations

import asyncio

from sqlalchemy.engine import Engine

from bnb_booking.config import (
    CLEANUP_INTERVAL_SECONDS,
    DRY_RUN,
    SYNC_INTERVAL_SECONDS,
    SYNC_LOG_RETENTION_DAYS,
)
from bnb_booking.services.sync import cleanup_sync_logs, sync_all_rooms
from bnb_booking.workers.base import BaseWorker


class CalendarSyncWorker(BaseWorker):
    """Hourly sync of every active room's external calendars."""

    def __init__(self, engine: Engine, interval_seconds: int = SYNC_INTERVAL_SECONDS):
        super().__init__("calendar_sync", interval_seconds=interval_seconds)
        self.engine = engine

    async def process(self) -> None:
        # The sync is blocking I/O; keep it off the event loop
        await asyncio.to_thread(sync_all_rooms, self.engine, DRY_RUN)


class SyncLogCleanupWorker(BaseWorker):
    """Weekly pruning of old sync log rows."""

    def __init__(self, engine: Engine, interval_seconds: int = CLEANUP_INTERVAL_SECONDS):
        super().__init__("sync_log_cleanup", interval_seconds=interval_seconds, run_on_start=False)
        self.engine = engine

    async def process(self) -> None:
        await asyncio.to_thread(cleanup_sync_logs, self.engine, SYNC_LOG_RETENTION_DAYS)
