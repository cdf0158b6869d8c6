"""Worker manager for coordinating background jobs."""

from __future__ import annotations

import asyncio

import structlog
from sqlalchemy.engine import Engine

from bnb_booking.workers.base import BaseWorker
from bnb_booking.workers.calendar_sync import CalendarSyncWorker, SyncLogCleanupWorker

logger = structlog.get_logger(__name__)


class WorkerManager:
    """
    Starts, stops and reports on the application's background workers.

    Example:
        >>> manager = WorkerManager(engine)
        >>> await manager.start_all()
        >>> manager.get_worker_status()
        {'calendar_sync': True, 'sync_log_cleanup': True}
    """

    def __init__(self, engine: Engine):
        self.workers: dict[str, BaseWorker] = {
            "calendar_sync": CalendarSyncWorker(engine),
            "sync_log_cleanup": SyncLogCleanupWorker(engine),
        }

    async def start_all(self) -> None:
        for name, worker in self.workers.items():
            try:
                await worker.start()
            except Exception as e:
                logger.exception("worker_start_failed", worker=name, error=str(e))
        logger.info("workers_started", count=len(self.workers))

    async def stop_all(self) -> None:
        """Stop all workers, logging any that fail to stop cleanly."""
        results = await asyncio.gather(
            *(worker.stop() for worker in self.workers.values()), return_exceptions=True
        )
        for name, result in zip(self.workers.keys(), results):
            if isinstance(result, Exception):
                logger.error("worker_stop_failed", worker=name, error=str(result))
        logger.info("workers_stopped")

    def get_worker(self, name: str) -> BaseWorker:
        return self.workers[name]

    def get_worker_status(self) -> dict[str, bool]:
        return {name: worker.running for name, worker in self.workers.items()}
