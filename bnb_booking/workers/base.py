"""Base worker class for recurring background jobs."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from bnb_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


class BaseWorker(ABC):
    """
    Abstract base class for background workers.

    Runs process() on a fixed interval inside the event loop. An exception in
    one iteration is logged and the loop waits a full interval before trying
    again.
    """

    def __init__(self, name: str, interval_seconds: int = 60, run_on_start: bool = True):
        """
        Initialize the worker.

        Args:
            name: Worker name for logging
            interval_seconds: How often to run the task
            run_on_start: Run the first iteration immediately instead of after one interval
        """
        self.name = name
        self.interval_seconds = interval_seconds
        self.run_on_start = run_on_start
        self._running = False
        self._task: Optional[asyncio.Task[None]] = None

    @abstractmethod
    async def process(self) -> None:
        """Process one iteration of the background task."""

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("worker_already_running", worker=self.name)
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info("worker_started", worker=self.name, interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Stop the worker gracefully."""
        if not self._running:
            logger.warning("worker_not_running", worker=self.name)
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("worker_stopped", worker=self.name)

    async def _run(self) -> None:
        """Main worker loop."""
        if not self.run_on_start:
            await asyncio.sleep(self.interval_seconds)

        while self._running:
            try:
                start_time = utc_now()
                await self.process()

                duration = (utc_now() - start_time).total_seconds()
                logger.info(
                    "worker_iteration_completed",
                    worker=self.name,
                    duration_seconds=duration,
                )

                sleep_time = max(0.0, self.interval_seconds - duration)
                if sleep_time > 0:
                    await asyncio.sleep(sleep_time)

            except asyncio.CancelledError:
                logger.info("worker_loop_cancelled", worker=self.name)
                break
            except Exception as e:
                logger.exception("worker_iteration_failed", worker=self.name, error=str(e))
                await asyncio.sleep(self.interval_seconds)
