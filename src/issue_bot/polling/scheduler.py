"""
Polling scheduler for the Issue Bot.

This module runs the repository monitor at a fixed rate. Cycles never
overlap: a cycle that overruns the interval delays the next one.
"""

import asyncio
from datetime import datetime, timezone

import structlog

from .monitor import RepositoryMonitor

logger = structlog.get_logger(__name__)


class PollingScheduler:
    """Runs monitoring cycles on a fixed interval."""

    def __init__(self, monitor: RepositoryMonitor, interval_seconds: float):
        """
        Initialize the polling scheduler.

        Args:
            monitor: Monitor whose cycle is run
            interval_seconds: Time between the starts of consecutive cycles
        """
        self.monitor = monitor
        self.interval_seconds = interval_seconds
        self.is_running_flag = False
        self.polling_task: asyncio.Task[None] | None = None
        self.last_cycle_started: datetime | None = None
        self.last_cycle_completed: datetime | None = None
        self._lock = asyncio.Lock()

    def is_running(self) -> bool:
        """Check if polling is currently active."""
        return self.is_running_flag

    async def run_once(self) -> None:
        """Run a single monitoring cycle, waiting for any cycle in progress."""
        async with self._lock:
            self.last_cycle_started = datetime.now(timezone.utc)
            logger.info(
                "Polling cycle started", timestamp=self.last_cycle_started.isoformat()
            )
            await self.monitor.monitor()
            self.last_cycle_completed = datetime.now(timezone.utc)
            logger.info(
                "Polling cycle completed",
                duration_seconds=(
                    self.last_cycle_completed - self.last_cycle_started
                ).total_seconds(),
            )

    def start(self) -> None:
        """Start polling in a background task."""
        if self.is_running_flag:
            logger.warning("Polling already running")
            return

        self.is_running_flag = True
        logger.info("Starting polling", interval_seconds=self.interval_seconds)
        self.polling_task = asyncio.create_task(self._polling_loop())

    async def stop(self) -> None:
        """Stop polling, cancelling any cycle in progress."""
        if not self.is_running_flag:
            return

        logger.info("Stopping polling")
        self.is_running_flag = False

        if self.polling_task and not self.polling_task.done():
            self.polling_task.cancel()
            try:
                await self.polling_task
            except asyncio.CancelledError:
                pass

    async def _polling_loop(self) -> None:
        """Main polling loop."""
        loop = asyncio.get_running_loop()
        while self.is_running_flag:
            cycle_start = loop.time()
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Error in polling cycle", error=str(e), exc_info=True)

            elapsed = loop.time() - cycle_start
            await asyncio.sleep(max(0.0, self.interval_seconds - elapsed))
