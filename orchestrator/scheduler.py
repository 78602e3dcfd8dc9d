"""
Orchestrator - Periodic Refresher.

============================================================
RESPONSIBILITY
============================================================
Keeps market and news caches warm on a fixed interval.

- One background asyncio task
- A failed cycle is logged and the loop continues
- Overlapping refreshes coalesce through the coordinator's
  single flight
- stop() wakes the loop immediately instead of waiting out
  the interval

============================================================
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from dashboard.services import RadarService


logger = logging.getLogger(__name__)


DEFAULT_INTERVAL_SECONDS = 900.0


class PeriodicRefresher:
    """
    Background refresh loop.

    Usage:
        refresher = PeriodicRefresher(service, interval_seconds=900)
        await refresher.start()
        ...
        await refresher.stop()
    """

    def __init__(self, service: RadarService, interval_seconds: float = DEFAULT_INTERVAL_SECONDS) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._service = service
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

        self._cycles = 0
        self._failures = 0
        self._last_error: Optional[str] = None
        self._last_run_at: Optional[datetime] = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """Run one refresh cycle; returns True on success."""
        self._cycles += 1
        self._last_run_at = datetime.now(timezone.utc)
        try:
            counts = await self._service.refresh_all()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._failures += 1
            self._last_error = str(e)
            logger.error(f"Refresh cycle {self._cycles} failed: {e}")
            return False

        logger.info(f"Refresh cycle {self._cycles}: {counts['assets']} assets, {counts['news']} headlines")
        return True

    async def start(self) -> None:
        """Start the loop; the first cycle runs immediately."""
        if self.is_running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Started periodic refresh (interval={self._interval}s)")

    async def stop(self) -> None:
        """Stop the loop and wait for it to finish."""
        if self._task is None:
            return
        self._stop_event.set()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Stopped periodic refresh")

    async def wait(self) -> None:
        """Block until the loop exits."""
        if self._task is not None:
            await self._task

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue

    def get_stats(self) -> dict[str, Any]:
        return {
            "running": self.is_running,
            "interval_seconds": self._interval,
            "cycles": self._cycles,
            "failures": self._failures,
            "last_error": self._last_error,
            "last_run_at": self._last_run_at.isoformat() if self._last_run_at else None,
        }
