"""Periodic removal of expired counters.

The sweep only bounds memory. Expired windows are already replaced lazily on
the next request, so a late or failed sweep never changes a decision.
"""

import asyncio
from typing import Optional

import structlog

from turnstile.controller import AdmissionController
from turnstile.metrics import metrics

logger = structlog.get_logger()


class Sweeper:
    """Background asyncio task calling ``sweep_expired`` every interval."""

    def __init__(self, controller: AdmissionController, interval_seconds: float = 60.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._controller = controller
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="turnstile-sweeper")
        logger.info("sweeper_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            # Propagate if the caller of stop() is itself being cancelled
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        logger.info("sweeper_stopped")

    def run_once(self) -> int:
        """Run a single sweep, logging instead of raising on failure."""
        try:
            removed = self._controller.sweep_expired()
        except Exception as e:
            metrics.sweep_failures_total.inc()
            logger.exception("sweep_failed", error=str(e))
            return 0
        if removed:
            logger.info("counters_swept", removed=removed)
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.run_once()
