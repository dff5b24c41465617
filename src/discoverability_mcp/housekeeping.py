"""Periodic cleanup of expired quota windows and cache entries."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterable

from .quota import QuotaTracker
from .result_cache import ResultCache

logger = logging.getLogger(__name__)


class Housekeeper:
    """Background task that bounds memory held by shared state.

    Cleanup never changes what callers observe: expired windows and entries
    are already treated as absent. ``start`` and ``stop`` are called from the
    server lifespan.
    """

    def __init__(
        self,
        cache: ResultCache,
        trackers: Iterable[QuotaTracker],
        interval_seconds: float = 600,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.cache = cache
        self.trackers = list(trackers)
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self) -> dict[str, int]:
        """Run one cleanup pass. Returns counts removed per store."""
        removed = {t.policy.value: t.cleanup() for t in self.trackers}
        removed["cache"] = self.cache.purge_expired()
        if any(removed.values()):
            logger.debug("Housekeeping removed %s", removed)
        return removed

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.sweep()
            except Exception:
                logger.warning("Housekeeping sweep failed", exc_info=True)

    def start(self) -> asyncio.Task:
        """Start the periodic task on the running loop (idempotent)."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop(), name="discoverability-housekeeping")
            logger.info("Housekeeping started (every %ss)", self.interval_seconds)
        return self._task

    async def stop(self) -> None:
        """Cancel the periodic task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Housekeeping stopped")
