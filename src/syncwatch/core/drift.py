"""Periodic passive drift correction."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

logger = logging.getLogger("syncwatch.engine.drift")

DEFAULT_DRIFT_THRESHOLD = 2.0


def exceeds_drift(
    local: float,
    authoritative: float,
    threshold: float = DEFAULT_DRIFT_THRESHOLD,
) -> bool:
    """True when the positions differ by strictly more than *threshold* seconds."""
    return abs(local - authoritative) > threshold


class DriftMonitor:
    """Calls a drift check every *interval* seconds until stopped.

    The check returns True when it corrected the player; corrections are
    counted. Exceptions from the check are logged and the loop keeps going.
    """

    def __init__(self, check: Callable[[], bool], interval: float) -> None:
        self._check = check
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self.corrections = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="drift_monitor")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                if self._check():
                    self.corrections += 1
            except Exception:
                logger.exception("Drift check failed")
