"""Fixed-period background trigger for synchronization cycles.

The scheduler owns one daemon thread that calls `job` every
`interval_seconds`. A failing cycle is logged and the next tick tries again;
overlap with manual triggers is prevented by the lock inside the job itself.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional


LOG = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 3600.0


class RegionalSyncScheduler:
    def __init__(
        self,
        job: Callable[[], Any],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        run_on_start: bool = True,
        name: str = "regionais-sync",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.job = job
        self.interval_seconds = float(interval_seconds)
        self.run_on_start = run_on_start
        self.name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.runs = 0
        self.failures = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        LOG.info("Scheduled regional synchronization every %.0f seconds", self.interval_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal the loop to exit and wait up to `timeout` for the current cycle.

        If the cycle outlives `timeout` the thread stays referenced, so
        `is_running` keeps reporting it and `start()` will not spawn a second loop.
        """
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                LOG.warning("Regional synchronization still running after stop; thread left to finish")
                return
        self._thread = None

    def run_once(self) -> None:
        """Execute one tick; exceptions from the job are logged, not raised."""
        LOG.info("Executing scheduled regional synchronization")
        self.runs += 1
        try:
            self.job()
        except Exception:
            self.failures += 1
            LOG.exception("Scheduled regional synchronization failed; retrying at next tick")

    def _loop(self) -> None:
        if self.run_on_start and not self._stop.is_set():
            self.run_once()
        while not self._stop.wait(self.interval_seconds):
            self.run_once()


__all__ = ["RegionalSyncScheduler", "DEFAULT_INTERVAL_SECONDS"]
