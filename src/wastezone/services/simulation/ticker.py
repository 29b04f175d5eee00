"""Background cadence that drives the simulator."""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class Ticker:
    """Calls ``tick`` every ``interval_seconds`` on a daemon thread until stopped."""

    def __init__(self, tick: Callable[[], object], interval_seconds: float, name: str = "zone-ticker") -> None:
        self._tick = tick
        self.interval_seconds = interval_seconds
        self.name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info("Started %s (every %.1fs)", self.name, self.interval_seconds)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("Stopped %s", self.name)

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self._tick()
            except Exception:
                logger.exception("Tick failed; continuing on next cadence")
