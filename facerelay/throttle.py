"""Fixed-interval admission control for pipeline cycles."""

from __future__ import annotations

import logging
import threading
from typing import Optional

LOGGER = logging.getLogger("facerelay.throttle")


class Throttle:
    """Admits at most one cycle per ``interval_ms``.

    Rejected calls leave the state untouched, so the throttle can be polled at
    the capture frame rate. ``reset`` forgets the last admission so the next
    call is admitted immediately.
    """

    def __init__(self, interval_ms: int = 2000) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.interval_ms = interval_ms
        self._last_admitted_ms: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def last_admitted_ms(self) -> Optional[float]:
        return self._last_admitted_ms

    def admit(self, now_ms: float) -> bool:
        with self._lock:
            last = self._last_admitted_ms
            if last is not None and now_ms - last < self.interval_ms:
                return False
            self._last_admitted_ms = now_ms
            return True

    def reset(self) -> None:
        with self._lock:
            self._last_admitted_ms = None
        LOGGER.debug("Throttle re-armed (interval=%dms)", self.interval_ms)
