"""Session identifier allocation."""
from __future__ import annotations

import threading
import time
from typing import Callable, Optional

SESSION_ID_PREFIX = "run_"


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class SessionIdAllocator:
    """Hands out ``run_<epoch ms>`` ids that are strictly increasing per process.

    Two requests landing in the same millisecond (or a wall clock stepping
    backwards) get ``last + 1`` instead of a duplicate.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None, prefix: str = SESSION_ID_PREFIX) -> None:
        self._clock = clock or _epoch_millis
        self._prefix = prefix
        self._last = 0
        self._lock = threading.Lock()

    def allocate(self) -> str:
        with self._lock:
            candidate = self._clock()
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
        return f"{self._prefix}{candidate}"
