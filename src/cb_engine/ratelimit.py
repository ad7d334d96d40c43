from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from cb_engine.errors import ClientRateLimited

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """
    Per-caller limit over a trailing window.

    The ``limit``-th request inside ``window_s`` is allowed; the next one is
    rejected. Rejected requests do not extend the window.
    """

    def __init__(
        self,
        limit: int = 20,
        window_s: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_s = window_s
        self._clock = clock
        self._windows: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, window: Deque[float], now: float) -> None:
        cutoff = now - self.window_s
        while window and window[0] <= cutoff:
            window.popleft()

    def check(self, caller_id: str) -> None:
        if self.limit <= 0:
            return
        now = self._clock()
        with self._lock:
            window = self._windows.setdefault(caller_id, deque())
            self._prune(window, now)
            if len(window) >= self.limit:
                retry_after = max(0.0, window[0] + self.window_s - now)
                logger.warning(
                    "[ratelimit][reject] caller=%s count=%d limit=%d retry_after_s=%.1f",
                    caller_id,
                    len(window),
                    self.limit,
                    retry_after,
                )
                raise ClientRateLimited(caller_id, self.limit, retry_after)
            window.append(now)

    def allow(self, caller_id: str) -> bool:
        try:
            self.check(caller_id)
        except ClientRateLimited:
            return False
        return True

    def sweep(self) -> int:
        """Drop callers whose windows are empty."""
        now = self._clock()
        with self._lock:
            idle = []
            for caller_id, window in self._windows.items():
                self._prune(window, now)
                if not window:
                    idle.append(caller_id)
            for caller_id in idle:
                del self._windows[caller_id]
        return len(idle)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
