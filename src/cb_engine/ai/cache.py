from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    key: str
    value: T
    expires_at: float


class TTLCache(Generic[T]):
    """In-memory cache with per-entry expiry; expired entries never hit."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[T]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: T, ttl_s: float) -> None:
        if ttl_s <= 0:
            return
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl_s)

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info("[cache][sweep] removed=%d", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CacheSweeper:
    """
    Daemon thread that calls ``cache.sweep()`` every ``interval_s`` seconds,
    then each callable in ``also_sweep`` (e.g. a rate limiter's ``sweep``).
    """

    def __init__(
        self,
        cache: TTLCache,
        interval_s: float = 3600.0,
        also_sweep: Sequence[Callable[[], int]] = (),
    ):
        self.cache = cache
        self.interval_s = interval_s
        self.also_sweep = tuple(also_sweep)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="cache-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def sweep_once(self) -> int:
        """Run every sweep; returns the total number of entries dropped."""
        dropped = 0
        for sweep in (self.cache.sweep,) + self.also_sweep:
            try:
                dropped += sweep()
            except Exception:
                logger.exception("[cache][sweep] failed sweep=%s", getattr(sweep, "__qualname__", sweep))
        return dropped

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            self.sweep_once()


class InflightRequests(Generic[T]):
    """
    At most one running call per key. Callers arriving while a call for the
    same key is running wait on its Future and get the same value or the same
    exception.
    """

    def __init__(self) -> None:
        self._pending: Dict[str, Future] = {}
        self._waiters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def run(self, key: str, fn: Callable[[], T], timeout: Optional[float] = None) -> T:
        with self._lock:
            future = self._pending.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._pending[key] = future
                self._waiters[key] = 1
            else:
                self._waiters[key] += 1

        if not leader:
            logger.debug("[inflight][join] key=%s", key)
            return future.result(timeout=timeout)

        try:
            value = fn()
        except BaseException as exc:
            self._release(key)
            future.set_exception(exc)
            raise
        self._release(key)
        future.set_result(value)
        return value

    def _release(self, key: str) -> None:
        with self._lock:
            self._pending.pop(key, None)
            self._waiters.pop(key, None)

    def waiters(self, key: str) -> int:
        with self._lock:
            return self._waiters.get(key, 0)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
