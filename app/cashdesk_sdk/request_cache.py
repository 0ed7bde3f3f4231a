from __future__ import annotations

import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


class RequestCoalescer:
    """Short TTL cache plus in-flight de-duplication for read requests.

    Concurrent callers asking for the same key while a fetch is running wait
    for that fetch instead of issuing their own. Failures are handed to every
    waiter and never cached. Each owner (a monitor, a screen) builds its own
    instance; there is no module-level cache.
    """

    def __init__(self, ttl_seconds: float = 5.0, now: Callable[[], float] | None = None) -> None:
        self.ttl_seconds = max(0.0, ttl_seconds)
        self._now = now or time.monotonic
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, Future] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def get_or_fetch(self, key: str, fetch: Callable[[], T]) -> T:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if entry.expires_at > self._now():
                    return entry.value
                self._entries.pop(key, None)
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future
                generation = self._generation
        if not owner:
            return future.result()

        try:
            value = fetch()
        except Exception as exc:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(exc)
            raise
        with self._lock:
            self._in_flight.pop(key, None)
            # A value fetched before an invalidation must not repopulate the cache.
            if generation == self._generation and self.ttl_seconds > 0:
                self._entries[key] = CacheEntry(value=value, expires_at=self._now() + self.ttl_seconds)
        future.set_result(value)
        return value

    def invalidate_prefix(self, prefix: str) -> None:
        with self._lock:
            self._generation += 1
            for key in [key for key in self._entries if key.startswith(prefix)]:
                self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()
