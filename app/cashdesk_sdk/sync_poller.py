from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Generic, TypeVar

from .exceptions import ApiError, RequestCancelledError
from .staleness import StaleValue

T = TypeVar("T")

DEFAULT_POLL_INTERVAL_SECONDS = 30.0

logger = logging.getLogger("cashdesk_sdk.sync")


class SyncPoller(Generic[T]):
    """Re-fetches a value on a fixed interval and publishes it as a ``StaleValue``.

    A failed poll never raises to the caller: the last good value is kept,
    marked stale and paired with the error. A poll that was already running
    when ``stop()`` was called is discarded when it returns.
    """

    def __init__(
        self,
        fetch: Callable[[], T],
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        stale_after_seconds: float | None = None,
        on_update: Callable[[StaleValue[T]], None] | None = None,
        now: Callable[[], datetime] | None = None,
        name: str = "cash-drawer",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.fetch = fetch
        self.interval_seconds = interval_seconds
        self.stale_after_seconds = stale_after_seconds if stale_after_seconds is not None else interval_seconds * 3
        self.on_update = on_update
        self.name = name
        self._now = now or datetime.utcnow
        self._state: StaleValue[T] = StaleValue()
        self._generation = 0
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def current(self) -> StaleValue[T]:
        with self._lock:
            state = self._state
        return state.aged(self._now(), self.stale_after_seconds)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def refresh(self) -> StaleValue[T] | None:
        """Run one poll now. Returns the published state, or None if the result was discarded."""
        with self._lock:
            generation = self._generation
        try:
            value = self.fetch()
        except RequestCancelledError:
            return None
        except Exception as exc:
            return self._publish_failure(generation, exc)
        return self._publish(generation, StaleValue.fresh(value, self._now()))

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=f"sync-poller-{self.name}", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        with self._lock:
            self._generation += 1
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and timeout is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.refresh()
            if self._stop_event.wait(self.interval_seconds):
                break

    def _publish_failure(self, generation: int, exc: Exception) -> StaleValue[T] | None:
        code = exc.code if isinstance(exc, ApiError) else type(exc).__name__
        logger.warning("Poll failed for %s: %s (%s)", self.name, code, exc)
        with self._lock:
            if generation != self._generation:
                return None
            self._state = self._state.failed(exc)
            state = self._state
        self._notify(state)
        return state

    def _publish(self, generation: int, state: StaleValue[T]) -> StaleValue[T] | None:
        with self._lock:
            if generation != self._generation:
                return None
            self._state = state
        self._notify(state)
        return state

    def _notify(self, state: StaleValue[T]) -> None:
        if self.on_update is not None:
            self.on_update(state)
