"""Debounced flush timer."""
from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Callable, Optional


def should_flush_now(
    now: datetime,
    last_flush_at: datetime,
    upload_delay: timedelta,
    unwritten: int,
    buffer_size: int,
) -> bool:
    """True when a write must flush immediately instead of re-arming the timer."""
    return now - last_flush_at > upload_delay or unwritten > buffer_size


class FlushScheduler:
    """Holds at most one pending delayed flush.

    Every ``arm()`` and ``cancel()`` bumps a generation counter. The callback
    receives the generation it was armed with, so a caller that serializes on
    its own lock can use ``is_current()`` to drop a timer that fired just
    before being superseded.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return self._generation == generation

    def arm(self, delay_seconds: float, callback: Callable[[int], None]) -> int:
        """Replace any pending timer with one firing ``callback`` after ``delay_seconds``."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            timer = threading.Timer(delay_seconds, self._fire, args=(callback, generation))
            timer.daemon = True
            self._timer = timer
        timer.start()
        return generation

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self, callback: Callable[[int], None], generation: int) -> None:
        with self._lock:
            if self._generation != generation:
                # superseded by a later arm() or cancel()
                return
            self._timer = None
        callback(generation)


__all__ = ["FlushScheduler", "should_flush_now"]
