"""
Shared query counters.

Every virtual user increments these, and the watchdog drains them once per tick.
"""

from __future__ import annotations

import threading


class SharedCounters:
    """
    Completed/timed-out query counters guarded by a single lock.

    An increment lands fully before or fully after any drain; both counters are
    reset together.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._completed = 0
        self._timed_out = 0

    def record_completed(self) -> None:
        with self._lock:
            self._completed += 1

    def record_timeout(self) -> None:
        with self._lock:
            self._timed_out += 1

    def drain(self) -> tuple[int, int]:
        """Atomically read and reset both counters. Returns (completed, timed_out)."""
        with self._lock:
            completed, timed_out = self._completed, self._timed_out
            self._completed = 0
            self._timed_out = 0
        return completed, timed_out

    def snapshot(self) -> tuple[int, int]:
        with self._lock:
            return self._completed, self._timed_out
