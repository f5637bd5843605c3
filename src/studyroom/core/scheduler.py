"""Scheduler implementations: a worker thread and a virtual clock."""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from typing import Callable

from .base import Scheduler, Ticker

logger = logging.getLogger(__name__)

# Absorbs float drift when periodic due times are summed.
_EPSILON_MS = 1e-6


class _Entry(Ticker):
    __slots__ = ("callback", "interval_ms", "cancelled", "fired")

    def __init__(self, callback: Callable[[], None], interval_ms: float | None) -> None:
        self.callback = callback
        self.interval_ms = interval_ms
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        if self.cancelled:
            return False
        return self.interval_ms is not None or not self.fired

    @property
    def periodic(self) -> bool:
        return self.interval_ms is not None


def _check_interval(interval_ms: float) -> float:
    interval = float(interval_ms)
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval_ms!r}")
    return interval


class ManualScheduler(Scheduler):
    """Deterministic scheduler whose clock only moves when told to.

    Callbacks run inside :meth:`advance` on the calling thread, in due-time
    order.  Useful for driving the player step by step.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._counter = itertools.count()
        self._heap: list[tuple[float, int, _Entry]] = []
        self._entries: list[_Entry] = []

    @property
    def now(self) -> float:
        return self._now

    def _push(self, due: float, entry: _Entry) -> None:
        heapq.heappush(self._heap, (due, next(self._counter), entry))

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._push(self._now, _Entry(callback, None))

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Ticker:
        entry = _Entry(callback, None)
        self._push(self._now + max(0.0, float(delay_ms)), entry)
        return entry

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> Ticker:
        entry = _Entry(callback, _check_interval(interval_ms))
        self._entries.append(entry)
        self._push(self._now + entry.interval_ms, entry)
        return entry

    def advance(self, ms: float) -> None:
        """Move the clock forward by ``ms`` and fire everything that falls due."""

        target = self._now + max(0.0, float(ms))
        while self._heap and self._heap[0][0] <= target + _EPSILON_MS:
            due, _, entry = heapq.heappop(self._heap)
            if entry.cancelled:
                continue
            self._now = max(self._now, due)
            if not entry.periodic:
                entry.fired = True
            entry.callback()
            if entry.periodic and not entry.cancelled:
                self._push(due + entry.interval_ms, entry)
        self._now = max(self._now, target)
        self._entries = [entry for entry in self._entries if entry.active]

    def run_pending(self) -> None:
        """Fire callbacks that are already due without moving the clock."""

        self.advance(0)

    def active_tickers(self) -> int:
        """Number of periodic callbacks that have not been cancelled."""

        self._entries = [entry for entry in self._entries if entry.active]
        return len(self._entries)


class ThreadedScheduler(Scheduler):
    """Run callbacks on one daemon worker thread, ordered by due time."""

    def __init__(self, name: str = "studyroom-scheduler") -> None:
        self._condition = threading.Condition()
        self._counter = itertools.count()
        self._heap: list[tuple[float, int, _Entry]] = []
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @staticmethod
    def _clock() -> float:
        return time.monotonic() * 1000.0

    def _push(self, due: float, entry: _Entry) -> None:
        with self._condition:
            if self._closed:
                logger.debug("Scheduler closed; dropping callback %r", entry.callback)
                entry.cancel()
                return
            heapq.heappush(self._heap, (due, next(self._counter), entry))
            self._condition.notify()

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._push(self._clock(), _Entry(callback, None))

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Ticker:
        entry = _Entry(callback, None)
        self._push(self._clock() + max(0.0, float(delay_ms)), entry)
        return entry

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> Ticker:
        entry = _Entry(callback, _check_interval(interval_ms))
        self._push(self._clock() + entry.interval_ms, entry)
        return entry

    def _next_due(self) -> tuple[float, _Entry] | None:
        with self._condition:
            while not self._closed:
                if not self._heap:
                    self._condition.wait()
                    continue
                due, _, entry = self._heap[0]
                delay = due - self._clock()
                if delay <= 0:
                    heapq.heappop(self._heap)
                    return due, entry
                self._condition.wait(delay / 1000.0)
        return None

    def _run(self) -> None:
        while True:
            item = self._next_due()
            if item is None:
                return
            due, entry = item
            if entry.cancelled:
                continue
            if not entry.periodic:
                entry.fired = True
            try:
                entry.callback()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Scheduled callback %r failed", entry.callback)
            if entry.periodic and not entry.cancelled:
                self._push(due + entry.interval_ms, entry)

    def close(self) -> None:
        with self._condition:
            self._closed = True
            self._heap.clear()
            self._condition.notify_all()
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout=2)


__all__ = ["ManualScheduler", "ThreadedScheduler"]
