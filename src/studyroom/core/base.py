"""Core abstract interfaces for audio outputs and schedulers."""

from __future__ import annotations

import abc
from concurrent.futures import Future
from typing import Callable


class Ticker(abc.ABC):
    """Handle for a delayed or periodic callback."""

    @abc.abstractmethod
    def cancel(self) -> None:
        """Stop the callback from firing again.  Safe to call repeatedly."""

    @property
    @abc.abstractmethod
    def active(self) -> bool:
        """``True`` while the callback may still fire."""


class Scheduler(abc.ABC):
    """Single logical thread on which every player callback runs."""

    @abc.abstractmethod
    def call_soon(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on the scheduler thread as soon as possible."""

    @abc.abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Ticker:
        """Run ``callback`` once after ``delay_ms`` milliseconds."""

    @abc.abstractmethod
    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> Ticker:
        """Run ``callback`` every ``interval_ms`` milliseconds until cancelled."""

    def close(self) -> None:
        """Release any threads owned by the scheduler."""


class AudioOutput(abc.ABC):
    """A single audio element: one source, one volume, one play head.

    ``load`` and ``play`` return futures that complete at most once.  A
    failed load completes with :class:`~studyroom.errors.LoadError`, a
    refused play with :class:`~studyroom.errors.PlayError`.
    """

    loop: bool = False

    @property
    @abc.abstractmethod
    def src(self) -> str:
        """URL currently assigned to the output (empty when released)."""

    @src.setter
    @abc.abstractmethod
    def src(self, url: str) -> None: ...

    @property
    @abc.abstractmethod
    def volume(self) -> float: ...

    @volume.setter
    @abc.abstractmethod
    def volume(self, value: float) -> None: ...

    @property
    @abc.abstractmethod
    def current_time(self) -> float:
        """Play head position in seconds."""

    @current_time.setter
    @abc.abstractmethod
    def current_time(self, value: float) -> None: ...

    @property
    @abc.abstractmethod
    def paused(self) -> bool: ...

    @abc.abstractmethod
    def load(self) -> Future:
        """Start fetching ``src``; the future resolves when it can play."""

    @abc.abstractmethod
    def play(self) -> Future:
        """Start playback; the future resolves once audio is running."""

    @abc.abstractmethod
    def pause(self) -> None: ...

    def to_dict(self) -> dict[str, object]:
        return {
            "type": self.__class__.__name__,
            "src": self.src,
            "volume": round(self.volume, 4),
            "current_time": round(self.current_time, 3),
            "paused": self.paused,
            "loop": self.loop,
        }


def clamp_volume(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


__all__ = ["AudioOutput", "Scheduler", "Ticker", "clamp_volume"]
