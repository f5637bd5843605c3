"""Countdown timer for a study session."""

from __future__ import annotations

import logging
from typing import Callable

from .core.base import Scheduler, Ticker

logger = logging.getLogger(__name__)

TICK_MS = 1000.0


def format_time(seconds: int) -> str:
    """Render a second count as ``MM:SS``."""

    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class StudyTimer:
    """Count down from ``minutes`` once per second on a scheduler.

    ``on_complete(minutes)`` fires once per session, when the countdown
    reaches zero.  Pausing keeps the remaining time; resetting drops the
    session without completing it.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        minutes: int = 25,
        on_complete: Callable[[int], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._minutes = self._check_minutes(minutes)
        self.on_complete = on_complete
        self._time_left = 0
        self._running = False
        self._session_active = False
        self._ticker: Ticker | None = None

    @staticmethod
    def _check_minutes(minutes: int) -> int:
        message = f"minutes must be a positive whole number, got {minutes!r}"
        if isinstance(minutes, bool):
            raise ValueError(message)
        try:
            whole = int(minutes)
        except (TypeError, ValueError) as exc:
            raise ValueError(message) from exc
        if whole != minutes or whole < 1:
            raise ValueError(message)
        return whole

    @property
    def minutes(self) -> int:
        return self._minutes

    @minutes.setter
    def minutes(self, value: int) -> None:
        if self._running:
            raise ValueError("Cannot change the duration while the timer is running")
        self._minutes = self._check_minutes(value)

    @property
    def time_left(self) -> int:
        return self._time_left

    @property
    def running(self) -> bool:
        return self._running

    @property
    def progress(self) -> float:
        """Percentage of the session already elapsed."""

        if self._time_left <= 0:
            return 0.0
        total = self._minutes * 60
        return (total - self._time_left) / total * 100

    def start(self) -> None:
        if self._time_left == 0:
            self._time_left = self._minutes * 60
            self._session_active = True
            logger.info("Study session started (%d min)", self._minutes)
        self._running = True
        if self._ticker is None:
            self._ticker = self._scheduler.call_every(TICK_MS, self._tick)

    def pause(self) -> None:
        self._running = False
        self._cancel_ticker()

    def reset(self) -> None:
        self.pause()
        self._time_left = 0
        self._session_active = False

    def _tick(self) -> None:
        if self._time_left <= 1:
            self._time_left = 0
            self.pause()
            self._complete()
            return
        self._time_left -= 1

    def _complete(self) -> None:
        if not self._session_active:
            return
        self._session_active = False
        logger.info("Study session complete")
        if self.on_complete is not None:
            self.on_complete(self._minutes)

    def _cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def to_dict(self) -> dict[str, object]:
        return {
            "minutes": self._minutes,
            "time_left": self._time_left,
            "display": format_time(self._time_left),
            "running": self._running,
            "progress": round(self.progress, 2),
        }


__all__ = ["StudyTimer", "format_time", "TICK_MS"]
