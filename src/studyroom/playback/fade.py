"""Linear volume ramps stepped by a scheduler."""

from __future__ import annotations

from typing import Callable

import numpy as np

from ..core.base import AudioOutput, Scheduler, Ticker

FADE_STEPS = 30


def fade_levels(start: float, target: float, steps: int = FADE_STEPS) -> np.ndarray:
    """Volume for every step of a linear ramp, clamped to ``[0, 1]``.

    The last entry is the exact target rather than the interpolated value.
    """

    if steps < 1:
        raise ValueError("a fade needs at least one step")
    progress = np.arange(1, steps + 1, dtype=np.float64) / steps
    levels = np.clip(start + (target - start) * progress, 0.0, 1.0)
    levels[-1] = target
    return levels


class VolumeFade:
    """One in-flight fade on an output.

    Owners must cancel a fade before starting another on the same output;
    :class:`~studyroom.playback.reconciler.PlaybackReconciler` does this.
    """

    def __init__(
        self,
        output: AudioOutput,
        scheduler: Scheduler,
        target_volume: float,
        duration_ms: float,
        on_complete: Callable[[], None] | None = None,
        steps: int = FADE_STEPS,
    ) -> None:
        self.output = output
        self.scheduler = scheduler
        self.start_volume = float(output.volume)
        self.target_volume = float(target_volume)
        self.total_duration_ms = float(duration_ms)
        self.total_steps = steps
        self.step_index = 0
        self._levels = fade_levels(self.start_volume, self.target_volume, steps)
        self._on_complete = on_complete
        self._ticker: Ticker | None = None
        self._finished = False

    @property
    def active(self) -> bool:
        return self._ticker is not None and self._ticker.active

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self) -> "VolumeFade":
        if self.total_duration_ms <= 0:
            self.step_index = self.total_steps
            self._finish()
            return self
        self._ticker = self.scheduler.call_every(self.total_duration_ms / self.total_steps, self._step)
        return self

    def cancel(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _step(self) -> None:
        self.step_index += 1
        if self.step_index >= self.total_steps:
            self.cancel()
            self._finish()
            return
        self.output.volume = float(self._levels[self.step_index - 1])

    def _finish(self) -> None:
        self.output.volume = self.target_volume
        self._finished = True
        if self._on_complete is not None:
            self._on_complete()


__all__ = ["FADE_STEPS", "VolumeFade", "fade_levels"]
