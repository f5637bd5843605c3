"""Headless audio output used by the server-side player.

``SimulatedAudioOutput`` behaves like a browser audio element without making
any sound: loads settle after a fixed latency, unsupported or missing sources
fail, and playback can be held back by an autoplay lock until the user
"unlocks" audio.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Callable
from urllib.parse import unquote, urlparse

from ..core.base import AudioOutput, Scheduler, Ticker, clamp_volume
from ..errors import LoadError, PlayError

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = {"http", "https", "file", "data"}


def source_problem(url: str) -> str | None:
    """Return why ``url`` cannot be loaded, or ``None`` when it looks playable."""

    if not url:
        return "No source assigned"
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    # A one-letter scheme is a Windows drive, not a URL.
    if scheme == "file" or len(scheme) <= 1:
        path = Path(unquote(parsed.path)) if scheme == "file" else Path(url)
        if not path.is_file():
            return f"Audio file not found: {path}"
        return None
    if scheme not in SUPPORTED_SCHEMES:
        return f"Unsupported source scheme '{scheme}'"
    if scheme != "data" and not parsed.netloc:
        return f"Malformed source URL: {url}"
    return None


class SimulatedAudioOutput(AudioOutput):
    """An :class:`AudioOutput` that tracks state but renders nothing."""

    def __init__(
        self,
        scheduler: Scheduler,
        latency_ms: float = 150.0,
        autoplay_blocked: bool = False,
        duration_s: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._scheduler = scheduler
        self.latency_ms = float(latency_ms)
        self.autoplay_blocked = autoplay_blocked
        self.duration_s = duration_s
        self._clock = clock
        self._src = ""
        self._volume = 1.0
        self._position = 0.0
        self._started_at: float | None = None
        self._ready = False
        self._load_future: Future | None = None
        self._load_ticker: Ticker | None = None

    # --- Properties --------------------------------------------------
    @property
    def src(self) -> str:
        return self._src

    @src.setter
    def src(self, url: str) -> None:
        self._abort_load()
        self._halt()
        self._src = url or ""
        self._position = 0.0
        self._ready = False

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = clamp_volume(value)

    @property
    def current_time(self) -> float:
        position = self._position
        if self._started_at is not None:
            position += self._clock() - self._started_at
        if self.duration_s:
            if self.loop:
                position %= self.duration_s
            else:
                position = min(position, self.duration_s)
        return position

    @current_time.setter
    def current_time(self, value: float) -> None:
        self._position = max(0.0, float(value))
        if self._started_at is not None:
            self._started_at = self._clock()

    @property
    def paused(self) -> bool:
        return self._started_at is None

    @property
    def ready(self) -> bool:
        return self._ready

    # --- Operations --------------------------------------------------
    def load(self) -> Future:
        self._abort_load()
        self._halt()
        self._ready = False
        future: Future = Future()
        self._load_future = future
        problem = source_problem(self._src)
        error = LoadError(problem, self._src) if problem else None
        self._load_ticker = self._scheduler.call_later(
            self.latency_ms, lambda: self._settle_load(future, error)
        )
        return future

    def _settle_load(self, future: Future, error: LoadError | None) -> None:
        if future is self._load_future:
            self._load_future = None
            self._load_ticker = None
        if future.done():
            return
        if error is not None:
            logger.debug("Load failed: %s", error)
            future.set_exception(error)
            return
        self._ready = True
        future.set_result(self._src)

    def play(self) -> Future:
        future: Future = Future()
        if not self._ready:
            error = PlayError("No source is ready to play", self._src)
        elif self.autoplay_blocked:
            error = PlayError("Playback blocked until the user interacts with the page", self._src)
        else:
            error = None
            if self._started_at is None:
                self._started_at = self._clock()

        def settle() -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(None)

        self._scheduler.call_soon(settle)
        return future

    def pause(self) -> None:
        self._halt()

    def unlock(self) -> None:
        """Lift the autoplay lock, as a user gesture would."""

        if self.autoplay_blocked:
            logger.info("Audio output unlocked")
        self.autoplay_blocked = False

    # --- Internals ---------------------------------------------------
    def _halt(self) -> None:
        if self._started_at is not None:
            self._position = self.current_time
            self._started_at = None

    def _abort_load(self) -> None:
        if self._load_ticker is not None:
            self._load_ticker.cancel()
            self._load_ticker = None
        if self._load_future is not None:
            self._load_future.cancel()
            self._load_future = None


__all__ = ["SimulatedAudioOutput", "SUPPORTED_SCHEMES", "source_problem"]
