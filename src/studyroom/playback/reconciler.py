"""Reconcile desired playback intent against a single looping audio output.

Callers only express intent (``play``, ``pause``, ``resume``, ``stop``,
``toggle``, ``set_sound``).  After every intent change and after every event
reported by the output, :meth:`PlaybackReconciler.reconcile` compares what
should be happening with what is happening and issues the load, fade, play
and pause operations needed to close the gap.

Every playback or stop sequence is stamped with a sequence number.  Starting
a new one cancels the pending load/play future of the previous sequence, and
any late completion carrying an old number is ignored, so a superseded
sequence can never act on the output again.

All methods must be called from the scheduler's thread.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import asdict, dataclass
from typing import Callable

from ..config import PlayerOptions
from ..core.base import AudioOutput, Scheduler, Ticker
from ..errors import LoadError, PlaybackError, PlayError
from .fade import VolumeFade

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[PlaybackError], None]


@dataclass(slots=True)
class PlaybackIntent:
    desired_url: str = ""
    should_be_playing: bool = False


@dataclass(slots=True, frozen=True)
class PlaybackStatus:
    """Snapshot handed to callers.

    ``current_url`` mirrors the desired URL so a freshly picked sound shows as
    selected straight away; ``loaded_url`` is the URL actually playing.
    """

    is_playing: bool
    is_loading: bool
    current_url: str
    loaded_url: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


class PlaybackReconciler:
    """Own one looping output and drive it toward the desired intent."""

    def __init__(
        self,
        output: AudioOutput,
        scheduler: Scheduler,
        options: PlayerOptions | None = None,
    ) -> None:
        self.options = options or PlayerOptions()
        self._output = output
        self._output.loop = True
        self._output.volume = 0.0
        self._scheduler = scheduler
        self._intent = PlaybackIntent()
        self._on_error: ErrorCallback | None = None
        self._is_playing = False
        self._is_loading = False
        self._loaded_url = ""
        self._pending_url = ""
        self._failed_url = ""
        self._stopping = False
        self._sequence = 0
        self._fade: VolumeFade | None = None
        self._pending: Future | None = None
        self._timeout: Ticker | None = None
        self._closed = False

    @property
    def audio(self) -> AudioOutput:
        return self._output

    @property
    def intent(self) -> PlaybackIntent:
        return PlaybackIntent(self._intent.desired_url, self._intent.should_be_playing)

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def current_url(self) -> str:
        return self._intent.desired_url

    def status(self) -> PlaybackStatus:
        return PlaybackStatus(
            is_playing=self._is_playing,
            is_loading=self._is_loading,
            current_url=self._intent.desired_url,
            loaded_url=self._loaded_url,
        )

    def set_sound(self, url: str) -> None:
        self._intent.desired_url = url or ""
        self._failed_url = ""
        self.reconcile()

    def play(self, url: str, on_error: ErrorCallback | None = None) -> None:
        self._intent.desired_url = url or ""
        self._intent.should_be_playing = True
        self._on_error = on_error
        self._failed_url = ""
        self.reconcile()

    def pause(self) -> None:
        self._intent.should_be_playing = False
        self.reconcile()

    def resume(self) -> None:
        if not self._intent.desired_url:
            return
        self._intent.should_be_playing = True
        self._failed_url = ""
        self.reconcile()

    def stop(self) -> None:
        self._intent.should_be_playing = False
        self._intent.desired_url = ""
        self.reconcile()

    def toggle(self, url: str | None = None, on_error: ErrorCallback | None = None) -> None:
        if self._is_playing:
            self.pause()
        elif url:
            self.play(url, on_error)
        else:
            self.resume()

    def close(self) -> None:
        """Cancel pending work and release the output.  Intent is kept."""

        if self._closed:
            return
        self._closed = True
        self._sequence += 1
        self._cancel_fade()
        self._abandon_pending()
        self._output.pause()
        self._output.src = ""

    def reconcile(self) -> None:
        if self._closed:
            return
        target = self._intent.desired_url
        if self._intent.should_be_playing and target:
            if target == self._failed_url:
                return
            active_url = self._pending_url if self._is_loading else self._loaded_url
            if target != active_url:
                self._start_playback(target)
            elif self._stopping or not (self._is_playing or self._is_loading):
                self._start_playback(target)
        elif not self._stopping and (self._is_playing or self._is_loading):
            self._begin_stop()

    def _start_playback(self, url: str) -> None:
        seq = self._next_sequence()
        logger.debug("Playback sequence %d: %s", seq, url)
        self._stopping = False
        self._pending_url = url
        self._is_loading = True
        if self._is_playing:
            self._fade_to(0.0, self.options.fade_out_ms, lambda: self._switch_after_fade(seq, url))
        else:
            self._cancel_fade()
            self._load(seq, url)

    def _switch_after_fade(self, seq: int, url: str) -> None:
        if seq != self._sequence:
            return
        self._output.pause()
        self._is_playing = False
        self._load(seq, url)

    def _load(self, seq: int, url: str) -> None:
        self._output.src = url
        self._output.volume = 0.0
        future = self._output.load()
        self._pending = future
        if self.options.load_timeout_ms is not None:
            self._timeout = self._scheduler.call_later(
                self.options.load_timeout_ms, lambda: self._load_timed_out(seq, url, future)
            )
        future.add_done_callback(lambda done: self._loaded(seq, url, done))

    def _loaded(self, seq: int, url: str, future: Future) -> None:
        if seq != self._sequence or future.cancelled():
            return
        self._clear_timeout()
        error = future.exception()
        if error is not None:
            if not isinstance(error, PlaybackError):
                error = LoadError(f"Failed to load audio: {error}", url)
            self._fail(url, error)
            return
        started = self._output.play()
        self._pending = started
        started.add_done_callback(lambda done: self._played(seq, url, done))

    def _played(self, seq: int, url: str, future: Future) -> None:
        if seq != self._sequence or future.cancelled():
            return
        self._pending = None
        error = future.exception()
        if error is not None:
            if not isinstance(error, PlaybackError):
                error = PlayError(f"Failed to start playback: {error}", url)
            self._fail(url, error)
            return
        self._loaded_url = url
        self._is_playing = True
        self._fade_to(self.options.volume, self.options.fade_in_ms, lambda: self._faded_in(seq))
        self.reconcile()

    def _faded_in(self, seq: int) -> None:
        if seq != self._sequence:
            return
        self._is_loading = False
        self._pending_url = ""
        self.reconcile()

    def _load_timed_out(self, seq: int, url: str, future: Future) -> None:
        self._timeout = None
        if seq != self._sequence or future.done():
            return
        future.cancel()
        self._fail(url, LoadError(f"Timed out loading {url}", url))

    def _fail(self, url: str, error: PlaybackError) -> None:
        logger.warning("Playback of %s failed: %s", url, error)
        self._pending = None
        self._is_loading = False
        self._is_playing = False
        self._pending_url = ""
        self._loaded_url = ""
        self._failed_url = url
        if self._on_error is not None:
            try:
                self._on_error(error)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Playback error callback raised")
        self.reconcile()

    def _begin_stop(self) -> None:
        seq = self._next_sequence()
        logger.debug("Stop sequence %d", seq)
        self._stopping = True
        self._fade_to(0.0, self.options.fade_out_ms, lambda: self._stopped(seq))

    def _stopped(self, seq: int) -> None:
        if seq != self._sequence:
            return
        self._output.pause()
        self._output.current_time = 0.0
        self._is_playing = False
        self._is_loading = False
        self._loaded_url = ""
        self._pending_url = ""
        self._stopping = False
        self.reconcile()

    def _next_sequence(self) -> int:
        self._sequence += 1
        self._abandon_pending()
        return self._sequence

    def _fade_to(self, target: float, duration_ms: float, on_complete: Callable[[], None]) -> None:
        self._cancel_fade()
        self._fade = VolumeFade(self._output, self._scheduler, target, duration_ms, on_complete)
        self._fade.start()

    def _cancel_fade(self) -> None:
        if self._fade is not None:
            self._fade.cancel()
            self._fade = None

    def _clear_timeout(self) -> None:
        if self._timeout is not None:
            self._timeout.cancel()
            self._timeout = None

    def _abandon_pending(self) -> None:
        self._clear_timeout()
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None


__all__ = ["PlaybackIntent", "PlaybackReconciler", "PlaybackStatus", "ErrorCallback"]
