"""The study room: background, soundscape, timer and session log together."""

from __future__ import annotations

import logging
from typing import Any

from .config import PlayerOptions
from .core.base import AudioOutput, Scheduler
from .core.registry import registry
from .errors import PlaybackError
from .playback.reconciler import PlaybackReconciler
from .sources.catalog import DEFAULT_BACKGROUND, SILENCE_ID
from .storage import MemStorage
from .timer import StudyTimer

logger = logging.getLogger(__name__)


class StudyRoom:
    """Glue between the player, the timer and storage.

    Must be driven from the scheduler's thread, like the player it owns.
    """

    def __init__(
        self,
        output: AudioOutput,
        scheduler: Scheduler,
        storage: MemStorage | None = None,
        options: PlayerOptions | None = None,
        minutes: int = 25,
    ) -> None:
        self.storage = storage or MemStorage()
        self.player = PlaybackReconciler(output, scheduler, options)
        self.timer = StudyTimer(scheduler, minutes=minutes, on_complete=self._record_session)
        self.background = DEFAULT_BACKGROUND
        self.soundscape = SILENCE_ID
        self.last_error: str | None = None
        self.completed_sessions = 0

    def _player_error(self, error: PlaybackError) -> None:
        self.last_error = str(error)

    def select_background(self, identifier: str) -> None:
        self.background = registry.background(identifier).id

    def select_soundscape(self, identifier: str) -> None:
        """Switch soundscape, keeping the current play/pause state.

        Picking silence stops playback altogether.
        """

        url = registry.soundscape(identifier).url
        self.soundscape = identifier
        self.player.set_sound(url)
        if url and self.player.intent.should_be_playing:
            self.player.play(url, self._player_error)
        elif not url:
            self.player.stop()

    def play(self, url: str) -> None:
        self.last_error = None
        self.player.play(url, self._player_error)

    def toggle_sound(self, url: str | None = None) -> None:
        self.last_error = None
        self.player.toggle(url, self._player_error)

    def _record_session(self, minutes: int) -> None:
        self.storage.create_session(
            {"duration": minutes, "background": self.background, "soundscape": self.soundscape}
        )
        self.completed_sessions += 1

    def close(self) -> None:
        self.timer.reset()
        self.player.close()

    def to_dict(self) -> dict[str, Any]:
        return {
            "background": self.background,
            "soundscape": self.soundscape,
            "player": self.player.status().to_dict(),
            "output": self.player.audio.to_dict(),
            "timer": self.timer.to_dict(),
            "last_error": self.last_error,
            "completed_sessions": self.completed_sessions,
        }


__all__ = ["StudyRoom"]
