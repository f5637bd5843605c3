"""Exception hierarchy shared by the player, storage and HTTP layers."""

from __future__ import annotations

from typing import Any


class StudyRoomError(Exception):
    """Base class for every error raised by the study room package."""


class PlaybackError(StudyRoomError):
    """Raised (or delivered to ``on_error``) when audio cannot be played."""

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class LoadError(PlaybackError):
    """The audio output could not fetch or decode a source."""


class PlayError(PlaybackError):
    """The output refused to start playback, typically an autoplay block."""


class ConfigError(StudyRoomError, ValueError):
    """An option value is outside its accepted range."""


class ValidationError(StudyRoomError, ValueError):
    """A record payload failed schema validation."""

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


__all__ = [
    "StudyRoomError",
    "PlaybackError",
    "LoadError",
    "PlayError",
    "ConfigError",
    "ValidationError",
]
