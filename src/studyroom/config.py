"""Option containers for the player and the HTTP server."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class PlayerOptions:
    """Tuning for the playback reconciler.

    ``volume`` is the level reached after a fade-in.  Durations are in
    milliseconds.  ``load_timeout_ms`` is ``None`` by default which leaves a
    hung load pending until the output reports on it.
    """

    volume: float = 0.5
    fade_in_ms: float = 2000.0
    fade_out_ms: float = 500.0
    load_timeout_ms: float | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.volume) <= 1.0:
            raise ConfigError(f"volume must be within [0, 1], got {self.volume!r}")
        if self.fade_in_ms < 0 or self.fade_out_ms < 0:
            raise ConfigError("fade durations must not be negative")
        if self.load_timeout_ms is not None and self.load_timeout_ms <= 0:
            raise ConfigError("load_timeout_ms must be positive when set")
        self.volume = float(self.volume)
        self.fade_in_ms = float(self.fade_in_ms)
        self.fade_out_ms = float(self.fade_out_ms)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PlayerOptions":
        """Build options from loosely named keys (``fadeInDuration`` works too)."""

        aliases = {
            "fadeInDuration": "fade_in_ms",
            "fadeOutDuration": "fade_out_ms",
            "loadTimeout": "load_timeout_ms",
        }
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name not in cls.__dataclass_fields__:
                raise ConfigError(f"Unknown player option '{key}'")
            kwargs[name] = value
        return cls(**kwargs)


@dataclass(slots=True)
class ServerConfig:
    """Where the HTTP server binds and what it serves."""

    host: str = "127.0.0.1"
    port: int = 8000
    ui: Path | None = None
    log_level: str = "INFO"
    player: PlayerOptions | None = None

    def __post_init__(self) -> None:
        if not 0 <= int(self.port) <= 65535:
            raise ConfigError(f"port out of range: {self.port!r}")
        self.port = int(self.port)
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level '{self.log_level}'")
        if self.ui is not None:
            self.ui = Path(self.ui)
        if self.player is None:
            self.player = PlayerOptions()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ServerConfig":
        env = os.environ if environ is None else environ
        ui = env.get("STUDYROOM_UI")
        try:
            port = int(env.get("STUDYROOM_PORT", "8000"))
        except ValueError as exc:
            raise ConfigError("STUDYROOM_PORT must be an integer") from exc
        return cls(
            host=env.get("STUDYROOM_HOST", "127.0.0.1"),
            port=port,
            ui=Path(ui) if ui else None,
            log_level=env.get("STUDYROOM_LOG_LEVEL", "INFO"),
        )


__all__ = ["PlayerOptions", "ServerConfig", "LOG_LEVELS"]
