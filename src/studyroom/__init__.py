"""Study Room - ambient soundscapes, a focus timer and a goal list."""

from .config import PlayerOptions, ServerConfig
from .core.registry import registry
from .core.scheduler import ManualScheduler, ThreadedScheduler
from .errors import ConfigError, LoadError, PlaybackError, PlayError, StudyRoomError, ValidationError
from .playback.output import SimulatedAudioOutput
from .playback.reconciler import PlaybackReconciler, PlaybackStatus
from .room import StudyRoom
from .server import serve
from .storage import MemStorage
from .timer import StudyTimer

__all__ = [
    "ConfigError",
    "LoadError",
    "ManualScheduler",
    "MemStorage",
    "PlayError",
    "PlaybackError",
    "PlaybackReconciler",
    "PlaybackStatus",
    "PlayerOptions",
    "ServerConfig",
    "SimulatedAudioOutput",
    "StudyRoom",
    "StudyRoomError",
    "StudyTimer",
    "ValidationError",
    "registry",
    "serve",
]
