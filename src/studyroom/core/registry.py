"""Central registry for the soundscapes and backgrounds a room can use."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable


@dataclass(frozen=True, slots=True)
class Soundscape:
    """A looping ambient track.  An empty ``url`` means silence."""

    id: str
    name: str
    url: str = ""
    icon: str = ""

    @property
    def silent(self) -> bool:
        return not self.url

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Background:
    id: str
    name: str
    image: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class _Registry:
    """Simple pluggable registry keyed by identifier, in registration order."""

    def __init__(self) -> None:
        self._soundscapes: Dict[str, Soundscape] = {}
        self._backgrounds: Dict[str, Background] = {}

    def register_soundscape(self, soundscape: Soundscape) -> Soundscape:
        self._soundscapes[soundscape.id] = soundscape
        return soundscape

    def register_background(self, background: Background) -> Background:
        self._backgrounds[background.id] = background
        return background

    def soundscapes(self) -> Iterable[Soundscape]:
        return list(self._soundscapes.values())

    def backgrounds(self) -> Iterable[Background]:
        return list(self._backgrounds.values())

    def soundscape(self, identifier: str) -> Soundscape:
        if identifier not in self._soundscapes:
            raise KeyError(f"Unknown soundscape '{identifier}'")
        return self._soundscapes[identifier]

    def background(self, identifier: str) -> Background:
        if identifier not in self._backgrounds:
            raise KeyError(f"Unknown background '{identifier}'")
        return self._backgrounds[identifier]


registry = _Registry()
