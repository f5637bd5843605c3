"""Built-in soundscapes and backgrounds."""

from __future__ import annotations

from ..core.registry import Background, Soundscape, registry

SILENCE_ID = "none"

_SOUNDSCAPES = (
    Soundscape("rain", "Rain", "https://cdn.pixabay.com/download/audio/2022/05/13/audio_257112ce8f.mp3", "cloud-rain"),
    Soundscape("waves", "Ocean Waves", "https://cdn.pixabay.com/download/audio/2022/06/07/audio_6b2cfbebf7.mp3", "waves"),
    Soundscape("fire", "Fireplace", "https://cdn.pixabay.com/download/audio/2022/03/10/audio_4dedf2f94a.mp3", "flame"),
    Soundscape("cafe", "Café Ambience", "https://cdn.pixabay.com/download/audio/2022/03/15/audio_c9011bc3f0.mp3", "coffee"),
    Soundscape("forest", "Forest", "https://cdn.pixabay.com/download/audio/2022/05/27/audio_2dff3e0ca0.mp3", "trees"),
    Soundscape("binaural", "Binaural Beats", "https://cdn.pixabay.com/download/audio/2022/10/06/audio_ce6fe5b45c.mp3", "music"),
    Soundscape(SILENCE_ID, "Silence", "", "volume-x"),
)

_BACKGROUNDS = (
    Background("library", "Library", "assets/warm_cozy_library_study_space.png"),
    Background("forest", "Forest", "assets/peaceful_forest_clearing_scene.png"),
    Background("space", "Space", "assets/calming_cosmic_space_vista.png"),
    Background("coffee", "Coffee Shop", "assets/inviting_coffee_shop_interior.png"),
)

for _soundscape in _SOUNDSCAPES:
    registry.register_soundscape(_soundscape)
for _background in _BACKGROUNDS:
    registry.register_background(_background)

DEFAULT_BACKGROUND = _BACKGROUNDS[0].id


def resolve_sound_url(value: str) -> str:
    """Accept either a soundscape id or a raw URL and return the URL."""

    try:
        return registry.soundscape(value).url
    except KeyError:
        return value


__all__ = ["DEFAULT_BACKGROUND", "SILENCE_ID", "resolve_sound_url"]
