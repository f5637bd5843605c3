"""Behaviour of the playback reconciler under a virtual clock."""

from __future__ import annotations

import pytest

from studyroom.config import PlayerOptions
from studyroom.core.scheduler import ManualScheduler
from studyroom.errors import LoadError, PlayError
from studyroom.playback.output import SimulatedAudioOutput
from studyroom.playback.reconciler import PlaybackReconciler

RAIN = "https://cdn.example.com/rain.mp3"
WAVES = "https://cdn.example.com/waves.mp3"


class RecordingOutput(SimulatedAudioOutput):
    """Remember every volume written, together with the source at the time."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.history: list[tuple[str, float]] = []

    @SimulatedAudioOutput.volume.setter
    def volume(self, value: float) -> None:
        SimulatedAudioOutput.volume.fset(self, value)
        self.history.append((self.src, self.volume))


def make_player(**options):
    scheduler = ManualScheduler()
    blocked = options.pop("autoplay_blocked", False)
    latency = options.pop("latency_ms", 100.0)
    output = RecordingOutput(scheduler, latency_ms=latency, autoplay_blocked=blocked, clock=lambda: scheduler.now / 1000)
    player = PlaybackReconciler(output, scheduler, PlayerOptions(**options))
    return player, output, scheduler


def settle(player, scheduler, total_ms: float = 5000, step_ms: float = 10) -> None:
    """Advance in small steps, checking that fades never overlap."""
    elapsed = 0.0
    while elapsed < total_ms:
        scheduler.advance(step_ms)
        elapsed += step_ms
        assert scheduler.active_tickers() <= 1


def test_output_is_looping_and_silent_on_creation():
    player, output, _ = make_player()
    assert output.loop is True
    assert output.volume == 0.0
    status = player.status()
    assert not status.is_playing and not status.is_loading
    assert status.current_url == ""


def test_play_loads_then_fades_in():
    player, output, scheduler = make_player()

    player.play(RAIN)
    assert player.is_loading
    assert not player.is_playing
    assert output.src == RAIN

    scheduler.advance(100)
    assert player.is_playing
    assert player.is_loading
    assert scheduler.active_tickers() == 1

    scheduler.advance(2000)
    assert player.is_playing
    assert not player.is_loading
    assert output.volume == 0.5
    assert not output.paused
    assert player.status().loaded_url == RAIN


def test_resume_without_sound_is_noop():
    player, output, scheduler = make_player()
    before = player.status()

    player.resume()
    scheduler.advance(1000)

    assert player.status() == before
    assert player.intent.should_be_playing is False
    assert output.src == ""


@pytest.mark.parametrize("elapsed", [0, 50, 100, 1000, 2100, 5000])
def test_stop_always_settles_idle(elapsed):
    player, output, scheduler = make_player()
    player.play(RAIN)
    scheduler.advance(elapsed)

    player.stop()
    settle(player, scheduler, total_ms=1000)

    status = player.status()
    assert status.is_playing is False
    assert status.is_loading is False
    assert status.current_url == ""
    assert output.paused
    assert output.volume == 0.0
    assert output.current_time == 0.0


def test_second_play_before_load_wins_without_fragment_of_first():
    player, output, scheduler = make_player()

    player.play(RAIN)
    scheduler.advance(50)
    player.play(WAVES)
    settle(player, scheduler, total_ms=3000)

    status = player.status()
    assert status.current_url == WAVES
    assert status.loaded_url == WAVES
    assert status.is_playing and not status.is_loading
    assert output.src == WAVES
    assert not [volume for src, volume in output.history if src == RAIN and volume > 0]


def test_switching_while_playing_fades_out_before_loading():
    player, output, scheduler = make_player()
    player.play(RAIN)
    scheduler.advance(2100)
    assert output.volume == 0.5

    player.play(WAVES)
    assert player.is_loading
    scheduler.advance(250)
    assert output.src == RAIN
    assert 0.0 < output.volume < 0.5

    scheduler.advance(250)
    assert output.src == WAVES
    assert output.volume == 0.0
    assert not player.is_playing

    scheduler.advance(100)
    assert player.is_playing
    scheduler.advance(2000)
    assert output.volume == 0.5
    assert not player.is_loading
    assert player.status().loaded_url == WAVES


def test_load_failure_reports_once_and_does_not_retry():
    player, output, scheduler = make_player()
    errors = []

    player.play("ftp://archive.example.com/rain.mp3", errors.append)
    assert player.is_loading
    settle(player, scheduler, total_ms=3000)

    assert len(errors) == 1
    assert isinstance(errors[0], LoadError)
    assert player.is_loading is False
    assert player.is_playing is False
    # intent survives so the caller can retry
    assert player.intent.should_be_playing is True


def test_play_failure_is_reported_and_can_be_retried():
    player, output, scheduler = make_player(autoplay_blocked=True)
    errors = []

    player.play(RAIN, errors.append)
    scheduler.advance(100)

    assert len(errors) == 1
    assert isinstance(errors[0], PlayError)
    assert not player.is_loading and not player.is_playing

    output.unlock()
    player.play(RAIN, errors.append)
    scheduler.advance(2100)

    assert len(errors) == 1
    assert player.is_playing and not player.is_loading


def test_load_timeout_turns_hung_load_into_error():
    player, output, scheduler = make_player(load_timeout_ms=300, latency_ms=10_000)
    errors = []

    player.play(RAIN, errors.append)
    scheduler.advance(300)

    assert len(errors) == 1
    assert "Timed out" in str(errors[0])
    assert not player.is_loading

    scheduler.advance(20_000)
    assert len(errors) == 1
    assert not player.is_playing


def test_hung_load_stays_loading_without_timeout():
    player, output, scheduler = make_player(latency_ms=60_000)

    player.play(RAIN)
    scheduler.advance(30_000)

    assert player.is_loading
    assert not player.is_playing


def test_toggle_semantics():
    player, output, scheduler = make_player()

    player.toggle()
    scheduler.advance(500)
    assert not player.is_loading and not player.is_playing

    player.toggle(RAIN)
    scheduler.advance(2100)
    assert player.is_playing

    player.toggle()
    scheduler.advance(500)
    assert not player.is_playing
    assert player.current_url == RAIN

    player.toggle()
    assert player.is_loading
    scheduler.advance(2100)
    assert player.is_playing
    assert output.volume == 0.5


def test_pause_keeps_position_reset_and_desired_url():
    player, output, scheduler = make_player()
    player.play(RAIN)
    scheduler.advance(2100)

    player.pause()
    assert player.is_playing
    scheduler.advance(500)

    assert not player.is_playing
    assert output.paused
    assert output.current_time == 0.0
    assert player.current_url == RAIN
    assert player.status().loaded_url == ""


def test_resume_during_fade_out_brings_sound_back():
    player, output, scheduler = make_player()
    player.play(RAIN)
    scheduler.advance(2100)

    player.pause()
    scheduler.advance(200)
    player.resume()
    settle(player, scheduler, total_ms=3000)

    assert player.is_playing and not player.is_loading
    assert output.volume == 0.5
    assert output.src == RAIN


def test_set_sound_while_paused_only_changes_intent():
    player, output, scheduler = make_player()
    player.play(RAIN)
    scheduler.advance(2100)
    player.pause()
    scheduler.advance(500)

    player.set_sound(WAVES)
    scheduler.advance(1000)

    assert player.current_url == WAVES
    assert not player.is_playing and not player.is_loading
    assert output.src == RAIN

    player.resume()
    scheduler.advance(2100)
    assert output.src == WAVES
    assert player.is_playing


def test_clearing_sound_while_playing_goes_silent():
    player, output, scheduler = make_player()
    player.play(RAIN)
    scheduler.advance(2100)

    player.set_sound("")
    scheduler.advance(500)

    assert not player.is_playing
    assert output.paused
    assert output.volume == 0.0


def test_close_cancels_fade_and_releases_output():
    player, output, scheduler = make_player()
    player.play(RAIN)
    scheduler.advance(300)
    assert scheduler.active_tickers() == 1

    player.close()

    assert scheduler.active_tickers() == 0
    assert output.src == ""
    assert output.paused
    volume = output.volume
    scheduler.advance(5000)
    assert output.volume == volume
    # status and intent are only reset by stop()
    assert player.is_playing
    assert player.current_url == RAIN

    player.play(WAVES)
    assert output.src == ""


def test_rapid_intent_changes_never_overlap_fades():
    player, output, scheduler = make_player()
    script = [
        (0, lambda: player.play(RAIN)),
        (30, lambda: player.pause()),
        (40, lambda: player.play(WAVES)),
        (700, lambda: player.toggle()),
        (720, lambda: player.toggle()),
        (900, lambda: player.set_sound(RAIN)),
        (1500, lambda: player.stop()),
        (1510, lambda: player.play(WAVES)),
    ]
    now = 0
    for at, action in script:
        settle(player, scheduler, total_ms=at - now)
        now = at
        action()
        assert scheduler.active_tickers() <= 1
    settle(player, scheduler, total_ms=4000)

    assert player.status().current_url == WAVES
    assert player.status().loaded_url == WAVES
    assert player.is_playing and not player.is_loading
    assert output.volume == 0.5


def test_error_callback_exceptions_do_not_escape():
    player, output, scheduler = make_player()

    def explode(error):
        raise RuntimeError("boom")

    player.play("ftp://archive.example.com/rain.mp3", explode)
    scheduler.advance(100)

    assert not player.is_loading
