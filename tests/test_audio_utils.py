import wave

import numpy as np

from studyroom.cli import main
from studyroom.sources.chime import ChimeSource
from studyroom.utils.audio import encode_wav_bytes


def test_encode_wav_bytes_contains_riff_header():
    buffer = np.zeros(800, dtype=np.float32)
    data = encode_wav_bytes(buffer, 8000)

    assert data.startswith(b"RIFF")
    assert b"WAVE" in data[:16]


def test_chime_decays_and_stays_in_range():
    buffer = ChimeSource().generate(0.5, 8000)

    assert buffer.dtype.name == "float32"
    assert len(buffer) == 4000
    assert np.max(np.abs(buffer)) <= 1.0
    head = np.max(np.abs(buffer[:1000]))
    tail = np.max(np.abs(buffer[-1000:]))
    assert tail < head


def test_cli_writes_chime(tmp_path):
    target = tmp_path / "out" / "chime.wav"

    main(["chime", str(target), "--duration", "0.2", "--sample-rate", "8000"])

    with wave.open(str(target), "rb") as wf:
        assert wf.getnchannels() == 1
        assert wf.getframerate() == 8000
        assert wf.getnframes() == 1600


def test_chime_config_round_trips_through_constructor():
    source = ChimeSource(frequencies=(440.0,), amplitude=0.2)
    config = source.to_dict()

    assert config.pop("type") == "ChimeSource"
    config["frequencies"] = tuple(config["frequencies"])
    assert ChimeSource(**config) == source
