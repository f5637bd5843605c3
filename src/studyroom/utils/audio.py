"""Audio utility helpers for serialization."""

from __future__ import annotations

import base64
import io
import wave
from pathlib import Path

import numpy as np


def _to_pcm16(buffer: np.ndarray) -> bytes:
    scaled = np.clip(np.asarray(buffer, dtype=np.float32), -1.0, 1.0)
    return (scaled * 32767).astype(np.int16).tobytes()


def write_wav(path: Path | str, buffer: np.ndarray, sample_rate: int) -> None:
    """Write a mono WAV file from a normalized floating point buffer."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(_to_pcm16(buffer))


def encode_wav_bytes(buffer: np.ndarray, sample_rate: int) -> bytes:
    """Return WAV-formatted bytes for an in-memory buffer."""

    with io.BytesIO() as bio:
        with wave.open(bio, "wb") as wf:
            wf.setnchannels(1)
            wf.setsampwidth(2)
            wf.setframerate(sample_rate)
            wf.writeframes(_to_pcm16(buffer))
        return bio.getvalue()


def wav_data_url(buffer: np.ndarray, sample_rate: int) -> str:
    encoded = base64.b64encode(encode_wav_bytes(buffer, sample_rate)).decode("ascii")
    return f"data:audio/wav;base64,{encoded}"
