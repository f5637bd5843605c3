"""Completion chime played when a study session ends."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from ..utils.audio import wav_data_url


@dataclass
class ChimeSource:
    """Two stacked sine partials under a short attack and exponential decay."""

    frequencies: tuple[float, ...] = (880.0, 1318.5)
    amplitude: float = 0.4
    decay: float = 6.0
    attack: float = 0.01

    def generate(self, duration: float, sample_rate: int) -> np.ndarray:
        total_samples = int(duration * sample_rate)
        t = np.linspace(0, duration, total_samples, endpoint=False)
        waveform = np.zeros(total_samples, dtype=np.float64)
        for index, frequency in enumerate(self.frequencies):
            # upper partials fade faster
            waveform += np.sin(2 * math.pi * frequency * t) * np.exp(-self.decay * (index + 1) * t)
        if self.frequencies:
            waveform /= len(self.frequencies)
        attack_samples = min(total_samples, max(1, int(self.attack * sample_rate)))
        waveform[:attack_samples] *= np.linspace(0.0, 1.0, attack_samples, endpoint=False)
        return (self.amplitude * waveform).astype(np.float32)

    def to_dict(self) -> dict[str, object]:
        return {
            "type": self.__class__.__name__,
            "frequencies": list(self.frequencies),
            "amplitude": self.amplitude,
            "decay": self.decay,
            "attack": self.attack,
        }


def chime_payload(duration: float = 0.8, sample_rate: int = 22050, source: ChimeSource | None = None) -> dict[str, object]:
    if duration <= 0:
        raise ValueError("duration must be positive")
    if sample_rate <= 0:
        raise ValueError("sample_rate must be positive")
    source = source or ChimeSource()
    buffer = source.generate(duration, sample_rate)
    return {
        "ok": True,
        "audio": wav_data_url(buffer, sample_rate),
        "duration": duration,
        "samples": len(buffer),
        "sample_rate": sample_rate,
        "config": source.to_dict(),
    }
