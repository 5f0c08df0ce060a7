"""Shared synthetic signals for tests."""

import numpy as np
import pytest

SR = 44100


def _pluck(freq: float, start: float, length: float, sr: int, amplitude: float = 0.6,
           decay: float = 0.3, attack: float = 0.005) -> np.ndarray:
    """Exponentially decaying sine with a short linear attack, placed in a zero buffer."""
    n = int(round(length * sr))
    t = np.arange(n) / sr
    env = np.exp(-t / decay) * np.minimum(1.0, t / attack)
    tone = amplitude * np.sin(2 * np.pi * freq * t) * env
    out = np.zeros(int(round((start + length) * sr)), dtype=np.float64)
    out[int(round(start * sr)):] = tone[: len(out) - int(round(start * sr))]
    return out


@pytest.fixture
def sample_rate():
    return SR


@pytest.fixture
def make_pluck():
    """Factory for single plucked notes."""
    return _pluck


@pytest.fixture
def two_plucks():
    """2 s clip: A3 (220 Hz) at 0.0 s and E4 (329.63 Hz) at 1.0 s."""
    duration = 2.0
    audio = np.zeros(int(duration * SR))
    for freq, start in ((220.0, 0.0), (329.63, 1.0)):
        note = _pluck(freq, start, duration - start, SR)
        audio[: len(note)] += note
    return audio.astype(np.float32), SR


@pytest.fixture
def sine_220():
    t = np.arange(int(0.5 * SR)) / SR
    return (0.5 * np.sin(2 * np.pi * 220.0 * t)).astype(np.float32), SR


@pytest.fixture
def silence():
    return np.zeros(2 * SR, dtype=np.float32), SR
