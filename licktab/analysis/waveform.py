"""Waveform peak extraction for display."""

import numpy as np

from ..core import PcmBuffer

DEFAULT_BUCKETS = 369


def extract_peaks(pcm: PcmBuffer, buckets: int = DEFAULT_BUCKETS) -> np.ndarray:
    """
    Peak absolute amplitude per bucket across all channels.

    Args:
        pcm: Audio buffer
        buckets: Number of output values

    Returns:
        Array of length `buckets` with values in [0, 1]
    """
    if buckets <= 0:
        raise ValueError(f"buckets must be positive, got {buckets}")

    frames = np.abs(pcm.as_frames()).max(axis=1) if pcm.frames else np.zeros(0)
    peaks = np.zeros(buckets, dtype=np.float32)
    if len(frames) == 0:
        return peaks

    edges = np.linspace(0, len(frames), buckets + 1).astype(int)
    for i in range(buckets):
        start, end = edges[i], edges[i + 1]
        if end > start:
            peaks[i] = frames[start:end].max()
    return np.clip(peaks, 0.0, 1.0)
