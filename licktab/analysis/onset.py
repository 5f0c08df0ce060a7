"""Onset detection from the short-time RMS energy envelope."""

import logging
from dataclasses import dataclass
from typing import List, Optional

import librosa
import numpy as np

from ..core.cancel import CancellationToken, check

logger = logging.getLogger(__name__)

# Frames handed to librosa per call, bounding the framed copy it squares
RMS_BLOCK_FRAMES = 1024


def frame_rms(audio: np.ndarray, frame_length: int, hop_length: int) -> np.ndarray:
    """
    RMS of each full frame, computed a block of frames at a time.

    Matches librosa.feature.rms(center=False) without materializing every
    frame of a long signal at once.

    Args:
        audio: Mono audio array
        frame_length: Samples per frame
        hop_length: Samples between frame starts

    Returns:
        1-D array of RMS values; empty when the signal is shorter than a frame
    """
    if len(audio) < frame_length:
        return np.zeros(0, dtype=audio.dtype)
    n_frames = 1 + (len(audio) - frame_length) // hop_length
    blocks = []
    for first in range(0, n_frames, RMS_BLOCK_FRAMES):
        count = min(RMS_BLOCK_FRAMES, n_frames - first)
        start = first * hop_length
        segment = audio[start:start + (count - 1) * hop_length + frame_length]
        blocks.append(librosa.feature.rms(
            y=segment, frame_length=frame_length, hop_length=hop_length, center=False
        )[0])
    return np.concatenate(blocks)


@dataclass
class OnsetConfig:
    """Configuration for energy-ratio onset detection.

    Attributes:
        window: RMS window length in seconds (default: 0.1)
        hop: Hop between windows in seconds (default: 0.025)
        energy_ratio: Required growth over the previous window (default: 1.3)
        noise_floor: Minimum RMS for an onset (default: 0.002)
        min_gap: Minimum spacing between onsets in seconds (default: 0.04)
    """

    window: float = 0.1
    hop: float = 0.025
    energy_ratio: float = 1.3
    noise_floor: float = 0.002
    min_gap: float = 0.04


class OnsetDetector:
    """Locate note attacks where RMS energy jumps above the previous window."""

    # Frames processed between cancellation checks
    CHUNK_FRAMES = 256

    def __init__(self, config: Optional[OnsetConfig] = None):
        self.config = config or OnsetConfig()

    def energy_envelope(self, audio: np.ndarray, sr: int) -> np.ndarray:
        """
        RMS energy per window, one value per hop.

        The signal is front-padded with one window of silence, so frame k
        covers the window that ends at k * hop seconds.

        Args:
            audio: Mono audio array
            sr: Sample rate

        Returns:
            1-D array of RMS values
        """
        window = max(1, int(round(self.config.window * sr)))
        hop = max(1, int(round(self.config.hop * sr)))
        padded = np.concatenate([np.zeros(window, dtype=np.float32), audio.astype(np.float32)])
        return frame_rms(padded, window, hop)

    def detect(
        self,
        audio: np.ndarray,
        sr: int,
        token: Optional[CancellationToken] = None,
    ) -> List[float]:
        """
        Detect onset times.

        Args:
            audio: Mono audio array
            sr: Sample rate
            token: Optional cancellation token

        Returns:
            Strictly increasing onset times in seconds; empty for silence
        """
        audio = np.asarray(audio, dtype=np.float32)
        hop = max(1, int(round(self.config.hop * sr)))
        if len(audio) < hop or not np.any(audio):
            return []

        energy = self.energy_envelope(audio, sr)
        onsets: List[float] = []
        last_onset = -np.inf

        for i in range(1, len(energy)):
            if i % self.CHUNK_FRAMES == 0:
                check(token)

            current = energy[i]
            if current <= self.config.noise_floor:
                continue
            if current <= energy[i - 1] * self.config.energy_ratio:
                continue

            time = i * hop / sr
            if time - last_onset > self.config.min_gap:
                onsets.append(time)
                last_onset = time

        check(token)
        logger.debug("Detected %d onsets in %.2fs of audio", len(onsets), len(audio) / sr)
        return onsets
