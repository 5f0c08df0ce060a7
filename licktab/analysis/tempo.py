"""Tempo estimation from energy peaks."""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from ..core.constants import DEFAULT_TEMPO
from .onset import frame_rms

logger = logging.getLogger(__name__)

_FILENAME_BPM_PATTERNS = (
    re.compile(r"(\d+)\s*-\s*bpm", re.IGNORECASE),
    re.compile(r"(\d+)\s*bpm", re.IGNORECASE),
    re.compile(r"bpm\s*(\d+)", re.IGNORECASE),
)


@dataclass
class TempoConfig:
    """Configuration for energy-peak tempo estimation.

    Attributes:
        window: Energy window in seconds (default: 0.05)
        hop: Hop between windows in seconds (default: 0.01)
        peak_factor: Peaks must exceed mean energy times this (default: 1.5)
        min_peak_spacing: Minimum time between peaks in seconds (default: 0.2)
        min_beats: Fewer peaks than this falls back to the default (default: 4)
        outlier_tolerance: Fractional distance from the median interval kept (default: 0.3)
        min_bpm / max_bpm: Clamp range for the result (default: 60-220)
        default_bpm: Fallback tempo (default: 120)
    """

    window: float = 0.05
    hop: float = 0.01
    peak_factor: float = 1.5
    min_peak_spacing: float = 0.2
    min_beats: int = 4
    outlier_tolerance: float = 0.3
    min_bpm: float = 60.0
    max_bpm: float = 220.0
    default_bpm: float = DEFAULT_TEMPO


@dataclass
class TempoInfo:
    """Container for tempo analysis results."""

    bpm: float
    beat_times: np.ndarray = field(default_factory=lambda: np.zeros(0))
    time_signature: Tuple[int, int] = (4, 4)
    source: str = "detected"  # "detected", "default", "filename" or "explicit"

    @property
    def seconds_per_beat(self) -> float:
        return 60.0 / self.bpm


class TempoEstimator:
    """Best-effort global tempo from peaks in a fine energy envelope.

    Never raises on audio input; anything it cannot measure returns the
    default tempo tagged with source="default".
    """

    def __init__(self, config: Optional[TempoConfig] = None):
        self.config = config or TempoConfig()

    def detect(self, audio: np.ndarray, sr: int) -> Tuple[float, np.ndarray]:
        """
        Detect tempo and beat positions.

        Args:
            audio: Mono audio array
            sr: Sample rate

        Returns:
            Tuple of (tempo in BPM, beat times in seconds)
        """
        info = self.analyze(audio, sr)
        return info.bpm, info.beat_times

    def analyze(self, audio: np.ndarray, sr: int) -> TempoInfo:
        """
        Perform full tempo analysis.

        Args:
            audio: Mono audio array
            sr: Sample rate

        Returns:
            TempoInfo with the estimate and the peaks used
        """
        try:
            return self._analyze(np.asarray(audio, dtype=np.float32), sr)
        except (ValueError, FloatingPointError, ZeroDivisionError) as exc:
            logger.warning("Tempo estimation failed, using %.0f BPM: %s", self.config.default_bpm, exc)
            return self._default()

    def _analyze(self, audio: np.ndarray, sr: int) -> TempoInfo:
        window = max(1, int(round(self.config.window * sr)))
        hop = max(1, int(round(self.config.hop * sr)))
        if len(audio) < window:
            return self._default()

        energy = frame_rms(audio, window, hop)
        if not np.all(np.isfinite(energy)) or energy.mean() <= 0:
            return self._default()

        beat_times = self._find_peaks(energy, hop / sr)
        if len(beat_times) < self.config.min_beats:
            logger.debug("Only %d energy peaks, using default tempo", len(beat_times))
            return self._default(beat_times)

        intervals = np.diff(beat_times)
        median = np.sort(intervals)[len(intervals) // 2]
        kept = intervals[np.abs(intervals - median) < self.config.outlier_tolerance * median]
        if len(kept) == 0:
            return self._default(beat_times)

        bpm = float(round(60.0 / kept.mean()))
        bpm = float(np.clip(bpm, self.config.min_bpm, self.config.max_bpm))
        return TempoInfo(bpm=bpm, beat_times=beat_times, source="detected")

    def _find_peaks(self, energy: np.ndarray, frame_seconds: float) -> np.ndarray:
        threshold = energy.mean() * self.config.peak_factor
        peaks = []
        last = -np.inf
        for i in range(1, len(energy) - 1):
            current = energy[i]
            if current > energy[i - 1] and current > energy[i + 1] and current > threshold:
                time = i * frame_seconds
                if time - last >= self.config.min_peak_spacing:
                    peaks.append(time)
                    last = time
        return np.asarray(peaks)

    def _default(self, beat_times: Optional[np.ndarray] = None) -> TempoInfo:
        return TempoInfo(
            bpm=self.config.default_bpm,
            beat_times=beat_times if beat_times is not None else np.zeros(0),
            source="default",
        )


def bpm_from_filename(name: str, low: float = 40, high: float = 300) -> Optional[float]:
    """
    Extract a tempo hint such as "riff_120bpm.wav" or "bpm 96 take2.mp3".

    Returns:
        BPM as float if a value within [low, high] is found, else None
    """
    for pattern in _FILENAME_BPM_PATTERNS:
        match = pattern.search(name)
        if match:
            bpm = float(match.group(1))
            if low <= bpm <= high:
                return bpm
    return None
