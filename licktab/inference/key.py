"""Key detection - tonal center from a pitch-class histogram."""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from ..analysis.pitch import PitchEstimator
from ..core import Note, PITCH_NAMES
from ..core.cancel import CancellationToken, check

logger = logging.getLogger(__name__)


@dataclass
class KeyInfo:
    """Container for key detection results."""

    root: str  # Key root note (e.g., "C", "F#")
    mode: str = "major"
    confidence: float = 0.0  # Share of pitched chunks on the root class
    pitch_class_distribution: np.ndarray = field(default_factory=lambda: np.zeros(12))
    detected: bool = True

    @property
    def name(self) -> str:
        return f"{self.root} {self.mode.capitalize()}"


class KeyEstimator:
    """Estimate the major key whose tonic is the most frequent pitch class.

    The signal is cut into uniform chunks, each chunk is run through the YIN
    estimator, and every pitched chunk votes for its chromatic class.
    """

    def __init__(
        self,
        chunk_seconds: float = 0.1,
        pitch_estimator: Optional[PitchEstimator] = None,
        default_root: str = "C",
    ):
        self.chunk_seconds = chunk_seconds
        self.pitch_estimator = pitch_estimator or PitchEstimator()
        self.default_root = default_root

    def histogram(
        self,
        audio: np.ndarray,
        sr: int,
        token: Optional[CancellationToken] = None,
    ) -> np.ndarray:
        """12-bin pitch-class counts over all chunks."""
        counts = np.zeros(12)
        size = max(1, int(round(self.chunk_seconds * sr)))
        for start in range(0, len(audio) - size + 1, size):
            check(token)
            estimate = self.pitch_estimator.estimate_frame(audio[start:start + size], sr)
            if estimate.is_pitched:
                counts[Note.freq_to_midi(estimate.frequency) % 12] += 1
        return counts

    def analyze(
        self,
        audio: np.ndarray,
        sr: int,
        token: Optional[CancellationToken] = None,
    ) -> KeyInfo:
        """
        Detect key from audio.

        Args:
            audio: Mono audio array
            sr: Sample rate
            token: Optional cancellation token

        Returns:
            KeyInfo; falls back to the default root when nothing is pitched
        """
        counts = self.histogram(np.asarray(audio, dtype=np.float64), sr, token)
        total = counts.sum()
        if total == 0:
            logger.debug("No pitched chunks, defaulting key to %s major", self.default_root)
            return KeyInfo(
                root=self.default_root,
                pitch_class_distribution=counts,
                detected=False,
            )

        # argmax returns the lowest index on ties
        tonic = int(np.argmax(counts))
        return KeyInfo(
            root=PITCH_NAMES[tonic],
            confidence=float(counts[tonic] / total),
            pitch_class_distribution=counts / total,
        )
