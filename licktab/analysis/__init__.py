"""Analysis layer - Low-level signal analysis.

This layer extracts information from mono PCM:
- Onset detection (energy envelope)
- Pitch estimation (YIN)
- Tempo estimation (energy peaks)
- Waveform peaks for display
"""

from .onset import OnsetDetector, OnsetConfig
from .pitch import PitchEstimator, PitchConfig, PitchEstimate, NO_PITCH
from .tempo import TempoEstimator, TempoConfig, TempoInfo, bpm_from_filename
from .waveform import extract_peaks

__all__ = [
    "OnsetDetector",
    "OnsetConfig",
    "PitchEstimator",
    "PitchConfig",
    "PitchEstimate",
    "NO_PITCH",
    "TempoEstimator",
    "TempoConfig",
    "TempoInfo",
    "bpm_from_filename",
    "extract_peaks",
]
