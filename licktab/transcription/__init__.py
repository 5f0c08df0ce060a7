"""Transcription layer - Note-level detection from audio.

This layer converts audio signals into fretted notes:
- Algorithmic transcription (energy onsets + YIN)
- Model transcription (neural pitch tracker + post-processing)
"""

from .base import Transcriber, DetectionResult, DetectionPath
from .algorithmic import AlgorithmicTranscriber
from .model import ModelTranscriber, ModelConfig, PitchModel, BasicPitchModel

__all__ = [
    "Transcriber",
    "DetectionResult",
    "DetectionPath",
    "AlgorithmicTranscriber",
    "ModelTranscriber",
    "ModelConfig",
    "PitchModel",
    "BasicPitchModel",
]
