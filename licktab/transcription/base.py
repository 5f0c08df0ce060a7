"""Base classes for transcription."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import numpy as np

from ..core import TabNote, CancellationToken


class DetectionPath(str, Enum):
    """Which note source produced a transcription."""

    ALGORITHMIC = "algorithmic"
    MODEL = "model"


@dataclass
class DetectionResult:
    """Fretted notes from one transcriber plus diagnostics."""

    notes: List[TabNote]
    path: DetectionPath
    confidence: float  # 0 - 100, for display
    stats: Dict[str, int] = field(default_factory=dict)


class Transcriber(ABC):
    """Abstract base class for audio transcription."""

    path: DetectionPath

    @abstractmethod
    def transcribe(
        self,
        audio: np.ndarray,
        sr: int,
        token: Optional[CancellationToken] = None,
    ) -> DetectionResult:
        """
        Transcribe audio to fretted notes.

        Args:
            audio: Mono audio array
            sr: Sample rate
            token: Optional cancellation token

        Returns:
            DetectionResult with notes sorted by time

        Raises:
            NoOnsetsFoundError: If no note attacks are found
            NoPitchedNotesError: If nothing playable is detected
        """
        pass
