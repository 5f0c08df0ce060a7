"""Signal-processing transcription: energy onsets + YIN pitch."""

import logging
from typing import List, Optional

import numpy as np

from .base import Transcriber, DetectionResult, DetectionPath
from ..analysis.onset import OnsetDetector
from ..analysis.pitch import PitchEstimator
from ..core import (
    Note,
    TabNote,
    AlgorithmicDetection,
    CancellationToken,
    NoOnsetsFoundError,
    NoPitchedNotesError,
)
from ..processing.cleanup import NoteDeduplicator
from ..processing.fretboard import FretMapper

logger = logging.getLogger(__name__)

ALGORITHMIC_CONFIDENCE = 70.0


class AlgorithmicTranscriber(Transcriber):
    """Transcribes monophonic guitar with onset detection and YIN.

    Every onset gets one pitch estimate; unpitched and out-of-range onsets
    are dropped. A note lasts until the next onset or the end of the clip.
    """

    path = DetectionPath.ALGORITHMIC

    def __init__(
        self,
        onset_detector: Optional[OnsetDetector] = None,
        pitch_estimator: Optional[PitchEstimator] = None,
        fret_mapper: Optional[FretMapper] = None,
        deduplicator: Optional[NoteDeduplicator] = None,
    ):
        self.onset_detector = onset_detector or OnsetDetector()
        self.pitch_estimator = pitch_estimator or PitchEstimator()
        self.fret_mapper = fret_mapper or FretMapper()
        self.deduplicator = deduplicator or NoteDeduplicator()

    def transcribe(
        self,
        audio: np.ndarray,
        sr: int,
        token: Optional[CancellationToken] = None,
    ) -> DetectionResult:
        audio = np.asarray(audio, dtype=np.float32)
        duration = len(audio) / sr

        onsets = self.onset_detector.detect(audio, sr, token)
        if not onsets:
            raise NoOnsetsFoundError("No note onsets detected")

        estimates = self.pitch_estimator.estimate_many(audio, sr, onsets, token)

        notes: List[TabNote] = []
        unpitched = 0
        out_of_range = 0
        previous = None
        for i, estimate in enumerate(estimates):
            if not estimate.is_pitched:
                unpitched += 1
                continue

            pitch = Note.freq_to_midi(estimate.frequency)
            position = self.fret_mapper.map_pitch(pitch, previous)
            if position is None:
                out_of_range += 1
                continue
            previous = position

            end = onsets[i + 1] if i + 1 < len(onsets) else duration
            notes.append(TabNote(
                time=estimate.time,
                duration=max(end - estimate.time, 0.0),
                position=position,
                pitch=pitch,
                velocity=self._velocity(audio, sr, estimate.time),
                source=AlgorithmicDetection(),
            ))

        logger.debug(
            "%d onsets: %d pitched, %d unpitched, %d out of range",
            len(onsets), len(notes), unpitched, out_of_range,
        )
        if not notes:
            raise NoPitchedNotesError(f"None of {len(onsets)} onsets had a playable pitch")

        notes, dedup = self.deduplicator.deduplicate(notes)
        return DetectionResult(
            notes=notes,
            path=self.path,
            confidence=ALGORITHMIC_CONFIDENCE,
            stats={
                "onsets": len(onsets),
                "unpitched": unpitched,
                "out_of_range": out_of_range,
                "duplicates_removed": dedup.removed,
            },
        )

    def _velocity(self, audio: np.ndarray, sr: int, time: float) -> float:
        """Peak level of the attack window, as a 0-1 velocity."""
        start = int(round(time * sr))
        window = audio[start:start + int(round(self.pitch_estimator.config.window * sr))]
        if len(window) == 0:
            return 0.0
        return float(np.clip(np.max(np.abs(window)), 0.0, 1.0))
