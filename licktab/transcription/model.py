"""Neural transcription with an explicit pitch-model handle.

The model is loaded once by the caller (BasicPitchModel) and passed to
ModelTranscriber, which post-processes its raw notes: velocity gate,
consolidation, fret mapping, articulation tagging and deduplication.
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import librosa
import numpy as np
import soundfile as sf

from .base import Transcriber, DetectionResult, DetectionPath
from ..core import (
    RawNote,
    TabNote,
    ModelDetection,
    CancellationToken,
    InferenceUnavailableError,
    NoPitchedNotesError,
)
from ..core.cancel import check
from ..core.constants import MODEL_SR, GUITAR_FMIN, GUITAR_FMAX
from ..processing.cleanup import ArticulationDetector, NoteDeduplicator
from ..processing.consolidate import RawNoteConsolidator
from ..processing.fretboard import FretMapper

logger = logging.getLogger(__name__)

# basic-pitch reports pitch bends in contour bins of a third of a semitone
CENTS_PER_BEND_BIN = 100.0 / 3.0


@dataclass
class ModelConfig:
    """Configuration for the neural note path.

    Attributes:
        onset_threshold: Model onset activation threshold (default: 0.4)
        frame_threshold: Model frame activation threshold (default: 0.35)
        min_note_length_ms: Shortest note the model may emit (default: 116)
        velocity_threshold: Raw notes quieter than this are discarded (default: 0.25)
        fmin / fmax: Frequency band passed to the model in Hz
    """

    onset_threshold: float = 0.4
    frame_threshold: float = 0.35
    min_note_length_ms: float = 116.0
    velocity_threshold: float = 0.25
    fmin: float = GUITAR_FMIN
    fmax: float = GUITAR_FMAX


class PitchModel(ABC):
    """A note-level pitch tracker."""

    name: str = "model"

    @abstractmethod
    def predict(self, audio: np.ndarray, sr: int) -> List[RawNote]:
        """
        Detect raw notes.

        Raises:
            InferenceUnavailableError: If the model cannot run
        """
        pass


class BasicPitchModel(PitchModel):
    """Spotify basic-pitch, loaded once and reused across transcriptions."""

    name = "basic-pitch"

    def __init__(self, config: Optional[ModelConfig] = None, model_path: Optional[str] = None):
        """
        Load the basic-pitch model.

        Raises:
            InferenceUnavailableError: If basic-pitch is not installed or the model fails to load
        """
        self.config = config or ModelConfig()
        try:
            from basic_pitch import ICASSP_2022_MODEL_PATH
            from basic_pitch.inference import Model
        except ImportError as exc:
            raise InferenceUnavailableError(
                "basic-pitch not installed. Run: pip install 'licktab[ml]'"
            ) from exc

        try:
            self._model = Model(model_path or ICASSP_2022_MODEL_PATH)
        except Exception as exc:
            raise InferenceUnavailableError(f"Could not load basic-pitch model: {exc}") from exc

    def predict(self, audio: np.ndarray, sr: int) -> List[RawNote]:
        from basic_pitch.inference import predict

        if sr != MODEL_SR:
            audio = librosa.resample(np.asarray(audio, dtype=np.float32), orig_sr=sr, target_sr=MODEL_SR)

        # basic-pitch reads from disk
        fd, tmp_path = tempfile.mkstemp(suffix=".wav", prefix="licktab_")
        os.close(fd)
        try:
            sf.write(tmp_path, audio, MODEL_SR)
            _, _, note_events = predict(
                tmp_path,
                self._model,
                onset_threshold=self.config.onset_threshold,
                frame_threshold=self.config.frame_threshold,
                minimum_note_length=self.config.min_note_length_ms,
                minimum_frequency=self.config.fmin,
                maximum_frequency=self.config.fmax,
            )
        except Exception as exc:
            raise InferenceUnavailableError(f"basic-pitch inference failed: {exc}") from exc
        finally:
            os.unlink(tmp_path)

        raw_notes = []
        for start, end, pitch, amplitude, bends in note_events:
            raw_notes.append(RawNote(
                onset=float(start),
                offset=float(end),
                pitch=float(pitch),
                amplitude=float(amplitude),
                pitch_bends=tuple(float(b) * CENTS_PER_BEND_BIN for b in (bends or ())),
            ))
        return raw_notes


class ModelTranscriber(Transcriber):
    """Transcribes with a PitchModel and guitar-specific post-processing."""

    path = DetectionPath.MODEL

    def __init__(
        self,
        model: PitchModel,
        config: Optional[ModelConfig] = None,
        consolidator: Optional[RawNoteConsolidator] = None,
        fret_mapper: Optional[FretMapper] = None,
        articulation: Optional[ArticulationDetector] = None,
        deduplicator: Optional[NoteDeduplicator] = None,
    ):
        self.model = model
        self.config = config or ModelConfig()
        self.consolidator = consolidator or RawNoteConsolidator()
        self.fret_mapper = fret_mapper or FretMapper()
        self.articulation = articulation or ArticulationDetector()
        self.deduplicator = deduplicator or NoteDeduplicator()

    def transcribe(
        self,
        audio: np.ndarray,
        sr: int,
        token: Optional[CancellationToken] = None,
    ) -> DetectionResult:
        check(token)
        raw = self.model.predict(audio, sr)
        check(token)

        audible = [n for n in raw if n.amplitude >= self.config.velocity_threshold]
        if not audible:
            raise NoPitchedNotesError(f"{self.model.name} found no notes above velocity threshold")

        # Consolidate while pitch is still continuous
        merged, consolidation = self.consolidator.consolidate(audible)

        notes: List[TabNote] = []
        out_of_range = 0
        previous = None
        for raw_note in merged:
            pitch = int(round(raw_note.pitch))
            position = self.fret_mapper.map_pitch(pitch, previous)
            if position is None:
                out_of_range += 1
                continue
            previous = position

            source = ModelDetection(tuple(raw_note.pitch_bends))
            bend, vibrato = self.articulation.detect(source)
            notes.append(TabNote(
                time=raw_note.onset,
                duration=raw_note.duration,
                position=position,
                pitch=pitch,
                velocity=float(np.clip(raw_note.amplitude, 0.0, 1.0)),
                bend_semitones=bend,
                has_vibrato=vibrato,
                source=source,
            ))

        if not notes:
            raise NoPitchedNotesError("All model notes were outside the fretboard range")

        notes, dedup = self.deduplicator.deduplicate(notes)
        mean_velocity = float(np.mean([n.velocity for n in notes]))
        return DetectionResult(
            notes=notes,
            path=self.path,
            confidence=min(95.0, 70.0 + mean_velocity * 30.0),
            stats={
                "raw_notes": len(raw),
                "quiet_removed": len(raw) - len(audible),
                "merged": consolidation.merged,
                "out_of_range": out_of_range,
                "duplicates_removed": dedup.removed,
            },
        )
