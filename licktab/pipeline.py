"""End-to-end pipelines: audio to tab, and chords to a backing-track WAV."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from .analysis.onset import OnsetDetector
from .analysis.pitch import PitchEstimator
from .analysis.tempo import TempoEstimator, TempoInfo, bpm_from_filename
from .config import TranscriptionConfig
from .core import (
    PcmBuffer,
    TabNote,
    CancellationToken,
    InferenceUnavailableError,
    NoOnsetsFoundError,
    NoPitchedNotesError,
)
from .inference.key import KeyEstimator, KeyInfo
from .input import AudioLoader
from .output.tab import TabEncoder
from .output.wav import WavCodec
from .processing.cleanup import ArticulationDetector, NoteDeduplicator
from .processing.consolidate import RawNoteConsolidator
from .processing.fretboard import FretMapper
from .synthesis import AudioMixer, ChordSpec, ChordSynthesizer, MixSource, RhythmPattern, SynthConfig
from .transcription import (
    AlgorithmicTranscriber,
    DetectionPath,
    DetectionResult,
    ModelTranscriber,
    PitchModel,
)

logger = logging.getLogger(__name__)

NO_NOTES_MESSAGE = "No notes detected - try a cleaner recording"


class ResultStatus(str, Enum):
    OK = "ok"
    NO_ONSETS = "no_onsets"
    NO_PITCHED_NOTES = "no_pitched_notes"


@dataclass
class TranscriptionResult:
    """Outcome of one transcription, including the empty cases."""

    status: ResultStatus
    path: DetectionPath
    tempo: TempoInfo
    key: KeyInfo
    duration: float
    notes: List[TabNote] = field(default_factory=list)
    tab: str = ""
    placed: int = 0
    dropped: int = 0
    confidence: float = 0.0
    fallback_reason: Optional[str] = None
    message: str = ""
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly summary."""
        return {
            "status": self.status.value,
            "path": self.path.value,
            "message": self.message,
            "tempo": {"bpm": self.tempo.bpm, "source": self.tempo.source},
            "key": self.key.name,
            "duration": round(self.duration, 3),
            "confidence": round(self.confidence, 1),
            "placed": self.placed,
            "dropped": self.dropped,
            "fallback_reason": self.fallback_reason,
            "stats": self.stats,
            "notes": [
                {
                    "time": round(n.time, 3),
                    "duration": round(n.duration, 3),
                    "string": n.string,
                    "fret": n.fret,
                    "pitch": n.pitch_name,
                    "velocity": round(n.velocity, 3),
                    "bend": n.bend_semitones,
                    "vibrato": n.has_vibrato,
                }
                for n in self.notes
            ],
            "tab": self.tab,
        }


class TranscriptionPipeline:
    """Audio bytes or PCM in, tablature out.

    The optional model handle is owned by the caller and may be shared by
    several pipelines; each call works on its own buffers.
    """

    def __init__(
        self,
        config: Optional[TranscriptionConfig] = None,
        model: Optional[PitchModel] = None,
    ):
        self.config = config or TranscriptionConfig()
        self.model = model

        cfg = self.config
        self.loader = AudioLoader(target_sr=cfg.target_sr, max_duration=cfg.max_duration)
        pitch_estimator = PitchEstimator(cfg.pitch)
        fret_mapper = FretMapper(tuning=cfg.tab.tuning)
        deduplicator = NoteDeduplicator(cfg.dedup)

        self.tempo_estimator = TempoEstimator(cfg.tempo)
        self.key_estimator = KeyEstimator(cfg.key_chunk_seconds, pitch_estimator)
        self.algorithmic = AlgorithmicTranscriber(
            onset_detector=OnsetDetector(cfg.onset),
            pitch_estimator=pitch_estimator,
            fret_mapper=fret_mapper,
            deduplicator=deduplicator,
        )
        self.model_transcriber = None
        if model is not None:
            self.model_transcriber = ModelTranscriber(
                model,
                config=cfg.model,
                consolidator=RawNoteConsolidator(cfg.consolidation),
                fret_mapper=fret_mapper,
                articulation=ArticulationDetector(cfg.articulation),
                deduplicator=deduplicator,
            )
        self.encoder = TabEncoder(cfg.tab)

    def transcribe_file(
        self,
        path: Union[str, Path],
        tempo: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> TranscriptionResult:
        """Load a file and transcribe it; the file name may carry a tempo hint."""
        path = Path(path)
        pcm = self.loader.load(str(path))
        return self.transcribe_pcm(pcm, filename=path.name, tempo=tempo, token=token)

    def transcribe_bytes(
        self,
        data: bytes,
        container: Optional[str] = None,
        filename: Optional[str] = None,
        tempo: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> TranscriptionResult:
        """
        Decode and transcribe audio bytes.

        Raises:
            DecodeError: If the bytes cannot be decoded
        """
        pcm = self.loader.decode(data, container)
        return self.transcribe_pcm(pcm, filename=filename, tempo=tempo, token=token)

    def transcribe_pcm(
        self,
        pcm: PcmBuffer,
        filename: Optional[str] = None,
        tempo: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> TranscriptionResult:
        """
        Transcribe decoded audio.

        Args:
            pcm: Audio; validated, downmixed and resampled to the configured rate
            filename: Original file name, used for a tempo hint
            tempo: Explicit tempo in BPM, overriding detection
            token: Optional cancellation token

        Returns:
            TranscriptionResult; empty results carry a status and message

        Raises:
            TranscriptionCancelledError: If the token is cancelled
        """
        pcm = self.loader.prepare(pcm)
        audio = pcm.samples
        sr = pcm.sample_rate

        tempo_info = self._resolve_tempo(audio, sr, filename, tempo)
        key_info = self._estimate_key(audio, sr, token)

        detection, path, fallback_reason = self._detect(audio, sr, token)
        if not isinstance(detection, DetectionResult):
            return TranscriptionResult(
                status=detection,
                path=path,
                tempo=tempo_info,
                key=key_info,
                duration=pcm.duration,
                fallback_reason=fallback_reason,
                message=NO_NOTES_MESSAGE,
            )

        grid = self.encoder.encode(detection.notes, pcm.duration, tempo_info.bpm)
        stats = dict(detection.stats)
        stats.update(placed=grid.placed, dropped=grid.dropped)
        logger.info(
            "Transcribed %d notes via %s path (%d placed, %d dropped)",
            len(detection.notes), detection.path.value, grid.placed, grid.dropped,
        )

        return TranscriptionResult(
            status=ResultStatus.OK,
            path=detection.path,
            tempo=tempo_info,
            key=key_info,
            duration=pcm.duration,
            notes=detection.notes,
            tab=grid.render(),
            placed=grid.placed,
            dropped=grid.dropped,
            confidence=detection.confidence,
            fallback_reason=fallback_reason,
            message=f"Transcribed {grid.placed} notes",
            stats=stats,
        )

    async def transcribe_async(
        self,
        data: bytes,
        container: Optional[str] = None,
        filename: Optional[str] = None,
        tempo: Optional[float] = None,
    ) -> TranscriptionResult:
        """
        Transcribe in a worker thread.

        Cancelling the awaiting task stops the worker at its next checkpoint
        and no result is produced.
        """
        token = CancellationToken()
        try:
            return await asyncio.to_thread(
                self.transcribe_bytes, data, container, filename, tempo, token
            )
        except asyncio.CancelledError:
            token.cancel()
            raise

    def _detect(self, audio: np.ndarray, sr: int, token: Optional[CancellationToken]):
        """
        Run the model path when enabled, falling back to the algorithmic path.

        Returns:
            Tuple of (DetectionResult or empty ResultStatus, path, fallback reason)
        """
        fallback_reason = None

        if self.config.use_model:
            if self.model_transcriber is None:
                fallback_reason = "No pitch model configured"
            else:
                try:
                    result = self.model_transcriber.transcribe(audio, sr, token)
                    return result, DetectionPath.MODEL, None
                except InferenceUnavailableError as exc:
                    fallback_reason = str(exc)
                except NoPitchedNotesError:
                    return ResultStatus.NO_PITCHED_NOTES, DetectionPath.MODEL, None
            logger.warning("Model path unavailable, using algorithmic path: %s", fallback_reason)

        try:
            result = self.algorithmic.transcribe(audio, sr, token)
            return result, DetectionPath.ALGORITHMIC, fallback_reason
        except NoOnsetsFoundError:
            return ResultStatus.NO_ONSETS, DetectionPath.ALGORITHMIC, fallback_reason
        except NoPitchedNotesError:
            return ResultStatus.NO_PITCHED_NOTES, DetectionPath.ALGORITHMIC, fallback_reason

    def _resolve_tempo(
        self,
        audio: np.ndarray,
        sr: int,
        filename: Optional[str],
        tempo: Optional[float],
    ) -> TempoInfo:
        """Explicit tempo, else a filename hint, else detection (which defaults to 120)."""
        if tempo is not None and tempo > 0:
            return TempoInfo(bpm=float(tempo), source="explicit")
        if filename:
            hinted = bpm_from_filename(filename)
            if hinted is not None:
                return TempoInfo(bpm=hinted, source="filename")
        return self.tempo_estimator.analyze(audio, sr)

    def _estimate_key(
        self,
        audio: np.ndarray,
        sr: int,
        token: Optional[CancellationToken],
    ) -> KeyInfo:
        return self.key_estimator.analyze(audio, sr, token)


class BackingTrackRenderer:
    """Chord progression in, WAV bytes out."""

    def __init__(
        self,
        config: Optional[SynthConfig] = None,
        synthesizer: Optional[ChordSynthesizer] = None,
        mixer: Optional[AudioMixer] = None,
    ):
        self.synthesizer = synthesizer or ChordSynthesizer(config)
        self.mixer = mixer or AudioMixer(sample_rate=self.synthesizer.config.sample_rate)

    def render_pcm(
        self,
        chords: Sequence[ChordSpec],
        tempo: float,
        pattern: Optional[Union[RhythmPattern, str]] = None,
        stems: Sequence[MixSource] = (),
    ) -> PcmBuffer:
        """Synthesize the progression and overlay any extra stems on it."""
        track = self.synthesizer.render(chords, tempo, pattern)
        if not stems:
            return track
        return self.mixer.overlay([MixSource(track, label="chords"), *stems])

    def render(
        self,
        chords: Sequence[ChordSpec],
        tempo: float,
        pattern: Optional[Union[RhythmPattern, str]] = None,
        stems: Sequence[MixSource] = (),
    ) -> bytes:
        """
        Render a progression to WAV bytes.

        Args:
            chords: Progression in order
            tempo: Tempo in BPM
            pattern: Default rhythm pattern or pattern id
            stems: Extra stems overlaid on the synthesized chords

        Returns:
            16-bit PCM WAV bytes
        """
        return WavCodec.serialize(self.render_pcm(chords, tempo, pattern, stems))

    async def render_async(
        self,
        chords: Sequence[ChordSpec],
        tempo: float,
        pattern: Optional[Union[RhythmPattern, str]] = None,
        stems: Sequence[MixSource] = (),
    ) -> bytes:
        return await asyncio.to_thread(self.render, chords, tempo, pattern, stems)
