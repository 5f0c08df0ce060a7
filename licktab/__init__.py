"""licktab - Guitar tablature transcription and backing-track synthesis.

Architecture Layers:
    1. input/         - Audio decoding and preprocessing
    2. analysis/      - Low-level signal analysis (onsets, pitch, tempo, waveform)
    3. inference/     - Musical understanding (key)
    4. transcription/ - Note detection (algorithmic YIN path, neural model path)
    5. processing/    - Note post-processing (consolidate, fret mapping, dedupe, articulation)
    6. output/        - Export (tablature text, WAV, MIDI)
    7. synthesis/     - Chord/rhythm rendering and stem mixing
"""

__version__ = "0.1.0"

# Core types
from .core import (
    Note,
    TabNote,
    FretPosition,
    PcmBuffer,
    CancellationToken,
    LickTabError,
    DecodeError,
    MalformedContainerError,
    NoOnsetsFoundError,
    NoPitchedNotesError,
    InferenceUnavailableError,
)

# Input layer
from .input import AudioLoader

# Analysis layer
from .analysis import OnsetDetector, PitchEstimator, TempoEstimator

# Inference layer
from .inference import KeyEstimator

# Transcription layer
from .transcription import AlgorithmicTranscriber, ModelTranscriber, BasicPitchModel

# Processing layer
from .processing import FretMapper, RawNoteConsolidator, NoteDeduplicator

# Output layer
from .output import TabEncoder, WavCodec, MIDIExporter

# Synthesis layer
from .synthesis import ChordSynthesizer, AudioMixer, ChordSpec, RhythmPattern

# Pipelines
from .config import TranscriptionConfig
from .pipeline import TranscriptionPipeline, TranscriptionResult, BackingTrackRenderer

__all__ = [
    # Core
    "Note",
    "TabNote",
    "FretPosition",
    "PcmBuffer",
    "CancellationToken",
    "LickTabError",
    "DecodeError",
    "MalformedContainerError",
    "NoOnsetsFoundError",
    "NoPitchedNotesError",
    "InferenceUnavailableError",
    # Input
    "AudioLoader",
    # Analysis
    "OnsetDetector",
    "PitchEstimator",
    "TempoEstimator",
    # Inference
    "KeyEstimator",
    # Transcription
    "AlgorithmicTranscriber",
    "ModelTranscriber",
    "BasicPitchModel",
    # Processing
    "FretMapper",
    "RawNoteConsolidator",
    "NoteDeduplicator",
    # Output
    "TabEncoder",
    "WavCodec",
    "MIDIExporter",
    # Synthesis
    "ChordSynthesizer",
    "AudioMixer",
    "ChordSpec",
    "RhythmPattern",
    # Pipelines
    "TranscriptionConfig",
    "TranscriptionPipeline",
    "TranscriptionResult",
    "BackingTrackRenderer",
]
