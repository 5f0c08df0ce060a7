"""Core types and constants for licktab."""

from .note import (
    Note,
    FretPosition,
    TabNote,
    RawNote,
    NoteSource,
    AlgorithmicDetection,
    ModelDetection,
    midi_to_name,
)
from .audio import PcmBuffer, normalize_peak
from .cancel import CancellationToken
from .errors import (
    LickTabError,
    DecodeError,
    AudioTooLongError,
    MalformedContainerError,
    NoOnsetsFoundError,
    NoPitchedNotesError,
    InferenceUnavailableError,
    TranscriptionCancelledError,
)
from .constants import (
    PITCH_NAMES,
    DEFAULT_SR,
    MODEL_SR,
    DEFAULT_TEMPO,
    MAX_FRET,
)

__all__ = [
    "Note",
    "FretPosition",
    "TabNote",
    "RawNote",
    "NoteSource",
    "AlgorithmicDetection",
    "ModelDetection",
    "midi_to_name",
    "PcmBuffer",
    "normalize_peak",
    "CancellationToken",
    "LickTabError",
    "DecodeError",
    "AudioTooLongError",
    "MalformedContainerError",
    "NoOnsetsFoundError",
    "NoPitchedNotesError",
    "InferenceUnavailableError",
    "TranscriptionCancelledError",
    "PITCH_NAMES",
    "DEFAULT_SR",
    "MODEL_SR",
    "DEFAULT_TEMPO",
    "MAX_FRET",
]
