"""Note types - MIDI note events and fretted tab notes."""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple, Union
import numpy as np

from .constants import PITCH_NAMES


@dataclass
class Note:
    """Represents a musical note."""

    pitch: int  # MIDI pitch (0-127)
    onset: float  # Start time in seconds
    offset: float  # End time in seconds
    velocity: int = 64  # MIDI velocity (0-127)

    @property
    def duration(self) -> float:
        """Note duration in seconds."""
        return self.offset - self.onset

    @property
    def pitch_name(self) -> str:
        """Get note name (e.g., 'C4', 'A#3')."""
        return midi_to_name(self.pitch)

    @staticmethod
    def freq_to_midi(freq: float) -> int:
        """Convert frequency (Hz) to MIDI pitch."""
        if freq <= 0:
            return 0
        return int(round(69 + 12 * np.log2(freq / 440.0)))

    @staticmethod
    def midi_to_freq(midi: float) -> float:
        """Convert MIDI pitch to frequency (Hz)."""
        return 440.0 * (2 ** ((midi - 69) / 12.0))


def midi_to_name(pitch: int) -> str:
    octave = (pitch // 12) - 1
    return f"{PITCH_NAMES[pitch % 12]}{octave}"


@dataclass(frozen=True)
class FretPosition:
    """A playable string/fret location on a fretted instrument."""

    string: str  # String label, e.g. "e" or "A"
    fret: int  # 0 = open string
    string_index: int  # 0 = highest-pitched string


@dataclass(frozen=True)
class AlgorithmicDetection:
    """Note found by onset detection + YIN; carries no pitch-bend data."""


@dataclass(frozen=True)
class ModelDetection:
    """Note emitted by a neural pitch model, with its pitch-bend contour in cents."""

    pitch_bends: Tuple[float, ...] = ()


NoteSource = Union[AlgorithmicDetection, ModelDetection]


@dataclass
class RawNote:
    """Model output before fret selection.

    Pitch stays fractional so that consolidation can average wobbling
    detections before they collapse onto a fret.
    """

    onset: float
    offset: float
    pitch: float  # MIDI, may be fractional after merging
    amplitude: float  # 0.0 - 1.0
    pitch_bends: Tuple[float, ...] = ()

    @property
    def duration(self) -> float:
        return self.offset - self.onset


@dataclass
class TabNote:
    """A note placed on the fretboard, ready for tablature."""

    time: float  # Onset in seconds
    duration: float
    position: FretPosition
    pitch: int  # MIDI pitch
    velocity: float = 0.8  # 0.0 - 1.0
    bend_semitones: Optional[int] = None
    has_vibrato: bool = False
    source: NoteSource = field(default_factory=AlgorithmicDetection)

    @property
    def string(self) -> str:
        return self.position.string

    @property
    def fret(self) -> int:
        return self.position.fret

    @property
    def pitch_name(self) -> str:
        return midi_to_name(self.pitch)

    def with_articulation(
        self, bend_semitones: Optional[int], has_vibrato: bool
    ) -> "TabNote":
        """Return a copy tagged with the given articulation."""
        return replace(self, bend_semitones=bend_semitones, has_vibrato=has_vibrato)

    def to_midi_note(self) -> Note:
        """Convert to a MIDI note event."""
        velocity = int(round(np.clip(self.velocity, 0.0, 1.0) * 127))
        return Note(
            pitch=self.pitch,
            onset=self.time,
            offset=self.time + max(self.duration, 0.01),
            velocity=max(velocity, 1),
        )
