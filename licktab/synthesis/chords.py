"""Chord symbols - parse chord names into MIDI pitch sets."""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

_CHORD_RE = re.compile(r"^([A-G][#b]?)(.*)$")

_LETTER_OFFSETS = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}

MAJOR_TRIAD = (0, 4, 7)

CHORD_QUALITIES: Dict[str, Tuple[int, ...]] = {
    "": MAJOR_TRIAD,
    "maj": MAJOR_TRIAD,
    "major": MAJOR_TRIAD,
    "m": (0, 3, 7),
    "min": (0, 3, 7),
    "minor": (0, 3, 7),
    "dim": (0, 3, 6),
    "aug": (0, 4, 8),
    "maj7": (0, 4, 7, 11),
    "major7": (0, 4, 7, 11),
    "m7": (0, 3, 7, 10),
    "min7": (0, 3, 7, 10),
    "minor7": (0, 3, 7, 10),
    "7": (0, 4, 7, 10),
    "dom7": (0, 4, 7, 10),
    "dim7": (0, 3, 6, 9),
}


def root_to_midi(root: str, octave: int = 4) -> int:
    """MIDI pitch of a root such as "C", "F#" or "Bb" in the given octave (C4 = 60)."""
    offset = _LETTER_OFFSETS[root[0]]
    if root[1:] == "#":
        offset += 1
    elif root[1:] == "b":
        offset -= 1
    return (octave + 1) * 12 + offset


def _lookup_quality(quality: str) -> Tuple[int, ...]:
    intervals = CHORD_QUALITIES.get(quality)
    # Spelled-out qualities ("Maj7", "MIN") ignore case; a lone "M" stays major
    if intervals is None and sum(c.isalpha() for c in quality) > 1:
        intervals = CHORD_QUALITIES.get(quality.lower())
    return intervals if intervals is not None else MAJOR_TRIAD


def parse_chord(name: str, octave: int = 4) -> List[int]:
    """
    Resolve a chord name to MIDI pitches.

    Unrecognised qualities fall back to a major triad on the root.

    Args:
        name: Chord symbol, e.g. "C", "Am", "F#m7", "Bbmaj7"
        octave: Octave of the root

    Returns:
        Ascending MIDI pitches

    Raises:
        ValueError: If the root cannot be parsed
    """
    match = _CHORD_RE.match(name.strip())
    if match is None:
        raise ValueError(f"Cannot parse chord name: {name!r}")

    root, quality = match.groups()
    intervals = _lookup_quality(quality.strip())
    base = root_to_midi(root, octave)
    return [base + interval for interval in intervals]


@dataclass(frozen=True)
class ChordSpec:
    """One chord of a progression: a name or explicit pitches, and its length in beats."""

    chord_name: Optional[str] = None
    midi_notes: Tuple[int, ...] = ()
    beats: float = 4.0
    rhythm_pattern_id: Optional[str] = None

    def __post_init__(self):
        if not self.chord_name and not self.midi_notes:
            raise ValueError("ChordSpec needs a chord_name or midi_notes")
        if self.beats <= 0:
            raise ValueError(f"beats must be positive, got {self.beats}")

    def pitches(self, octave: int = 4) -> List[int]:
        if self.midi_notes:
            return list(self.midi_notes)
        return parse_chord(self.chord_name, octave)

    @property
    def label(self) -> str:
        return self.chord_name or "+".join(str(p) for p in self.midi_notes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChordSpec":
        """Build from a record using snake_case or camelCase keys."""
        return cls(
            chord_name=data.get("chord_name", data.get("chordName")),
            midi_notes=tuple(data.get("midi_notes", data.get("midiNotes")) or ()),
            beats=float(data.get("beats", data.get("duration", 4.0))),
            rhythm_pattern_id=data.get("rhythm_pattern_id", data.get("rhythmPatternId")),
        )
