"""Synthesis layer - Render symbolic music to PCM.

This layer turns chord progressions into audio:
- Chord symbol parsing
- Rhythm patterns and presets
- Oscillator synthesis with envelopes
- Stem mixing (sequential and overlay)
"""

from .chords import ChordSpec, parse_chord, CHORD_QUALITIES
from .patterns import (
    RhythmPattern,
    NoteEvent,
    PatternType,
    PatternRegistry,
    ScheduledEvent,
    BUILTIN_PATTERNS,
)
from .synth import ChordSynthesizer, SynthConfig, ScheduledNote, TabSynthesizer
from .mixer import AudioMixer, MixSource, MixMode

__all__ = [
    "ChordSpec",
    "parse_chord",
    "CHORD_QUALITIES",
    "RhythmPattern",
    "NoteEvent",
    "PatternType",
    "PatternRegistry",
    "ScheduledEvent",
    "BUILTIN_PATTERNS",
    "ChordSynthesizer",
    "SynthConfig",
    "ScheduledNote",
    "TabSynthesizer",
    "AudioMixer",
    "MixSource",
    "MixMode",
]
