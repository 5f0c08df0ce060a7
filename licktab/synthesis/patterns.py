"""Rhythm patterns - timed note events applied across a chord."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple


class PatternType(str, Enum):
    """Which chord pitches sound at each event."""

    BLOCK = "block"
    ARPEGGIATED = "arpeggiated"
    STRUMMING = "strumming"
    BASS = "bass"
    CUSTOM = "custom"


@dataclass(frozen=True)
class NoteEvent:
    """One hit within a pattern; times are in beats."""

    beat: float = 0.0
    subdivision: float = 0.0  # Fraction of a beat added to `beat`
    velocity: float = 0.8  # 0.0 - 1.0
    duration: float = 0.5
    note_offset: int = 0  # Chord tone index for arpeggiated/strumming patterns

    @property
    def start(self) -> float:
        return self.beat + self.subdivision

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NoteEvent":
        return cls(
            beat=float(data.get("beat", 0.0)),
            subdivision=float(data.get("subdivision", 0.0)),
            velocity=float(data.get("velocity", 0.8)),
            duration=float(data.get("duration", 0.5)),
            note_offset=int(data.get("note_offset", data.get("noteOffset", 0))),
        )


@dataclass(frozen=True)
class ScheduledEvent:
    """A pattern event resolved against one chord, in beats from the chord start."""

    start: float
    duration: float
    velocity: float
    note_offset: int

    @property
    def end(self) -> float:
        return self.start + self.duration


@dataclass(frozen=True)
class RhythmPattern:
    """Ordered note events spanning `beats_per_pattern` beats."""

    name: str
    events: Tuple[NoteEvent, ...]
    pattern_type: PatternType = PatternType.BLOCK
    beats_per_pattern: float = 4.0
    description: str = ""

    def __post_init__(self):
        if self.beats_per_pattern <= 0:
            raise ValueError(f"beats_per_pattern must be positive, got {self.beats_per_pattern}")

    def schedule(self, chord_beats: float) -> List[ScheduledEvent]:
        """
        Stretch the pattern over a chord.

        Event times are scaled by chord_beats / beats_per_pattern. An event
        longer than a tenth of a beat is cut where the next event starts,
        and every event is clamped to the chord.

        Args:
            chord_beats: Chord length in beats

        Returns:
            Non-empty events in pattern order
        """
        scale = chord_beats / self.beats_per_pattern
        starts = [min(max(e.start * scale, 0.0), chord_beats) for e in self.events]
        scheduled = []

        for i, event in enumerate(self.events):
            start = starts[i]
            duration = event.duration * scale
            end = start + duration

            if i + 1 < len(self.events):
                next_start = starts[i + 1]
                if next_start > start and duration > 0.1:
                    end = min(end, next_start)

            end = min(end, chord_beats)
            if start >= end:
                continue
            scheduled.append(ScheduledEvent(
                start=start,
                duration=end - start,
                velocity=event.velocity,
                note_offset=event.note_offset,
            ))
        return scheduled

    def select_pitches(self, pitches: Sequence[int], event: ScheduledEvent) -> List[int]:
        """Chord pitches sounding at an event."""
        if not pitches:
            return []
        if self.pattern_type in (PatternType.ARPEGGIATED, PatternType.STRUMMING):
            return [pitches[math.floor(event.note_offset) % len(pitches)]]
        if self.pattern_type == PatternType.BASS:
            return [pitches[0]]
        return list(pitches)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RhythmPattern":
        """Build from a record using snake_case or camelCase keys."""
        events = data.get("events", data.get("noteEvents", []))
        return cls(
            name=data.get("name", "custom"),
            events=tuple(NoteEvent.from_dict(e) for e in events),
            pattern_type=PatternType(data.get("pattern_type", data.get("patternType", "block"))),
            beats_per_pattern=float(data.get("beats_per_pattern", data.get("beatsPerPattern", 4.0))),
            description=data.get("description", ""),
        )


def _hits(beats: Iterable[float], **kwargs) -> Tuple[NoteEvent, ...]:
    events = []
    for beat in beats:
        whole = math.floor(beat)
        events.append(NoteEvent(beat=whole, subdivision=beat - whole, **kwargs))
    return tuple(events)


def _style(name: str, beats: Iterable[float], description: str) -> RhythmPattern:
    return RhythmPattern(
        name=name,
        events=_hits(beats, velocity=0.8, duration=0.5),
        description=description,
    )


def _arpeggio(name: str, steps: int, description: str) -> RhythmPattern:
    per_step = 4.0 / steps
    events = tuple(
        NoteEvent(
            beat=math.floor(i * per_step),
            subdivision=i * per_step - math.floor(i * per_step),
            velocity=0.8,
            duration=per_step,
            note_offset=i,
        )
        for i in range(steps)
    )
    return RhythmPattern(name, events, PatternType.ARPEGGIATED, 4.0, description)


BUILTIN_PATTERNS: Dict[str, RhythmPattern] = {
    p.name: p
    for p in (
        _style("swing", [0, 2], "Two-feel swing comping"),
        _style("bossa", [0, 1.5, 3], "Bossa nova anticipation"),
        _style("latin", [0, 0.5, 1.5, 2, 3], "Latin montuno"),
        _style("ballad", [0], "One sustained hit per bar"),
        _style("funk", [0, 0.5, 1.5, 2.5, 3], "Syncopated funk stabs"),
        _style("rock", [0, 2], "Half-note rock pulse"),
        RhythmPattern(
            "block",
            (NoteEvent(beat=0, duration=4.0),),
            PatternType.BLOCK,
            description="Whole chord held for the bar",
        ),
        _arpeggio("arpeggio-up", 8, "Eighth-note rising arpeggio"),
        RhythmPattern(
            "strum",
            tuple(NoteEvent(beat=i, duration=1.0, velocity=0.9, note_offset=i) for i in range(4)),
            PatternType.STRUMMING,
            description="Quarter-note strums through the chord",
        ),
        RhythmPattern(
            "bass",
            _hits([0, 2], velocity=0.9, duration=1.5),
            PatternType.BASS,
            description="Root on beats one and three",
        ),
    )
}


class PatternRegistry:
    """Lookup of rhythm patterns by id."""

    def __init__(self, patterns: Optional[Dict[str, RhythmPattern]] = None):
        self._patterns = dict(BUILTIN_PATTERNS if patterns is None else patterns)

    def register(self, pattern: RhythmPattern) -> None:
        self._patterns[pattern.name.lower()] = pattern

    def get(self, pattern_id: str) -> RhythmPattern:
        try:
            return self._patterns[pattern_id.lower()]
        except KeyError:
            raise KeyError(
                f"Unknown rhythm pattern {pattern_id!r}. Available: {', '.join(sorted(self._patterns))}"
            ) from None

    def __contains__(self, pattern_id: str) -> bool:
        return pattern_id.lower() in self._patterns

    def __iter__(self):
        return iter(sorted(self._patterns.values(), key=lambda p: p.name))

    def __len__(self) -> int:
        return len(self._patterns)
