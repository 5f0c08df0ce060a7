"""Fretboard mapping - choose a string/fret for each pitch."""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..core import FretPosition, Note
from ..core.constants import MAX_FRET


@dataclass(frozen=True)
class Tuning:
    """Open-string pitches ordered from the highest string to the lowest."""

    labels: Tuple[str, ...]
    open_pitches: Tuple[int, ...]

    def __post_init__(self):
        if len(self.labels) != len(self.open_pitches):
            raise ValueError("Tuning needs one label per open-string pitch")

    def __len__(self) -> int:
        return len(self.labels)

    def index_of(self, label: str) -> int:
        return self.labels.index(label)


# Standard 6-string guitar: e4 B3 G3 D3 A2 E2
STANDARD_TUNING = Tuning(
    labels=("e", "B", "G", "D", "A", "E"),
    open_pitches=(64, 59, 55, 50, 45, 40),
)


class FretMapper:
    """Pick the most comfortable position for a pitch.

    Candidates are scored and the lowest score wins:
        - frets above the comfort threshold cost 2 per fret
        - distance from the middle strings costs 1 per string
        - staying within reach of the previous note on the same string
          earns a large bonus, a reachable fret on another string a small one
        - every fret of hand movement costs 0.5
    Ties go to the higher-pitched string so the result is deterministic.
    """

    def __init__(
        self,
        tuning: Tuning = STANDARD_TUNING,
        max_fret: int = MAX_FRET,
        comfort_fret: int = 12,
        reach: int = 4,
        same_string_bonus: float = 10.0,
        nearby_bonus: float = 2.0,
    ):
        """
        Initialize FretMapper.

        Args:
            tuning: Open-string tuning, high to low
            max_fret: Highest playable fret
            comfort_fret: Frets above this are penalized
            reach: Fret distance considered within hand reach
            same_string_bonus: Score bonus for staying on the previous string
            nearby_bonus: Score bonus for a reachable fret on another string
        """
        self.tuning = tuning
        self.max_fret = max_fret
        self.comfort_fret = comfort_fret
        self.reach = reach
        self.same_string_bonus = same_string_bonus
        self.nearby_bonus = nearby_bonus

    def candidates(self, pitch: int) -> List[FretPosition]:
        """All positions that can play `pitch`."""
        positions = []
        for index, (label, base) in enumerate(zip(self.tuning.labels, self.tuning.open_pitches)):
            fret = pitch - base
            if 0 <= fret <= self.max_fret:
                positions.append(FretPosition(string=label, fret=fret, string_index=index))
        return positions

    def score(self, position: FretPosition, previous: Optional[FretPosition] = None) -> float:
        """Lower is better."""
        score = 0.0
        if position.fret > self.comfort_fret:
            score += (position.fret - self.comfort_fret) * 2

        center = (len(self.tuning) - 1) / 2
        score += abs(center - position.string_index)

        if previous is not None:
            distance = abs(position.fret - previous.fret)
            if distance <= self.reach:
                if position.string_index == previous.string_index:
                    score -= self.same_string_bonus
                else:
                    score -= self.nearby_bonus
            score += distance * 0.5

        return score

    def map_pitch(
        self, pitch: int, previous: Optional[FretPosition] = None
    ) -> Optional[FretPosition]:
        """
        Select a position for one pitch.

        Args:
            pitch: MIDI pitch
            previous: Position chosen for the preceding note, if any

        Returns:
            Best FretPosition, or None when the pitch is out of range
        """
        candidates = self.candidates(pitch)
        if not candidates:
            return None
        return min(candidates, key=lambda p: (self.score(p, previous), p.string_index))

    def map_sequence(self, pitches: Sequence[int]) -> List[Optional[FretPosition]]:
        """Map pitches in order, carrying hand position from note to note."""
        positions: List[Optional[FretPosition]] = []
        previous = None
        for pitch in pitches:
            position = self.map_pitch(pitch, previous)
            positions.append(position)
            if position is not None:
                previous = position
        return positions

    def position_to_midi(self, position: FretPosition) -> int:
        return self.tuning.open_pitches[position.string_index] + position.fret

    def position_to_frequency(self, position: FretPosition) -> float:
        """Frequency in Hz of a fretted position."""
        return Note.midi_to_freq(self.position_to_midi(position))
