"""Raw note consolidation - merge wobbling model detections before fret mapping.

Neural pitch trackers often split one bent or sung note into several short
detections a fraction of a semitone apart. Merging them while pitch is still
continuous keeps the combined pitch-bend contour available for articulation
detection; after fret mapping that information is gone.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..core import RawNote

logger = logging.getLogger(__name__)


@dataclass
class ConsolidationConfig:
    """Configuration for raw note merging.

    Attributes:
        time_window: Maximum onset gap to merge in seconds (default: 0.07)
        pitch_window: Maximum pitch gap to merge in semitones (default: 1.5)
    """

    time_window: float = 0.07
    pitch_window: float = 1.5


@dataclass
class ConsolidationStats:
    """Statistics from consolidation."""

    input_count: int = 0
    output_count: int = 0

    @property
    def merged(self) -> int:
        return self.input_count - self.output_count


class RawNoteConsolidator:
    """Merge near-duplicate raw notes in time and pitch."""

    def __init__(self, config: Optional[ConsolidationConfig] = None):
        self.config = config or ConsolidationConfig()

    def consolidate(self, notes: List[RawNote]) -> Tuple[List[RawNote], ConsolidationStats]:
        """
        Merge adjacent raw notes that are close in both onset and pitch.

        A merge keeps the earlier onset, extends the end time, keeps the
        louder amplitude, averages pitch and concatenates pitch-bend samples.

        Args:
            notes: Raw model notes in any order

        Returns:
            Tuple of (merged notes sorted by onset, stats)
        """
        stats = ConsolidationStats(input_count=len(notes))
        merged: List[RawNote] = []

        for note in sorted(notes, key=lambda n: n.onset):
            if merged and self._should_merge(merged[-1], note):
                merged[-1] = self._merge(merged[-1], note)
            else:
                merged.append(note)

        stats.output_count = len(merged)
        if stats.merged:
            logger.debug("Consolidated %d raw notes into %d", stats.input_count, stats.output_count)
        return merged, stats

    def _should_merge(self, current: RawNote, note: RawNote) -> bool:
        return (
            note.onset - current.onset < self.config.time_window
            and abs(note.pitch - current.pitch) < self.config.pitch_window
        )

    @staticmethod
    def _merge(current: RawNote, note: RawNote) -> RawNote:
        return RawNote(
            onset=current.onset,
            offset=max(current.offset, note.offset),
            pitch=(current.pitch + note.pitch) / 2,
            amplitude=max(current.amplitude, note.amplitude),
            pitch_bends=tuple(current.pitch_bends) + tuple(note.pitch_bends),
        )
