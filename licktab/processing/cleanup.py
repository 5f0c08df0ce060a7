"""Note cleanup - Deduplicate fretted notes and tag bends/vibrato.

This module provides:
- Same-string deduplication (collapse re-triggers of one pluck)
- Articulation detection from model pitch-bend contours
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..core import TabNote, NoteSource, ModelDetection

logger = logging.getLogger(__name__)


@dataclass
class DedupConfig:
    """Configuration for same-string deduplication.

    Attributes:
        time_window: Notes on one string closer than this collide (default: 0.05)
    """

    time_window: float = 0.05


@dataclass
class DedupStats:
    """Statistics from deduplication."""

    kept: int = 0
    removed: int = 0

    @property
    def original_count(self) -> int:
        return self.kept + self.removed


class NoteDeduplicator:
    """Remove collisions of several detections on one string.

    Notes are visited in time order. A note landing on the same string within
    the time window of the last note kept for that string collides with it,
    and only the higher-velocity note of the pair survives.
    """

    def __init__(self, config: Optional[DedupConfig] = None):
        self.config = config or DedupConfig()

    def deduplicate(self, notes: List[TabNote]) -> Tuple[List[TabNote], DedupStats]:
        """
        Deduplicate notes.

        Args:
            notes: Fretted notes in any order

        Returns:
            Tuple of (surviving notes sorted by time, stats)
        """
        kept: List[TabNote] = []
        last_on_string: Dict[str, int] = {}
        removed = 0

        for note in sorted(notes, key=lambda n: n.time):
            index = last_on_string.get(note.string)
            if index is not None and abs(note.time - kept[index].time) < self.config.time_window:
                removed += 1
                if note.velocity > kept[index].velocity:
                    kept[index] = note
                continue

            last_on_string[note.string] = len(kept)
            kept.append(note)

        kept.sort(key=lambda n: n.time)
        stats = DedupStats(kept=len(kept), removed=removed)
        if removed:
            logger.debug("Removed %d duplicate notes", removed)
        return kept, stats


@dataclass
class ArticulationConfig:
    """Thresholds for bend/vibrato classification.

    Attributes:
        bend_threshold_cents: Contour span that counts as a bend (default: 75)
        vibrato_threshold_cents: Smaller span that counts as vibrato (default: 35)
        min_samples: Contours shorter than this are ignored (default: 3)
    """

    bend_threshold_cents: float = 75.0
    vibrato_threshold_cents: float = 35.0
    min_samples: int = 3


class ArticulationDetector:
    """Classify a note's pitch-bend contour as bend, vibrato or neither.

    Bends take priority: a contour that qualifies as a bend is never also
    tagged as vibrato.
    """

    def __init__(self, config: Optional[ArticulationConfig] = None):
        self.config = config or ArticulationConfig()

    def detect(self, source: NoteSource) -> Tuple[Optional[int], bool]:
        """
        Classify a note source.

        Args:
            source: AlgorithmicDetection or ModelDetection

        Returns:
            Tuple of (bend in semitones or None, has_vibrato)
        """
        if not isinstance(source, ModelDetection):
            return None, False

        try:
            return self._classify(source.pitch_bends)
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed pitch-bend data: %s", exc)
            return None, False

    def _classify(self, bends) -> Tuple[Optional[int], bool]:
        cents = [float(b) for b in bends]
        if len(cents) < self.config.min_samples:
            return None, False
        if not all(math.isfinite(c) for c in cents):
            raise ValueError("pitch bend contour contains non-finite values")

        highest = max(cents)
        span = highest - min(cents)

        if span > self.config.bend_threshold_cents:
            semitones = int(round(highest / 100))
            if semitones >= 1:
                return semitones, False

        if span > self.config.vibrato_threshold_cents:
            return None, True

        return None, False

    def apply(self, notes: List[TabNote]) -> List[TabNote]:
        """Return copies of notes tagged from their sources."""
        tagged = []
        for note in notes:
            bend, vibrato = self.detect(note.source)
            tagged.append(note.with_articulation(bend, vibrato))
        return tagged
