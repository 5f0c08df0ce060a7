"""Tablature encoding - place fretted notes on a fixed-width character grid.

Each string is a row of character slots; each measure holds
beats_per_measure * slots_per_beat slots. A note becomes a glyph run such as
"7", "12b14" or "5~" that is written whole or not at all.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..core import TabNote
from ..core.constants import DEFAULT_BEATS_PER_MEASURE, DEFAULT_SLOTS_PER_BEAT
from ..processing.fretboard import Tuning, STANDARD_TUNING
from ..processing.quantize import Quantizer

logger = logging.getLogger(__name__)

_GLYPH_RE = re.compile(r"(\d+)(?:b(\d+))?(~)?")
_ROW_RE = re.compile(r"^(\S+)\|(.*)\|$")


@dataclass
class TabConfig:
    """Configuration for tab encoding.

    Attributes:
        slots_per_beat: Characters per beat (default: 4, 16th-note resolution)
        beats_per_measure: Beats per measure (default: 4)
        probe_slots: How far past the nominal slot to look for room (default: 4)
        empty: Placeholder for an empty slot (default: "-")
        tuning: String labels, high to low
    """

    slots_per_beat: int = DEFAULT_SLOTS_PER_BEAT
    beats_per_measure: int = DEFAULT_BEATS_PER_MEASURE
    probe_slots: int = 4
    empty: str = "-"
    tuning: Tuning = STANDARD_TUNING


@dataclass
class TabGrid:
    """Encoded tablature with placement counters."""

    labels: Tuple[str, ...]
    rows: List[List[str]]
    slots_per_measure: int
    measures: int
    placed: int = 0
    dropped: int = 0
    placements: List[Tuple[TabNote, int]] = field(default_factory=list)

    def render(self) -> str:
        """Render as text: one `<label>|<row>|` line per string, measures separated by a blank line."""
        blocks = []
        for m in range(self.measures):
            start = m * self.slots_per_measure
            end = start + self.slots_per_measure
            lines = [
                f"{label}|{''.join(row[start:end])}|"
                for label, row in zip(self.labels, self.rows)
            ]
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class TabScanEntry:
    """A glyph read back from tab text."""

    string: str
    slot: int  # Absolute slot across measures
    fret: int
    bend_target: Optional[int] = None
    vibrato: bool = False


class TabEncoder:
    """Quantize notes to slots and typeset them with collision back-off."""

    def __init__(self, config: Optional[TabConfig] = None):
        self.config = config or TabConfig()

    @staticmethod
    def glyph(note: TabNote) -> str:
        """Glyph for one note: fret, optional bend target, optional vibrato."""
        text = str(note.fret)
        if note.bend_semitones:
            text += f"b{note.fret + note.bend_semitones}"
        if note.has_vibrato:
            text += "~"
        return text

    def encode(self, notes: Sequence[TabNote], duration: float, tempo: float) -> TabGrid:
        """
        Encode notes into a tab grid.

        Args:
            notes: Fretted notes
            duration: Length of the recording in seconds
            tempo: Tempo in BPM

        Returns:
            TabGrid; placed + dropped always equals len(notes)
        """
        quantizer = Quantizer(
            tempo=tempo,
            beats_per_measure=self.config.beats_per_measure,
            slots_per_beat=self.config.slots_per_beat,
        )
        labels = self.config.tuning.labels
        measures = quantizer.measure_count(duration)
        per_measure = quantizer.slots_per_measure
        total = measures * per_measure
        grid = TabGrid(
            labels=labels,
            rows=[[self.config.empty] * total for _ in labels],
            slots_per_measure=per_measure,
            measures=measures,
        )

        for note in sorted(notes, key=lambda n: n.time):
            if note.string not in labels:
                grid.dropped += 1
                continue

            nominal = quantizer.slot(note.time)
            if nominal < 0 or nominal >= total:
                grid.dropped += 1
                continue

            text = self.glyph(note)
            row = grid.rows[labels.index(note.string)]
            slot = self._find_slot(row, nominal, len(text), per_measure)
            if slot is None:
                grid.dropped += 1
                continue

            row[slot:slot + len(text)] = list(text)
            grid.placed += 1
            grid.placements.append((note, slot))

        if grid.dropped:
            logger.debug("Tab encoding placed %d notes, dropped %d", grid.placed, grid.dropped)
        return grid

    def _find_slot(self, row: List[str], nominal: int, width: int, per_measure: int) -> Optional[int]:
        empty = self.config.empty
        for offset in range(self.config.probe_slots + 1):
            start = nominal + offset
            end = start + width
            measure_start = (start // per_measure) * per_measure
            measure_end = measure_start + per_measure

            if end > measure_end or start >= len(row):
                continue
            if any(cell != empty for cell in row[start:end]):
                continue
            # Keep unrelated glyphs from fusing into one number
            if start > measure_start and row[start - 1] != empty:
                continue
            if end < measure_end and row[end] != empty:
                continue
            return start
        return None

    def render(self, notes: Sequence[TabNote], duration: float, tempo: float) -> str:
        return self.encode(notes, duration, tempo).render()

    @staticmethod
    def scan(text: str) -> List[TabScanEntry]:
        """
        Read glyphs back out of rendered tab text.

        Args:
            text: Output of TabGrid.render()

        Returns:
            Entries ordered by measure, then string, then slot
        """
        entries = []
        measure = 0
        width = None
        seen_row = False

        for line in text.splitlines():
            line = line.strip()
            if not line:
                if seen_row:
                    measure += 1
                    seen_row = False
                continue

            match = _ROW_RE.match(line)
            if match is None:
                raise ValueError(f"Not a tab row: {line!r}")
            label, row = match.groups()
            if width is None:
                width = len(row)
            seen_row = True

            for glyph in _GLYPH_RE.finditer(row):
                fret, bend, vibrato = glyph.groups()
                entries.append(TabScanEntry(
                    string=label,
                    slot=measure * width + glyph.start(),
                    fret=int(fret),
                    bend_target=int(bend) if bend else None,
                    vibrato=bool(vibrato),
                ))
        return entries
