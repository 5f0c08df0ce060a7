"""Slot quantization - map note times onto the tablature grid."""

import math
from typing import Tuple

from ..core.constants import DEFAULT_TEMPO, DEFAULT_BEATS_PER_MEASURE, DEFAULT_SLOTS_PER_BEAT


class Quantizer:
    """Quantize times to fixed-width character slots."""

    def __init__(
        self,
        tempo: float = DEFAULT_TEMPO,
        beats_per_measure: int = DEFAULT_BEATS_PER_MEASURE,
        slots_per_beat: int = DEFAULT_SLOTS_PER_BEAT,
    ):
        """
        Initialize Quantizer.

        Args:
            tempo: Tempo in BPM
            beats_per_measure: Beats in one measure
            slots_per_beat: Grid resolution (4 = 16th notes)
        """
        if tempo <= 0:
            raise ValueError(f"tempo must be positive, got {tempo}")
        self.tempo = tempo
        self.beats_per_measure = beats_per_measure
        self.slots_per_beat = slots_per_beat

    @property
    def beat_duration(self) -> float:
        """Duration of one beat in seconds."""
        return 60.0 / self.tempo

    @property
    def measure_duration(self) -> float:
        return self.beat_duration * self.beats_per_measure

    @property
    def slots_per_measure(self) -> int:
        return self.beats_per_measure * self.slots_per_beat

    @property
    def grid_duration(self) -> float:
        """Duration of one slot in seconds."""
        return self.beat_duration / self.slots_per_beat

    def measure_count(self, duration: float) -> int:
        """Number of measures needed to hold `duration` seconds (at least one)."""
        return max(1, math.ceil(duration / self.measure_duration))

    def slot(self, time: float) -> int:
        """Nearest slot index for a time in seconds."""
        return int(round(time / self.beat_duration * self.slots_per_beat))

    def locate(self, slot: int) -> Tuple[int, int]:
        """Split an absolute slot into (measure, slot within measure)."""
        return divmod(slot, self.slots_per_measure)
