"""Processing layer - Note-level post-processing.

This layer refines detected notes:
- Raw note consolidation (model path, before fret mapping)
- Fretboard mapping
- Same-string deduplication
- Bend/vibrato tagging
- Slot quantization for tablature
"""

from .quantize import Quantizer
from .fretboard import FretMapper, Tuning, STANDARD_TUNING
from .consolidate import RawNoteConsolidator, ConsolidationConfig, ConsolidationStats
from .cleanup import (
    NoteDeduplicator,
    DedupConfig,
    DedupStats,
    ArticulationDetector,
    ArticulationConfig,
)

__all__ = [
    "Quantizer",
    "FretMapper",
    "Tuning",
    "STANDARD_TUNING",
    "RawNoteConsolidator",
    "ConsolidationConfig",
    "ConsolidationStats",
    "NoteDeduplicator",
    "DedupConfig",
    "DedupStats",
    "ArticulationDetector",
    "ArticulationConfig",
]
