"""Output layer - Export to various formats.

This layer handles exporting results to:
- Guitar tablature text
- WAV containers
- MIDI files
"""

from .tab import TabEncoder, TabConfig, TabGrid, TabScanEntry
from .wav import WavCodec
from .midi import MIDIExporter

__all__ = [
    "TabEncoder",
    "TabConfig",
    "TabGrid",
    "TabScanEntry",
    "WavCodec",
    "MIDIExporter",
]
