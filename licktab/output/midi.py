"""MIDI export functionality."""

import pretty_midi
from typing import List
from pathlib import Path

from ..core import Note, TabNote

# General MIDI program 25: Acoustic Guitar (steel)
GUITAR_PROGRAM = 25


class MIDIExporter:
    """Export notes to MIDI format."""

    def __init__(
        self,
        tempo: float = 120.0,
        instrument_name: str = "Acoustic Guitar",
        instrument_program: int = GUITAR_PROGRAM,
        bend_range: int = 2,
    ):
        """
        Initialize MIDIExporter.

        Args:
            tempo: Tempo in BPM
            instrument_name: MIDI instrument name
            instrument_program: MIDI program number (0-127)
            bend_range: Pitch wheel range in semitones
        """
        self.tempo = tempo
        self.instrument_name = instrument_name
        self.instrument_program = instrument_program
        self.bend_range = bend_range

    def export(self, notes: List[Note], output_path: str) -> None:
        """
        Export notes to MIDI file.

        Args:
            notes: List of Note objects
            output_path: Path to output MIDI file
        """
        self._write(self.notes_to_pretty_midi(notes), output_path)

    def export_tab(self, notes: List[TabNote], output_path: str) -> None:
        """Export fretted notes, rendering bends on the pitch wheel."""
        self._write(self.tab_to_pretty_midi(notes), output_path)

    def notes_to_pretty_midi(self, notes: List[Note]) -> pretty_midi.PrettyMIDI:
        """Convert notes to PrettyMIDI object without saving."""
        midi = pretty_midi.PrettyMIDI(initial_tempo=self.tempo)
        instrument = self._instrument()

        for note in notes:
            instrument.notes.append(pretty_midi.Note(
                velocity=note.velocity,
                pitch=note.pitch,
                start=note.onset,
                end=note.offset,
            ))

        midi.instruments.append(instrument)
        return midi

    def tab_to_pretty_midi(self, notes: List[TabNote]) -> pretty_midi.PrettyMIDI:
        """Convert fretted notes; a bent note ramps the wheel up over its first half."""
        midi = pretty_midi.PrettyMIDI(initial_tempo=self.tempo)
        instrument = self._instrument()

        for tab_note in notes:
            note = tab_note.to_midi_note()
            instrument.notes.append(pretty_midi.Note(
                velocity=note.velocity,
                pitch=note.pitch,
                start=note.onset,
                end=note.offset,
            ))
            if tab_note.bend_semitones:
                semitones = min(tab_note.bend_semitones, self.bend_range)
                target = min(pretty_midi.semitones_to_pitch_bend(semitones, self.bend_range), 8191)
                middle = note.onset + note.duration / 2
                instrument.pitch_bends.extend([
                    pretty_midi.PitchBend(pitch=0, time=note.onset),
                    pretty_midi.PitchBend(pitch=target, time=middle),
                    pretty_midi.PitchBend(pitch=0, time=note.offset),
                ])

        midi.instruments.append(instrument)
        return midi

    def _instrument(self) -> pretty_midi.Instrument:
        return pretty_midi.Instrument(
            program=self.instrument_program,
            name=self.instrument_name,
        )

    @staticmethod
    def _write(midi: pretty_midi.PrettyMIDI, output_path: str) -> None:
        # Ensure output directory exists
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        midi.write(str(output_path))
