"""Tests for tablature encoding and MIDI export."""

import dataclasses

import pretty_midi
import pytest

from licktab.core import FretPosition, TabNote
from licktab.output import TabEncoder, TabConfig, MIDIExporter
from licktab.processing import STANDARD_TUNING


def tab_note(time, string, fret, duration=0.25, bend=None, vibrato=False, velocity=0.8):
    index = STANDARD_TUNING.index_of(string)
    return TabNote(
        time=time,
        duration=duration,
        position=FretPosition(string, fret, index),
        pitch=STANDARD_TUNING.open_pitches[index] + fret,
        velocity=velocity,
        bend_semitones=bend,
        has_vibrato=vibrato,
    )


class TestTabEncoder:
    """Grid placement at 120 BPM: 8 slots per second, 16 per measure."""

    @pytest.fixture
    def encoder(self):
        return TabEncoder()

    def test_empty_grid_layout(self, encoder):
        text = encoder.render([], duration=4.0, tempo=120)
        blocks = text.split("\n\n")

        assert len(blocks) == 2
        for block in blocks:
            lines = block.split("\n")
            assert [line.split("|")[0] for line in lines] == ["e", "B", "G", "D", "A", "E"]
            assert all(line == f"{line[0]}|{'-' * 16}|" for line in lines)

    def test_glyphs(self, encoder):
        assert encoder.glyph(tab_note(0, "e", 7)) == "7"
        assert encoder.glyph(tab_note(0, "G", 12, bend=2)) == "12b14"
        assert encoder.glyph(tab_note(0, "D", 5, vibrato=True)) == "5~"

    def test_scan_recovers_placements(self, encoder):
        notes = [
            tab_note(0.0, "e", 0),
            tab_note(0.5, "B", 12, bend=2),
            tab_note(1.0, "G", 7, vibrato=True),
            tab_note(2.5, "E", 3),
        ]
        grid = encoder.encode(notes, duration=4.0, tempo=120)
        entries = TabEncoder.scan(grid.render())

        assert grid.placed == 4
        assert grid.dropped == 0
        found = {(e.string, e.slot, e.fret, e.bend_target, e.vibrato) for e in entries}
        assert found == {
            ("e", 0, 0, None, False),
            ("B", 4, 12, 14, False),
            ("G", 8, 7, None, True),
            ("E", 20, 3, None, False),
        }

    def test_collision_backs_off(self, encoder):
        notes = [tab_note(0.0, "e", 10), tab_note(0.05, "e", 10)]
        grid = encoder.encode(notes, duration=2.0, tempo=120)

        assert grid.placed == 2
        assert sorted(slot for _, slot in grid.placements) == [0, 3]
        assert grid.render().split("\n")[0] == "e|10-10-----------|"

    def test_crowded_note_dropped(self, encoder):
        notes = [tab_note(0.0, "e", 10), tab_note(0.05, "e", 10), tab_note(0.0, "e", 10)]
        grid = encoder.encode(notes, duration=2.0, tempo=120)

        assert grid.placed == 2
        assert grid.dropped == 1
        assert grid.placed + grid.dropped == len(notes)

    def test_glyph_never_crosses_measure_line(self, encoder):
        grid = encoder.encode([tab_note(1.875, "e", 12)], duration=4.0, tempo=120)

        assert grid.placements[0][1] == 16
        entries = TabEncoder.scan(grid.render())
        assert [(e.slot, e.fret) for e in entries] == [(16, 12)]

    def test_note_past_end_dropped(self, encoder):
        grid = encoder.encode([tab_note(10.0, "e", 3)], duration=2.0, tempo=120)
        assert grid.placed == 0
        assert grid.dropped == 1

    def test_unknown_string_dropped(self, encoder):
        note = TabNote(0.0, 0.25, FretPosition("X", 3, 9), 60)
        grid = encoder.encode([note], duration=2.0, tempo=120)
        assert grid.dropped == 1

    def test_notes_on_different_strings_share_a_slot(self, encoder):
        notes = [tab_note(0.0, "e", 0), tab_note(0.0, "B", 1), tab_note(0.0, "G", 0)]
        grid = encoder.encode(notes, duration=2.0, tempo=120)
        assert grid.placed == 3
        assert {slot for _, slot in grid.placements} == {0}

    def test_custom_resolution(self):
        encoder = TabEncoder(TabConfig(slots_per_beat=2, beats_per_measure=3))
        text = encoder.render([tab_note(0.5, "A", 2)], duration=1.5, tempo=120)
        assert text.split("\n")[4] == "A|--2---|"

    def test_scan_rejects_garbage(self):
        with pytest.raises(ValueError):
            TabEncoder.scan("not a tab line")


class TestMIDIExporter:
    """pretty_midi export of fretted notes."""

    def test_notes_and_bends(self):
        notes = [tab_note(0.0, "G", 9, duration=0.4, bend=2), tab_note(1.0, "D", 7, duration=0.5)]
        midi = MIDIExporter(tempo=100).tab_to_pretty_midi(notes)

        instrument = midi.instruments[0]
        assert instrument.program == 25
        assert [n.pitch for n in instrument.notes] == [64, 57]
        assert [b.pitch for b in instrument.pitch_bends] == [0, 8191, 0]
        assert instrument.pitch_bends[1].time == pytest.approx(0.2)

    def test_tab_note_to_midi_note(self):
        note = tab_note(1.5, "B", 3, duration=0.0, velocity=0.5).to_midi_note()

        assert dataclasses.astuple(note) == pytest.approx((62, 1.5, 1.51, 64))
        assert note.pitch_name == "D4"

    def test_export_writes_file(self, tmp_path):
        path = tmp_path / "out" / "lick.mid"
        MIDIExporter().export_tab([tab_note(0.0, "e", 5)], str(path))

        assert path.exists()
        loaded = pretty_midi.PrettyMIDI(str(path))
        assert len(loaded.instruments[0].notes) == 1
        assert loaded.instruments[0].notes[0].pitch == 69
