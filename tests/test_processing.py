"""Tests for fret mapping, consolidation, deduplication, articulation and quantization."""

import pytest

from licktab.core import (
    FretPosition,
    TabNote,
    RawNote,
    ModelDetection,
    AlgorithmicDetection,
)
from licktab.processing import (
    FretMapper,
    Tuning,
    RawNoteConsolidator,
    NoteDeduplicator,
    ArticulationDetector,
    Quantizer,
)


def make_note(time, string="e", fret=5, velocity=0.8, string_index=0, pitch=69):
    return TabNote(
        time=time,
        duration=0.25,
        position=FretPosition(string, fret, string_index),
        pitch=pitch,
        velocity=velocity,
    )


class TestFretMapper:
    """Position selection on a standard-tuned guitar."""

    @pytest.fixture
    def mapper(self):
        return FretMapper()

    def test_e4_prefers_middle_string(self, mapper):
        assert mapper.map_pitch(64) == FretPosition("G", 9, 2)

    def test_low_e_is_open_string(self, mapper):
        assert mapper.map_pitch(40) == FretPosition("E", 0, 5)

    @pytest.mark.parametrize("pitch", [30, 39, 87, 100])
    def test_out_of_range_returns_none(self, mapper, pitch):
        assert mapper.map_pitch(pitch) is None

    def test_previous_position_keeps_string(self, mapper):
        previous = FretPosition("B", 5, 1)
        assert mapper.map_pitch(62, previous) == FretPosition("B", 3, 1)

    def test_deterministic(self, mapper):
        results = {mapper.map_pitch(57) for _ in range(5)}
        assert len(results) == 1

    def test_tie_goes_to_higher_string(self, mapper):
        # G2 and D7 score the same with no previous note
        assert mapper.map_pitch(57) == FretPosition("G", 2, 2)

    def test_candidates_cover_all_strings(self, mapper):
        strings = [p.string for p in mapper.candidates(64)]
        assert strings == ["e", "B", "G", "D", "A"]

    def test_sequence_carries_hand_position(self, mapper):
        positions = mapper.map_sequence([57, 64, 200])
        assert positions[0] == FretPosition("G", 2, 2)
        assert positions[1] == FretPosition("B", 5, 1)
        assert positions[2] is None

    def test_position_round_trip(self, mapper):
        position = mapper.map_pitch(71)
        assert mapper.position_to_midi(position) == 71
        assert mapper.position_to_frequency(FretPosition("A", 0, 4)) == pytest.approx(110.0)

    def test_custom_tuning(self):
        drop_d = Tuning(("e", "B", "G", "D", "A", "D"), (64, 59, 55, 50, 45, 38))
        assert FretMapper(drop_d).map_pitch(38) == FretPosition("D", 0, 5)

    def test_tuning_validates_lengths(self):
        with pytest.raises(ValueError):
            Tuning(("e", "B"), (64,))


class TestRawNoteConsolidator:
    """Merging of wobbling model detections."""

    def test_merges_close_notes(self):
        notes = [
            RawNote(0.13, 0.4, 64.6, 0.6, (200, 210, 220)),
            RawNote(0.1, 0.5, 64.2, 0.8, (0, 60, 120, 210)),
            RawNote(1.0, 1.5, 57.0, 0.7),
        ]
        merged, stats = RawNoteConsolidator().consolidate(notes)

        assert len(merged) == 2
        first = merged[0]
        assert first.onset == 0.1
        assert first.offset == 0.5
        assert first.pitch == pytest.approx(64.4)
        assert first.amplitude == 0.8
        assert first.pitch_bends == (0, 60, 120, 210, 200, 210, 220)
        assert stats.input_count == 3
        assert stats.merged == 1

    def test_distant_pitch_not_merged(self):
        notes = [RawNote(0.0, 0.5, 60.0, 0.5), RawNote(0.02, 0.5, 64.0, 0.5)]
        merged, stats = RawNoteConsolidator().consolidate(notes)
        assert len(merged) == 2
        assert stats.merged == 0

    def test_distant_time_not_merged(self):
        notes = [RawNote(0.0, 0.5, 60.0, 0.5), RawNote(0.2, 0.5, 60.2, 0.5)]
        merged, _ = RawNoteConsolidator().consolidate(notes)
        assert len(merged) == 2

    def test_empty(self):
        merged, stats = RawNoteConsolidator().consolidate([])
        assert merged == []
        assert stats.merged == 0


class TestNoteDeduplicator:
    """Same-string collision removal."""

    def test_louder_note_survives(self):
        notes = [make_note(0.0, velocity=0.5), make_note(0.03, fret=7, velocity=0.9)]
        kept, stats = NoteDeduplicator().deduplicate(notes)

        assert len(kept) == 1
        assert kept[0].fret == 7
        assert stats.removed == 1
        assert stats.original_count == 2

    def test_quieter_duplicate_dropped(self):
        notes = [make_note(0.0, velocity=0.9), make_note(0.03, fret=7, velocity=0.2)]
        kept, _ = NoteDeduplicator().deduplicate(notes)
        assert [n.fret for n in kept] == [5]

    def test_different_strings_kept(self):
        notes = [make_note(0.0), make_note(0.01, string="B", string_index=1)]
        kept, stats = NoteDeduplicator().deduplicate(notes)
        assert len(kept) == 2
        assert stats.removed == 0

    def test_spaced_notes_kept_in_order(self):
        notes = [make_note(0.3), make_note(0.0), make_note(0.1)]
        kept, _ = NoteDeduplicator().deduplicate(notes)
        assert [n.time for n in kept] == [0.0, 0.1, 0.3]


class TestArticulationDetector:
    """Bend/vibrato classification from pitch-bend contours."""

    @pytest.fixture
    def detector(self):
        return ArticulationDetector()

    def test_wide_rise_is_bend(self, detector):
        assert detector.detect(ModelDetection((0, 50, 150, 210))) == (2, False)

    def test_small_oscillation_is_vibrato(self, detector):
        assert detector.detect(ModelDetection((-20, 20, -20, 20))) == (None, True)

    def test_wide_span_below_a_semitone_is_vibrato(self, detector):
        assert detector.detect(ModelDetection((-60, 0, 40))) == (None, True)

    def test_span_at_bend_threshold_is_not_a_bend(self, detector):
        assert detector.detect(ModelDetection((50, 90, 125))) == (None, True)
        assert detector.detect(ModelDetection((50, 90, 125.5))) == (1, False)

    def test_flat_contour_is_plain(self, detector):
        assert detector.detect(ModelDetection((0, 5, -5, 0))) == (None, False)

    def test_short_contour_ignored(self, detector):
        assert detector.detect(ModelDetection((0, 200))) == (None, False)

    def test_non_numeric_contour_ignored(self, detector):
        assert detector.detect(ModelDetection(("a", "b", "c"))) == (None, False)

    def test_nan_contour_ignored(self, detector):
        assert detector.detect(ModelDetection((0.0, float("nan"), 10.0))) == (None, False)

    def test_algorithmic_source_is_plain(self, detector):
        assert detector.detect(AlgorithmicDetection()) == (None, False)

    def test_apply_tags_copies(self, detector):
        note = make_note(0.0)
        note.source = ModelDetection((0, 100, 200))
        tagged = detector.apply([note])
        assert tagged[0].bend_semitones == 2
        assert note.bend_semitones is None


class TestQuantizer:
    """Time-to-slot mapping."""

    def test_grid_at_120(self):
        q = Quantizer(tempo=120)
        assert q.beat_duration == 0.5
        assert q.grid_duration == 0.125
        assert q.slots_per_measure == 16
        assert q.slot(1.875) == 15
        assert q.locate(17) == (1, 1)

    def test_measure_count_at_least_one(self):
        q = Quantizer(tempo=120)
        assert q.measure_count(0.0) == 1
        assert q.measure_count(2.0) == 1
        assert q.measure_count(2.1) == 2

    def test_rejects_bad_tempo(self):
        with pytest.raises(ValueError):
            Quantizer(tempo=0)
