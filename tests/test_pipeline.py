"""End-to-end tests for transcription and backing-track rendering."""

import asyncio

import numpy as np
import pytest

from licktab.config import TranscriptionConfig
from licktab.core import (
    CancellationToken,
    InferenceUnavailableError,
    PcmBuffer,
    RawNote,
    TranscriptionCancelledError,
)
from licktab.output import WavCodec
from licktab.pipeline import (
    BackingTrackRenderer,
    NO_NOTES_MESSAGE,
    ResultStatus,
    TranscriptionPipeline,
)
from licktab.processing import Tuning
from licktab.synthesis import ChordSpec, MixSource
from licktab.transcription import DetectionPath, PitchModel


class FakeModel(PitchModel):
    """Pitch model returning canned raw notes."""

    name = "fake"

    def __init__(self, notes):
        self.notes = notes
        self.calls = 0

    def predict(self, audio, sr):
        self.calls += 1
        return list(self.notes)


class BrokenModel(PitchModel):
    name = "broken"

    def predict(self, audio, sr):
        raise InferenceUnavailableError("model weights missing")


RAW_NOTES = [
    RawNote(0.1, 0.5, 64.2, 0.8, (0, 60, 120, 210)),
    RawNote(0.13, 0.4, 64.6, 0.6, (200, 210, 220)),
    RawNote(1.0, 1.5, 57.0, 0.7, (0, 20, -20, 20)),
    RawNote(1.5, 1.6, 70.0, 0.1),
]


@pytest.fixture
def two_pluck_pcm(two_plucks):
    audio, sr = two_plucks
    return PcmBuffer(audio, sr)


class TestAlgorithmicPath:
    """Onset + YIN transcription through the pipeline."""

    def test_two_plucks(self, two_pluck_pcm):
        result = TranscriptionPipeline().transcribe_pcm(two_pluck_pcm)

        assert result.ok
        assert result.path == DetectionPath.ALGORITHMIC
        assert [n.pitch for n in result.notes] == [57, 64]
        assert abs(result.notes[0].time - 0.0) < 0.05
        assert abs(result.notes[1].time - 1.0) < 0.05
        assert result.placed == 2
        assert result.dropped == 0
        assert result.confidence == 70.0
        assert result.fallback_reason is None
        assert result.key.root in ("A", "E")

    def test_first_note_lasts_until_second(self, two_pluck_pcm):
        notes = TranscriptionPipeline().transcribe_pcm(two_pluck_pcm).notes
        assert notes[0].duration == pytest.approx(notes[1].time - notes[0].time)
        assert notes[1].time + notes[1].duration == pytest.approx(2.0)

    def test_silence_reports_no_onsets(self, silence):
        audio, sr = silence
        result = TranscriptionPipeline().transcribe_pcm(PcmBuffer(audio, sr))

        assert not result.ok
        assert result.status == ResultStatus.NO_ONSETS
        assert result.message == NO_NOTES_MESSAGE
        assert result.notes == []
        assert result.tempo.bpm == 120

    def test_explicit_tempo(self, two_pluck_pcm):
        result = TranscriptionPipeline().transcribe_pcm(two_pluck_pcm, tempo=90)
        assert result.tempo.bpm == 90
        assert result.tempo.source == "explicit"

    def test_filename_tempo(self, two_pluck_pcm):
        result = TranscriptionPipeline().transcribe_pcm(two_pluck_pcm, filename="lick_100bpm.wav")
        assert result.tempo.bpm == 100
        assert result.tempo.source == "filename"

    def test_bytes_input(self, two_pluck_pcm):
        data = WavCodec.serialize(two_pluck_pcm)
        result = TranscriptionPipeline().transcribe_bytes(data, container="wav")
        assert [n.pitch for n in result.notes] == [57, 64]

    def test_file_input(self, two_pluck_pcm, tmp_path):
        path = tmp_path / "take_90bpm.wav"
        path.write_bytes(WavCodec.serialize(two_pluck_pcm))

        result = TranscriptionPipeline().transcribe_file(path)
        assert result.tempo.bpm == 90
        assert len(result.notes) == 2

    def test_cancelled_token(self, two_pluck_pcm):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(TranscriptionCancelledError):
            TranscriptionPipeline().transcribe_pcm(two_pluck_pcm, token=token)

    def test_async(self, two_pluck_pcm):
        data = WavCodec.serialize(two_pluck_pcm)
        result = asyncio.run(TranscriptionPipeline().transcribe_async(data, "wav"))
        assert result.ok
        assert len(result.notes) == 2

    def test_to_dict(self, two_pluck_pcm):
        summary = TranscriptionPipeline().transcribe_pcm(two_pluck_pcm).to_dict()
        assert summary["status"] == "ok"
        assert summary["path"] == "algorithmic"
        assert [n["pitch"] for n in summary["notes"]] == ["A3", "E4"]
        assert summary["tab"].startswith("e|")


class TestModelPath:
    """Neural path with an injected model handle."""

    @pytest.fixture
    def config(self):
        return TranscriptionConfig(use_model=True)

    def test_model_notes_post_processed(self, config, silence):
        audio, sr = silence
        model = FakeModel(RAW_NOTES)
        result = TranscriptionPipeline(config, model).transcribe_pcm(PcmBuffer(audio, sr))

        assert result.ok
        assert result.path == DetectionPath.MODEL
        assert model.calls == 1
        assert len(result.notes) == 2
        assert result.notes[0].bend_semitones == 2
        assert result.notes[1].has_vibrato
        assert "9b11" in result.tab
        assert "7~" in result.tab
        assert result.confidence == pytest.approx(92.5)
        assert result.stats["quiet_removed"] == 1
        assert result.stats["merged"] == 1

    def test_model_finding_nothing(self, config, two_pluck_pcm):
        model = FakeModel([RawNote(0.0, 0.5, 60.0, 0.05)])
        result = TranscriptionPipeline(config, model).transcribe_pcm(two_pluck_pcm)

        assert result.status == ResultStatus.NO_PITCHED_NOTES
        assert result.path == DetectionPath.MODEL
        assert result.message == NO_NOTES_MESSAGE

    def test_broken_model_falls_back(self, config, two_pluck_pcm):
        result = TranscriptionPipeline(config, BrokenModel()).transcribe_pcm(two_pluck_pcm)

        assert result.ok
        assert result.path == DetectionPath.ALGORITHMIC
        assert result.fallback_reason == "model weights missing"
        assert [n.pitch for n in result.notes] == [57, 64]

    def test_missing_model_falls_back(self, config, two_pluck_pcm):
        result = TranscriptionPipeline(config).transcribe_pcm(two_pluck_pcm)
        assert result.path == DetectionPath.ALGORITHMIC
        assert result.fallback_reason == "No pitch model configured"

    def test_model_ignored_when_disabled(self, two_pluck_pcm):
        model = FakeModel(RAW_NOTES)
        result = TranscriptionPipeline(model=model).transcribe_pcm(two_pluck_pcm)
        assert result.path == DetectionPath.ALGORITHMIC
        assert model.calls == 0


class TestTranscriptionConfig:
    """Config loading."""

    def test_from_dict(self):
        config = TranscriptionConfig.from_dict({
            "use_model": True,
            "onset": {"energy_ratio": 1.4},
            "tab": {"tuning": {"labels": ["e", "B", "G", "D", "A", "D"],
                               "open_pitches": [64, 59, 55, 50, 45, 38]}},
        })
        assert config.use_model
        assert config.onset.energy_ratio == 1.4
        assert config.onset.hop == 0.025
        assert config.tab.tuning == Tuning(("e", "B", "G", "D", "A", "D"), (64, 59, 55, 50, 45, 38))

    def test_unknown_section(self):
        with pytest.raises(ValueError):
            TranscriptionConfig.from_dict({"colour": "red"})

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            TranscriptionConfig.from_dict({"onset": {"bogus": 1}})

    def test_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"max_duration": 30, "dedup": {"time_window": 0.08}}')
        config = TranscriptionConfig.from_file(str(path))
        assert config.max_duration == 30
        assert config.dedup.time_window == 0.08

    def test_sensitivity(self):
        config = TranscriptionConfig().with_sensitivity("HIGH")
        assert config.onset.energy_ratio == 1.2
        assert config.onset.noise_floor == 0.001
        with pytest.raises(ValueError):
            config.with_sensitivity("extreme")


class TestBackingTrackRenderer:
    """Chords to WAV bytes."""

    def test_render_wav(self):
        data = BackingTrackRenderer().render([ChordSpec("C"), ChordSpec("Am")], tempo=120, pattern="swing")
        pcm = WavCodec.parse(data)

        assert pcm.channels == 2
        assert pcm.sample_rate == 44100
        assert pcm.duration == pytest.approx(4.0)

    def test_render_with_stem(self):
        stem = MixSource(PcmBuffer(np.zeros(44100 * 6), 44100), label="guitar")
        pcm = BackingTrackRenderer().render_pcm([ChordSpec("C")], tempo=120, stems=[stem])
        assert pcm.duration == pytest.approx(6.0)

    def test_render_async(self):
        data = asyncio.run(BackingTrackRenderer().render_async([ChordSpec("G")], tempo=60))
        assert WavCodec.parse(data).duration == pytest.approx(4.0)
