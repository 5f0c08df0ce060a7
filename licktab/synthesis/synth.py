"""Oscillator synthesis of chord progressions and tab previews."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from ..core import Note, PcmBuffer, TabNote, normalize_peak
from ..core.constants import DEFAULT_SR
from .chords import ChordSpec
from .patterns import PatternRegistry, RhythmPattern

logger = logging.getLogger(__name__)


@dataclass
class SynthConfig:
    """Configuration for chord synthesis.

    Attributes:
        sample_rate: Output sample rate (default: 44100)
        instrument_program: General MIDI program selecting the waveform (default: 0)
        volume: Output volume multiplier (default: 1.0)
        octave: Octave of chord roots (default: 4)
        amplitude: Peak partial amplitude before velocity/voicing scaling (default: 0.3)
        pattern_attack / pattern_release: Envelope fractions for pattern events
        block_attack / block_release: Envelope fractions for sustained block chords
        block_velocity: Velocity of a block chord (default: 0.8)
        headroom: Peak level after normalization (default: 0.95)
    """

    sample_rate: int = DEFAULT_SR
    instrument_program: int = 0
    volume: float = 1.0
    octave: int = 4
    amplitude: float = 0.3
    pattern_attack: float = 0.02
    pattern_release: float = 0.15
    block_attack: float = 0.05
    block_release: float = 0.10
    block_velocity: float = 0.8
    headroom: float = 0.95


@dataclass(frozen=True)
class ScheduledNote:
    """One oscillator voice in seconds from the start of the progression."""

    pitch: int
    start: float
    end: float
    amplitude: float
    attack: float
    release: float
    chord_index: int = 0

    @property
    def duration(self) -> float:
        return self.end - self.start


def oscillator(program: int, frequency: float, t: np.ndarray) -> np.ndarray:
    """Waveform for a General MIDI program family."""
    phase = frequency * t
    sine = np.sin(2 * np.pi * phase)

    if 16 <= program <= 23:  # organ
        return np.sign(sine)
    if 24 <= program <= 31:  # guitar
        return 2 * (phase - np.floor(phase + 0.5))
    if 32 <= program <= 39:  # bass
        return 2 * np.abs(2 * (phase - np.floor(phase + 0.5))) - 1
    if 40 <= program <= 47:  # strings
        return sine + 0.3 * np.sin(4 * np.pi * phase)
    if 56 <= program <= 63:  # brass
        return 0.8 * np.sign(sine) + 0.2 * np.sin(4 * np.pi * phase)
    if 80 <= program <= 87:  # synth lead
        return sine + 0.5 * np.sin(4 * np.pi * phase) + 0.25 * np.sin(6 * np.pi * phase)
    return sine


def envelope(n: int, attack: float, release: float) -> np.ndarray:
    """Linear attack over the first `attack` fraction, linear release over the last `release` fraction."""
    if n <= 0:
        return np.zeros(0)
    progress = np.arange(n) / n
    env = np.ones(n)
    if attack > 0:
        env = np.minimum(env, progress / attack)
    if release > 0:
        env = np.minimum(env, (1 - progress) / release)
    return np.clip(env, 0.0, 1.0)


class ChordSynthesizer:
    """Render chord progressions to stereo PCM.

    Each chord either follows a rhythm pattern (its own rhythm_pattern_id,
    else the pattern passed to render) or sounds as one block chord.
    """

    def __init__(
        self,
        config: Optional[SynthConfig] = None,
        patterns: Optional[PatternRegistry] = None,
    ):
        self.config = config or SynthConfig()
        self.patterns = patterns or PatternRegistry()

    def _resolve_pattern(
        self,
        chord: ChordSpec,
        pattern: Optional[Union[RhythmPattern, str]],
    ) -> Optional[RhythmPattern]:
        if chord.rhythm_pattern_id:
            return self.patterns.get(chord.rhythm_pattern_id)
        if isinstance(pattern, str):
            return self.patterns.get(pattern)
        return pattern

    def schedule(
        self,
        chords: Sequence[ChordSpec],
        tempo: float,
        pattern: Optional[Union[RhythmPattern, str]] = None,
    ) -> List[ScheduledNote]:
        """
        Resolve chords and patterns into timed voices.

        Args:
            chords: Progression in order
            tempo: Tempo in BPM
            pattern: Default rhythm pattern or pattern id

        Returns:
            Voices ordered by start time
        """
        if tempo <= 0:
            raise ValueError(f"tempo must be positive, got {tempo}")

        cfg = self.config
        seconds_per_beat = 60.0 / tempo
        voices: List[ScheduledNote] = []
        chord_start = 0.0

        for index, chord in enumerate(chords):
            pitches = chord.pitches(cfg.octave)
            chord_pattern = self._resolve_pattern(chord, pattern)

            if chord_pattern is None:
                amplitude = cfg.amplitude * cfg.block_velocity * cfg.volume / len(pitches)
                for pitch in pitches:
                    voices.append(ScheduledNote(
                        pitch=pitch,
                        start=chord_start * seconds_per_beat,
                        end=(chord_start + chord.beats) * seconds_per_beat,
                        amplitude=amplitude,
                        attack=cfg.block_attack,
                        release=cfg.block_release,
                        chord_index=index,
                    ))
            else:
                for event in chord_pattern.schedule(chord.beats):
                    sounding = chord_pattern.select_pitches(pitches, event)
                    amplitude = cfg.amplitude * event.velocity * cfg.volume / len(sounding)
                    for pitch in sounding:
                        voices.append(ScheduledNote(
                            pitch=pitch,
                            start=(chord_start + event.start) * seconds_per_beat,
                            end=(chord_start + event.end) * seconds_per_beat,
                            amplitude=amplitude,
                            attack=cfg.pattern_attack,
                            release=cfg.pattern_release,
                            chord_index=index,
                        ))

            chord_start += chord.beats

        voices.sort(key=lambda v: (v.start, v.pitch))
        return voices

    def render(
        self,
        chords: Sequence[ChordSpec],
        tempo: float,
        pattern: Optional[Union[RhythmPattern, str]] = None,
    ) -> PcmBuffer:
        """
        Render a progression.

        Args:
            chords: Progression in order
            tempo: Tempo in BPM
            pattern: Default rhythm pattern or pattern id

        Returns:
            Interleaved stereo PcmBuffer lasting sum(beats) * 60 / tempo seconds
        """
        sr = self.config.sample_rate
        voices = self.schedule(chords, tempo, pattern)
        total_beats = sum(chord.beats for chord in chords)
        total_frames = int(round(total_beats * 60.0 / tempo * sr))
        mono = np.zeros(total_frames)

        for voice in voices:
            start = int(round(voice.start * sr))
            end = min(int(round(voice.end * sr)), total_frames)
            n = end - start
            if n <= 0:
                continue
            t = np.arange(n) / sr
            wave = oscillator(self.config.instrument_program, Note.midi_to_freq(voice.pitch), t)
            mono[start:end] += voice.amplitude * wave * envelope(n, voice.attack, voice.release)

        stereo = normalize_peak(np.repeat(mono, 2), self.config.headroom)
        logger.debug(
            "Rendered %d chords (%d voices) into %.2fs", len(chords), len(voices), total_frames / sr
        )
        return PcmBuffer(stereo, sr, 2)

    def to_midi_notes(self, voices: Sequence[ScheduledNote]) -> List[Note]:
        """Convert a schedule to MIDI note events."""
        notes = []
        for voice in voices:
            velocity = int(np.clip(round(voice.amplitude / self.config.amplitude * 127), 1, 127))
            notes.append(Note(pitch=voice.pitch, onset=voice.start, offset=voice.end, velocity=velocity))
        return notes


class TabSynthesizer:
    """Plucked-string preview of transcribed tab notes."""

    def __init__(
        self,
        sample_rate: int = DEFAULT_SR,
        decay: float = 0.4,
        attack: float = 0.005,
        headroom: float = 0.95,
    ):
        self.sample_rate = sample_rate
        self.decay = decay
        self.attack = attack
        self.headroom = headroom

    def pluck(self, frequency: float, duration: float, velocity: float = 0.8) -> np.ndarray:
        n = max(1, int(round(duration * self.sample_rate)))
        t = np.arange(n) / self.sample_rate
        tone = (
            np.sin(2 * np.pi * frequency * t)
            + 0.5 * np.sin(4 * np.pi * frequency * t)
            + 0.25 * np.sin(6 * np.pi * frequency * t)
        ) / 1.75
        env = np.exp(-t / self.decay) * np.minimum(1.0, t / self.attack)
        return 0.5 * velocity * tone * env

    def render(self, notes: Sequence[TabNote], tail: float = 1.0) -> PcmBuffer:
        """
        Render notes as mono plucks; bent notes sound at their bend target.

        Args:
            notes: Tab notes
            tail: Ring-out after the last onset in seconds

        Returns:
            Mono PcmBuffer
        """
        sr = self.sample_rate
        if not notes:
            return PcmBuffer(np.zeros(0), sr, 1)

        end = max(n.time + max(n.duration, tail) for n in notes)
        mono = np.zeros(int(round(end * sr)) + 1)
        for note in notes:
            pitch = note.pitch + (note.bend_semitones or 0)
            length = max(note.duration, tail)
            wave = self.pluck(Note.midi_to_freq(pitch), length, note.velocity)
            start = int(round(note.time * sr))
            stop = min(start + len(wave), len(mono))
            mono[start:stop] += wave[:stop - start]

        return PcmBuffer(normalize_peak(mono, self.headroom), sr, 1)
