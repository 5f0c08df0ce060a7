"""Audio mixing - combine PCM stems sequentially or as an overlay."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import librosa
import numpy as np

from ..core import PcmBuffer, normalize_peak
from ..core.constants import DEFAULT_TEMPO

logger = logging.getLogger(__name__)


class MixMode(str, Enum):
    SEQUENTIAL = "sequential"
    OVERLAY = "overlay"


@dataclass
class MixSource:
    """A PCM stem and its pre-mix gain."""

    pcm: PcmBuffer
    gain: float = 1.0
    label: str = ""


class AudioMixer:
    """Combine stems into one stereo buffer.

    All sources are resampled to a common rate (the mixer's declared rate,
    otherwise the highest source rate) and upmixed to stereo before summing.
    """

    def __init__(self, sample_rate: Optional[int] = None, headroom: float = 0.95):
        """
        Initialize AudioMixer.

        Args:
            sample_rate: Output rate; None picks the highest source rate
            headroom: Peak level after normalization
        """
        self.sample_rate = sample_rate
        self.headroom = headroom

    def mix(
        self,
        sources: Sequence[MixSource],
        mode: MixMode = MixMode.OVERLAY,
        tempo: float = DEFAULT_TEMPO,
        beats_per_slot: float = 4.0,
    ) -> PcmBuffer:
        """Dispatch to overlay() or sequential()."""
        if MixMode(mode) == MixMode.SEQUENTIAL:
            return self.sequential(sources, tempo, beats_per_slot)
        return self.overlay(sources)

    def overlay(self, sources: Sequence[MixSource]) -> PcmBuffer:
        """
        Sum all sources from time zero.

        Args:
            sources: Stems with gains

        Returns:
            Stereo PcmBuffer as long as the longest source
        """
        rate, stems = self._prepare(sources)
        length = max((len(s) for s in stems), default=0)
        out = np.zeros((length, 2))
        for stem in stems:
            out[:len(stem)] += stem
        return self._finish(out, rate)

    def sequential(
        self,
        sources: Sequence[MixSource],
        tempo: float = DEFAULT_TEMPO,
        beats_per_slot: float = 4.0,
    ) -> PcmBuffer:
        """
        Place source i at i * slot, where slot = beats_per_slot beats at tempo.

        Args:
            sources: Stems in playback order
            tempo: Tempo in BPM
            beats_per_slot: Beats allotted to each source

        Returns:
            Stereo PcmBuffer covering every slot
        """
        if tempo <= 0:
            raise ValueError(f"tempo must be positive, got {tempo}")

        rate, stems = self._prepare(sources)
        slot = int(round(beats_per_slot * 60.0 / tempo * rate))
        length = len(stems) * slot
        for i, stem in enumerate(stems):
            length = max(length, i * slot + len(stem))

        out = np.zeros((length, 2))
        for i, stem in enumerate(stems):
            start = i * slot
            out[start:start + len(stem)] += stem
        return self._finish(out, rate)

    def _prepare(self, sources: Sequence[MixSource]):
        if not sources:
            raise ValueError("Nothing to mix")

        rate = self.sample_rate or max(s.pcm.sample_rate for s in sources)
        stems: List[np.ndarray] = []
        for source in sources:
            pcm = source.pcm
            if pcm.channels > 2:
                pcm = pcm.to_mono()
            frames = pcm.to_stereo().as_frames().astype(np.float64)
            if pcm.sample_rate != rate:
                logger.debug("Resampling %s from %d to %d Hz", source.label or "source", pcm.sample_rate, rate)
                frames = librosa.resample(frames.T, orig_sr=pcm.sample_rate, target_sr=rate).T
            stems.append(frames * source.gain)
        return rate, stems

    def _finish(self, frames: np.ndarray, rate: int) -> PcmBuffer:
        samples = normalize_peak(frames.reshape(-1), self.headroom)
        return PcmBuffer(samples, rate, 2)
