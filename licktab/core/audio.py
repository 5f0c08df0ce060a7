"""PCM buffer - interleaved float samples tagged with rate and channel count."""

from dataclasses import dataclass
import numpy as np


@dataclass(eq=False)
class PcmBuffer:
    """Floating-point PCM audio.

    Samples are stored as a 1-D float32 array; stereo audio is interleaved
    (L, R, L, R, ...). Values are nominally in [-1, 1].
    """

    samples: np.ndarray
    sample_rate: int
    channels: int = 1

    def __post_init__(self):
        self.samples = np.ascontiguousarray(self.samples, dtype=np.float32).reshape(-1)
        if self.channels < 1:
            raise ValueError(f"channels must be >= 1, got {self.channels}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if len(self.samples) % self.channels:
            raise ValueError(
                f"{len(self.samples)} samples cannot be split into {self.channels} channels"
            )

    @classmethod
    def from_frames(cls, frames: np.ndarray, sample_rate: int) -> "PcmBuffer":
        """Build from a (n_frames, channels) or 1-D mono array."""
        frames = np.asarray(frames, dtype=np.float32)
        if frames.ndim == 1:
            return cls(frames, sample_rate, 1)
        return cls(frames.reshape(-1), sample_rate, frames.shape[1])

    @property
    def frames(self) -> int:
        """Number of sample frames (samples per channel)."""
        return len(self.samples) // self.channels

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.frames / self.sample_rate

    @property
    def peak(self) -> float:
        if len(self.samples) == 0:
            return 0.0
        return float(np.max(np.abs(self.samples)))

    def as_frames(self) -> np.ndarray:
        """View as a (n_frames, channels) array."""
        return self.samples.reshape(-1, self.channels)

    def to_mono(self) -> "PcmBuffer":
        """Downmix by averaging channels."""
        if self.channels == 1:
            return self
        mono = self.as_frames().mean(axis=1)
        return PcmBuffer(mono, self.sample_rate, 1)

    def to_stereo(self) -> "PcmBuffer":
        """Upmix mono by duplicating each sample to both channels."""
        if self.channels == 2:
            return self
        mono = self.to_mono().samples
        return PcmBuffer(np.repeat(mono, 2), self.sample_rate, 2)


def normalize_peak(samples: np.ndarray, headroom: float = 0.95) -> np.ndarray:
    """Scale so the peak equals `headroom`, but only if the signal would clip."""
    if len(samples) == 0:
        return samples
    peak = float(np.max(np.abs(samples)))
    if peak > 1.0:
        return samples * (headroom / peak)
    return samples
