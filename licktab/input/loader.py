"""Audio loading and preprocessing utilities."""

import io
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import librosa
import numpy as np
import soundfile as sf

from ..core import PcmBuffer, DecodeError, AudioTooLongError
from ..core.constants import DEFAULT_SR, MAX_CLIP_DURATION

logger = logging.getLogger(__name__)


class AudioLoader:
    """Decodes audio containers into mono PCM at a fixed sample rate.

    Decoding is attempted with soundfile first (WAV, FLAC, OGG, ...). Containers
    libsndfile cannot read (MP3 on old builds, M4A, WebM) are handed to
    librosa, which falls back to audioread/ffmpeg.
    """

    def __init__(
        self,
        target_sr: int = DEFAULT_SR,
        max_duration: Optional[float] = MAX_CLIP_DURATION,
        normalize: bool = False,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Target sample rate for resampling
            max_duration: Longest accepted clip in seconds (None = unlimited)
            normalize: Peak-normalize audio amplitude if True
        """
        self.target_sr = target_sr
        self.max_duration = max_duration
        self.normalize = normalize

    def decode(self, data: bytes, container: Optional[str] = None) -> PcmBuffer:
        """
        Decode raw audio bytes to mono PCM at target_sr.

        Args:
            data: Encoded audio bytes
            container: Declared container type, e.g. "wav" or ".mp3"

        Returns:
            Mono PcmBuffer at target_sr

        Raises:
            DecodeError: If the bytes cannot be decoded or hold no finite audio
            AudioTooLongError: If the clip exceeds max_duration
        """
        if not data:
            raise DecodeError("No audio data")

        pcm = self._decode_multichannel(data, container)
        return self.prepare(pcm)

    def load(self, path: str) -> PcmBuffer:
        """
        Load an audio file and preprocess it like decode().

        Raises:
            FileNotFoundError: If file doesn't exist
            DecodeError: If the file cannot be decoded
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        return self.decode(path.read_bytes(), path.suffix)

    def load_pcm(self, path: str) -> PcmBuffer:
        """Load a file keeping its channels and native sample rate."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")
        pcm = self._decode_multichannel(path.read_bytes(), path.suffix)
        self._check_finite(pcm)
        return pcm

    def _decode_multichannel(self, data: bytes, container: Optional[str]) -> PcmBuffer:
        try:
            frames, sr = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
            return PcmBuffer.from_frames(frames, int(sr))
        except Exception as exc:
            logger.debug("soundfile could not decode %s audio: %s", container, exc)

        return self._decode_with_librosa(data, container)

    def _decode_with_librosa(self, data: bytes, container: Optional[str]) -> PcmBuffer:
        suffix = _normalize_suffix(container)
        fd, tmp_path = tempfile.mkstemp(suffix=suffix, prefix="licktab_")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            audio, sr = librosa.load(tmp_path, sr=None, mono=False)
        except Exception as exc:
            raise DecodeError(f"Could not decode {suffix or 'audio'} data: {exc}") from exc
        finally:
            os.unlink(tmp_path)

        if audio.ndim == 1:
            return PcmBuffer(audio, int(sr), 1)
        # librosa returns (channels, samples)
        return PcmBuffer.from_frames(audio.T, int(sr))

    def prepare(self, pcm: PcmBuffer) -> PcmBuffer:
        """Check decoded audio and convert it to mono at target_sr."""
        self._check_finite(pcm)

        if self.max_duration is not None and pcm.duration > self.max_duration:
            raise AudioTooLongError(pcm.duration, self.max_duration)

        mono = pcm.to_mono()
        audio = mono.samples
        if mono.sample_rate != self.target_sr:
            audio = librosa.resample(
                audio, orig_sr=mono.sample_rate, target_sr=self.target_sr
            )

        if self.normalize:
            audio = self._normalize(audio)

        return PcmBuffer(audio, self.target_sr, 1)

    @staticmethod
    def _check_finite(pcm: PcmBuffer) -> None:
        if pcm.frames == 0:
            raise DecodeError("Decoded audio is empty")
        if not np.all(np.isfinite(pcm.samples)):
            raise DecodeError("Decoded audio contains non-finite samples")

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        peak = np.abs(audio).max()
        if peak > 0:
            audio = audio / peak
        return audio


def _normalize_suffix(container: Optional[str]) -> str:
    if not container:
        return ""
    container = container.lower().strip()
    return container if container.startswith(".") else f".{container}"
