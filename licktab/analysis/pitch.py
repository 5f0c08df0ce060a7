"""YIN pitch estimation at note onsets.

Implements the cumulative mean normalized difference function (CMNDF) of
de Cheveigné & Kawahara (2002) on a single analysis window placed just after
each onset, skipping the pick transient.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from scipy import signal

from ..core.cancel import CancellationToken, check
from ..core.constants import GUITAR_FMIN, GUITAR_FMAX

logger = logging.getLogger(__name__)

NO_PITCH = -1.0


@dataclass
class PitchConfig:
    """Configuration for YIN pitch estimation.

    Attributes:
        window: Analysis window length in seconds (default: 0.1)
        analysis_offset: Delay after the onset before analysis starts (default: 0.03)
        threshold: CMNDF dip threshold (default: 0.25)
        rms_threshold: Windows quieter than this are unpitched (default: 0.002)
        fmin: Lowest accepted frequency in Hz (default: 80)
        fmax: Highest accepted frequency in Hz (default: 1200)
        interpolate: Refine the lag with parabolic interpolation (default: True)
    """

    window: float = 0.1
    analysis_offset: float = 0.03
    threshold: float = 0.25
    rms_threshold: float = 0.002
    fmin: float = GUITAR_FMIN
    fmax: float = GUITAR_FMAX
    interpolate: bool = True


@dataclass
class PitchEstimate:
    """Pitch at one point in time; frequency is -1 when unpitched."""

    time: float
    frequency: float = NO_PITCH
    confidence: float = 0.0

    @property
    def is_pitched(self) -> bool:
        return self.frequency > 0


class PitchEstimator:
    """Single-window YIN estimator returning -1 instead of failing."""

    def __init__(self, config: Optional[PitchConfig] = None):
        self.config = config or PitchConfig()

    def estimate(self, audio: np.ndarray, sr: int, time: float) -> PitchEstimate:
        """
        Estimate pitch for the window starting analysis_offset after time.

        Args:
            audio: Mono audio array
            sr: Sample rate
            time: Onset time in seconds

        Returns:
            PitchEstimate for that onset
        """
        start = int(round((time + self.config.analysis_offset) * sr))
        size = int(round(self.config.window * sr))
        start = max(0, start)
        frame = np.asarray(audio[start:start + size])
        return self.estimate_frame(frame, sr, time)

    def estimate_many(
        self,
        audio: np.ndarray,
        sr: int,
        times: Sequence[float],
        token: Optional[CancellationToken] = None,
    ) -> List[PitchEstimate]:
        """Estimate pitch at each time; checks the token between windows."""
        estimates = []
        for time in times:
            check(token)
            estimates.append(self.estimate(audio, sr, time))
        return estimates

    def estimate_frame(self, frame: np.ndarray, sr: int, time: float = 0.0) -> PitchEstimate:
        """
        Run YIN on one analysis frame.

        Args:
            frame: Audio samples
            sr: Sample rate
            time: Timestamp to attach to the estimate

        Returns:
            PitchEstimate; frequency is -1 for silent or aperiodic frames
        """
        unpitched = PitchEstimate(time=time)
        frame = np.asarray(frame, dtype=np.float64)
        if len(frame) < 4 or not np.all(np.isfinite(frame)):
            return unpitched

        rms = np.sqrt(np.mean(frame ** 2))
        if rms < self.config.rms_threshold:
            return unpitched

        half = len(frame) // 2
        min_lag = max(2, int(np.floor(sr / self.config.fmax)))
        max_lag = min(int(np.floor(sr / self.config.fmin)), half - 1)
        if max_lag <= min_lag:
            return unpitched

        diff = difference_function(frame, half, max_lag + 1)
        cmndf = cumulative_mean_normalized_difference(diff)

        tau = self._first_dip(cmndf, min_lag, max_lag)
        if tau is None:
            return unpitched

        period = float(tau)
        value = float(cmndf[tau])
        if self.config.interpolate:
            period, value = parabolic_interpolation(cmndf, tau)

        frequency = sr / period
        if not (self.config.fmin <= frequency <= self.config.fmax):
            return unpitched

        confidence = float(np.clip(1.0 - value, 0.0, 1.0))
        return PitchEstimate(time=time, frequency=float(frequency), confidence=confidence)

    def _first_dip(self, cmndf: np.ndarray, min_lag: int, max_lag: int) -> Optional[int]:
        """First lag below threshold that is lower than its predecessor, walked to the local minimum."""
        lags = np.arange(min_lag, max_lag + 1)
        below = (cmndf[lags] < self.config.threshold) & (cmndf[lags] < cmndf[lags - 1])
        hits = np.flatnonzero(below)
        if len(hits) == 0:
            return None

        tau = int(lags[hits[0]])
        while tau + 1 <= max_lag and cmndf[tau + 1] < cmndf[tau]:
            tau += 1
        return tau


def difference_function(frame: np.ndarray, width: int, n_lags: int) -> np.ndarray:
    """
    d(tau) = sum_{j < width} (x[j] - x[j + tau])^2 for tau in [0, n_lags].

    Computed as e(0) + e(tau) - 2 r(tau) with energy prefix sums and an
    FFT cross-correlation.
    """
    x = np.asarray(frame, dtype=np.float64)
    head = x[:width]
    energy = np.concatenate([[0.0], np.cumsum(x ** 2)])
    lags = np.arange(n_lags + 1)

    e0 = energy[width]
    e_tau = energy[lags + width] - energy[lags]
    r = signal.correlate(x[:width + n_lags], head, mode="valid", method="fft")

    diff = e0 + e_tau - 2.0 * r[:n_lags + 1]
    diff[0] = 0.0
    return np.maximum(diff, 0.0)


def cumulative_mean_normalized_difference(diff: np.ndarray) -> np.ndarray:
    """
    d'(0) = 1, d'(tau) = d(tau) * tau / sum_{k=1..tau} d(k).

    Lags whose running sum is zero are set to 1.
    """
    cmndf = np.ones(len(diff))
    running = np.cumsum(diff[1:])
    tau = np.arange(1, len(diff))
    with np.errstate(divide="ignore", invalid="ignore"):
        values = diff[1:] * tau / running
    cmndf[1:] = np.where(running > 0, values, 1.0)
    return cmndf


def parabolic_interpolation(cmndf: np.ndarray, tau: int):
    """Refine an integer lag through the parabola over its two neighbours."""
    if tau <= 0 or tau >= len(cmndf) - 1:
        return float(tau), float(cmndf[tau])

    y0, y1, y2 = cmndf[tau - 1], cmndf[tau], cmndf[tau + 1]
    denom = 2 * (y0 - 2 * y1 + y2)
    if abs(denom) < 1e-12:
        return float(tau), float(y1)

    delta = float(np.clip((y0 - y2) / denom, -1.0, 1.0))
    value = y1 - 0.25 * (y0 - y2) * delta
    return tau + delta, float(value)
