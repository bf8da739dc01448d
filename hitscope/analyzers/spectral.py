"""
Spectral analyzer for HitScope.

Frames the mono signal, applies a Hann window, runs the radix-2 FFT and
derives four descriptors from each magnitude spectrum: centroid,
rolloff, flatness and bandwidth.
"""

from typing import Optional

import numpy as np

from hitscope.analyzers.fft import (
    DEFAULT_FRAME_SIZE,
    bin_frequencies,
    hann_window,
    is_power_of_two,
    iter_windowed_frames,
    magnitude_spectrum,
)
from hitscope.core.analyzer_base import BaseAnalyzer
from hitscope.core.models import AudioBuffer, SpectralFeatures

ROLLOFF_PERCENT: float = 0.85


def spectral_descriptors(
    magnitudes: np.ndarray,
    freqs: np.ndarray,
    rolloff_percent: float = ROLLOFF_PERCENT,
) -> np.ndarray:
    """
    Compute descriptors for one or more magnitude spectra.

    Args:
        magnitudes: ``(..., bins)`` magnitude spectra
        freqs: ``(bins,)`` bin frequencies in Hz
        rolloff_percent: Cumulative magnitude fraction for the rolloff

    Returns:
        ``(..., 4)`` array of centroid, rolloff, flatness, bandwidth.
        Rows with zero total magnitude are all zeros.
    """
    m = np.asarray(magnitudes, dtype=np.float64)
    total = np.asarray(m.sum(axis=-1))
    silent = total <= 0
    safe_total = np.where(silent, 1.0, total)

    centroid = (m * freqs).sum(axis=-1) / safe_total

    cumulative = np.cumsum(m, axis=-1)
    rolloff_bin = np.argmax(cumulative >= rolloff_percent * total[..., None], axis=-1)
    rolloff = freqs[rolloff_bin]

    # Geometric/arithmetic mean over the non-zero bins keeps flatness in [0, 1]
    positive = m > 0
    n_positive = positive.sum(axis=-1)
    safe_count = np.maximum(n_positive, 1)
    log_mean = np.where(positive, np.log(np.where(positive, m, 1.0)), 0.0).sum(axis=-1) / safe_count
    arithmetic_mean = np.where(silent, 1.0, total / safe_count)
    flatness = np.clip(np.exp(log_mean) / arithmetic_mean, 0.0, 1.0)

    spread = (m * (freqs - centroid[..., None]) ** 2).sum(axis=-1) / safe_total
    bandwidth = np.sqrt(spread)

    result = np.stack((centroid, rolloff, flatness, bandwidth), axis=-1)
    return np.where(silent[..., None], 0.0, result)


def describe_frame(
    frame: np.ndarray,
    sample_rate: int,
    frame_size: int = DEFAULT_FRAME_SIZE,
    rolloff_percent: float = ROLLOFF_PERCENT,
) -> SpectralFeatures:
    """
    Descriptors for a single PCM frame.

    The frame is windowed over its own length, then truncated or
    zero-padded to ``frame_size``.
    """
    frame = np.asarray(frame, dtype=np.float64)[:frame_size]
    padded = np.zeros(frame_size)
    if frame.size:
        padded[: frame.size] = frame * hann_window(frame.size)

    magnitudes = magnitude_spectrum(padded)
    centroid, rolloff, flatness, bandwidth = spectral_descriptors(
        magnitudes, bin_frequencies(frame_size, sample_rate), rolloff_percent
    )
    return SpectralFeatures(
        centroid=float(centroid),
        rolloff=float(rolloff),
        flatness=float(flatness),
        bandwidth=float(bandwidth),
        frames_analyzed=1,
    )


class SpectralAnalyzer(BaseAnalyzer[SpectralFeatures]):
    """
    Frame-averaged spectral descriptors.

    Descriptors are averaged over frames that carry energy, so leading
    or trailing silence does not drag the track towards zero. A buffer
    without any energy yields all-zero descriptors.
    """

    def __init__(
        self,
        frame_size: int = DEFAULT_FRAME_SIZE,
        max_frames: Optional[int] = None,
        rolloff_percent: float = ROLLOFF_PERCENT,
    ):
        """
        Args:
            frame_size: FFT size (power of two)
            max_frames: Optional cap on analyzed frames (None = whole track)
            rolloff_percent: Cumulative magnitude fraction for the rolloff
        """
        super().__init__("spectral", "1.0.0")
        if not is_power_of_two(frame_size):
            raise ValueError(f"Frame size must be a power of two, got {frame_size}")
        if not 0.0 < rolloff_percent < 1.0:
            raise ValueError(f"Rolloff percent must be in (0, 1), got {rolloff_percent}")
        self.frame_size = frame_size
        self.max_frames = max_frames
        self.rolloff_percent = rolloff_percent

    def _analyze_impl(self, buffer: AudioBuffer) -> SpectralFeatures:
        freqs = bin_frequencies(self.frame_size, buffer.sample_rate)
        sums = np.zeros(4)
        active_frames = 0

        for batch in iter_windowed_frames(buffer.mono, self.frame_size, self.max_frames):
            magnitudes = magnitude_spectrum(batch)
            active = magnitudes.sum(axis=-1) > 0
            if not active.any():
                continue
            descriptors = spectral_descriptors(magnitudes[active], freqs, self.rolloff_percent)
            sums += descriptors.sum(axis=0)
            active_frames += int(active.sum())

        if active_frames == 0:
            self.logger.debug("No energy in any frame; spectral descriptors are zero")
            return SpectralFeatures(0.0, 0.0, 0.0, 0.0, frames_analyzed=0)

        centroid, rolloff, flatness, bandwidth = sums / active_frames
        return SpectralFeatures(
            centroid=float(centroid),
            rolloff=float(rolloff),
            flatness=float(min(1.0, flatness)),
            bandwidth=float(bandwidth),
            frames_analyzed=active_frames,
        )


def create_spectral_analyzer(config: dict) -> SpectralAnalyzer:
    """Factory function to create a SpectralAnalyzer from configuration."""
    analysis = config.get("analysis", {})
    return SpectralAnalyzer(
        frame_size=analysis.get("frame_size", DEFAULT_FRAME_SIZE),
        max_frames=analysis.get("max_frames"),
        rolloff_percent=analysis.get("rolloff_percent", ROLLOFF_PERCENT),
    )
