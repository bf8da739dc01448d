"""
Temporal analyzer for HitScope.

Estimates tempo from rising-edge threshold crossings and derives rhythm
strength and beat confidence.
"""

import numpy as np

from hitscope.core.analyzer_base import BaseAnalyzer
from hitscope.core.models import (
    TEMPO_MAX,
    TEMPO_MIN,
    AudioBuffer,
    TemporalFeatures,
    clamp,
)

ONSET_THRESHOLD: float = 0.1
DEFAULT_TEMPO: float = 120.0
BEAT_TOLERANCE: float = 0.2


def detect_onsets(samples: np.ndarray, threshold: float = ONSET_THRESHOLD) -> np.ndarray:
    """Sample indices where amplitude rises above ``threshold``."""
    x = np.asarray(samples, dtype=np.float64)
    if x.shape[0] < 2:
        return np.zeros(0, dtype=np.intp)
    rising = (x[1:] > threshold) & (x[:-1] <= threshold)
    return np.flatnonzero(rising) + 1


def estimate_tempo(onsets: np.ndarray, sample_rate: int) -> float:
    """
    Tempo in BPM from the mean inter-onset interval.

    Fewer than two onsets yields the default tempo; the estimate is
    clamped to the supported BPM range.
    """
    if len(onsets) < 2:
        return DEFAULT_TEMPO
    mean_interval = float(np.mean(np.diff(onsets)))
    return clamp(60.0 * sample_rate / mean_interval, TEMPO_MIN, TEMPO_MAX)


def rhythm_strength(samples: np.ndarray) -> float:
    """min(1, 10 * variance); 0 for an empty buffer."""
    if len(samples) == 0:
        return 0.0
    return clamp(10.0 * float(np.var(samples)))


def beat_confidence(
    onsets: np.ndarray,
    tempo: float,
    sample_rate: int,
    tolerance: float = BEAT_TOLERANCE,
) -> float:
    """
    Fraction of onsets whose sample index falls within ``tolerance`` of
    the tempo-implied beat interval.
    """
    if len(onsets) == 0:
        return 0.0
    expected = sample_rate * 60.0 / tempo
    hits = np.abs(onsets - expected) < tolerance * expected
    return clamp(float(np.count_nonzero(hits)) / len(onsets))


class TemporalAnalyzer(BaseAnalyzer[TemporalFeatures]):
    """Onset-threshold tempo, rhythm strength and beat confidence."""

    def __init__(
        self,
        onset_threshold: float = ONSET_THRESHOLD,
        beat_tolerance: float = BEAT_TOLERANCE,
    ):
        super().__init__("temporal", "1.0.0")
        self.onset_threshold = onset_threshold
        self.beat_tolerance = beat_tolerance

    def _analyze_impl(self, buffer: AudioBuffer) -> TemporalFeatures:
        samples = buffer.mono
        onsets = detect_onsets(samples, self.onset_threshold)
        tempo = estimate_tempo(onsets, buffer.sample_rate)

        if len(onsets) < 2:
            self.logger.debug(
                f"{len(onsets)} onset(s) found; using default tempo {DEFAULT_TEMPO}"
            )

        return TemporalFeatures(
            tempo=tempo,
            rhythm_strength=rhythm_strength(samples),
            beat_confidence=beat_confidence(
                onsets, tempo, buffer.sample_rate, self.beat_tolerance
            ),
            onset_count=int(len(onsets)),
        )


def create_temporal_analyzer(config: dict) -> TemporalAnalyzer:
    """Factory function to create a TemporalAnalyzer from configuration."""
    analysis = config.get("analysis", {})
    return TemporalAnalyzer(
        onset_threshold=analysis.get("onset_threshold", ONSET_THRESHOLD),
        beat_tolerance=analysis.get("beat_tolerance", BEAT_TOLERANCE),
    )
