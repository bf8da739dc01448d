"""
Dynamics analyzer for HitScope: RMS level, dynamic range and crest factor.
"""

import math

import numpy as np

from hitscope.core.analyzer_base import BaseAnalyzer
from hitscope.core.models import AudioBuffer, DynamicsFeatures


def rms(samples: np.ndarray) -> float:
    if len(samples) == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(samples))))


def dynamic_range_db(samples: np.ndarray) -> float:
    """
    Ratio of the positive peak to the negative peak, in dB.

    Returns 0.0 when either peak is zero (silence or a one-sided
    signal), where the ratio is undefined.
    """
    if len(samples) == 0:
        return 0.0
    positive_peak = max(0.0, float(np.max(samples)))
    negative_peak = abs(min(0.0, float(np.min(samples))))
    if positive_peak == 0.0 or negative_peak == 0.0:
        return 0.0
    return 20.0 * math.log10(positive_peak / negative_peak)


def crest_factor(samples: np.ndarray) -> float:
    """Peak-to-RMS ratio; 0.0 for silence."""
    level = rms(samples)
    if level == 0.0:
        return 0.0
    return float(np.max(np.abs(samples))) / level


class DynamicsAnalyzer(BaseAnalyzer[DynamicsFeatures]):
    """Level descriptors computed over the mono mixdown."""

    def __init__(self):
        super().__init__("dynamics", "1.0.0")

    def _analyze_impl(self, buffer: AudioBuffer) -> DynamicsFeatures:
        samples = buffer.mono
        return DynamicsFeatures(
            rms=rms(samples),
            dynamic_range=dynamic_range_db(samples),
            crest_factor=crest_factor(samples),
        )
