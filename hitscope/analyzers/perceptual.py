"""
Perceptual feature synthesis for HitScope.

Combines spectral, temporal, tonal and dynamics descriptors into seven
bounded perceptual features modeled on streaming-platform conventions.
Any missing analyzer output, or a non-finite value inside one, is
replaced by the documented default in PERCEPTUAL_DEFAULTS.
"""

import logging
import math
from types import MappingProxyType
from typing import Mapping, Optional

from hitscope.core.models import (
    DynamicsFeatures,
    PerceptualFeatureSet,
    SpectralFeatures,
    TemporalFeatures,
    TonalFeatures,
    clamp,
)

PERCEPTUAL_DEFAULTS: Mapping[str, float] = MappingProxyType({
    "rhythm_strength": 0.5,
    "tempo": 120.0,
    "spectral_centroid": 2000.0,
    "rms": 0.3,
    "spectral_flatness": 0.5,
    "harmonic_complexity": 0.5,
    "dynamic_range": -30.0,
    "spectral_rolloff": 4000.0,
})


def _value(component: Optional[object], attribute: str, default_key: str) -> float:
    if component is None:
        return PERCEPTUAL_DEFAULTS[default_key]
    value = getattr(component, attribute, None)
    if value is None or not math.isfinite(value):
        return PERCEPTUAL_DEFAULTS[default_key]
    return float(value)


class PerceptualSynthesizer:
    """Pure mapping from analyzer outputs to a PerceptualFeatureSet."""

    def __init__(self):
        self.logger = logging.getLogger("analyzer.perceptual")

    def synthesize(
        self,
        spectral: Optional[SpectralFeatures] = None,
        temporal: Optional[TemporalFeatures] = None,
        tonal: Optional[TonalFeatures] = None,
        dynamics: Optional[DynamicsFeatures] = None,
    ) -> PerceptualFeatureSet:
        missing = [
            name for name, part in (
                ("spectral", spectral), ("temporal", temporal),
                ("tonal", tonal), ("dynamics", dynamics),
            ) if part is None
        ]
        if missing:
            self.logger.warning(f"Using perceptual defaults for: {', '.join(missing)}")

        rhythm = _value(temporal, "rhythm_strength", "rhythm_strength")
        tempo = _value(temporal, "tempo", "tempo")
        centroid = _value(spectral, "centroid", "spectral_centroid")
        flatness = _value(spectral, "flatness", "spectral_flatness")
        rolloff = _value(spectral, "rolloff", "spectral_rolloff")
        harmonic = _value(tonal, "harmonic_complexity", "harmonic_complexity")
        level = _value(dynamics, "rms", "rms")
        dynamic_range = _value(dynamics, "dynamic_range", "dynamic_range")

        return PerceptualFeatureSet(
            danceability=danceability(rhythm, tempo),
            energy=energy(centroid, level, tempo),
            valence=valence(flatness, harmonic),
            acousticness=acousticness(flatness),
            instrumentalness=instrumentalness(flatness, harmonic),
            liveness=liveness(dynamic_range),
            speechiness=speechiness(rolloff, flatness),
        )


def danceability(rhythm_strength: float, tempo: float) -> float:
    return clamp(0.6 * rhythm_strength + 0.4 * min(1.0, tempo / 140.0))


def energy(centroid: float, rms: float, tempo: float) -> float:
    return clamp(
        0.4 * min(1.0, centroid / 3000.0)
        + 0.4 * clamp((rms - 0.1) / 0.4)
        + 0.2 * min(1.0, tempo / 160.0)
    )


def valence(flatness: float, harmonic_complexity: float) -> float:
    return clamp(0.6 * (1.0 - flatness) + 0.4 * harmonic_complexity)


def acousticness(flatness: float) -> float:
    return clamp(1.0 - flatness)


def instrumentalness(flatness: float, harmonic_complexity: float) -> float:
    return clamp(0.8 * (1.0 - flatness) + 0.2 * harmonic_complexity)


def liveness(dynamic_range: float) -> float:
    return clamp((dynamic_range + 60.0) / 60.0)


def speechiness(rolloff: float, flatness: float) -> float:
    return clamp(0.7 * min(1.0, rolloff / 8000.0) + 0.3 * flatness)
