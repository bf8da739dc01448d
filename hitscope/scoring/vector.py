"""
Feature vector construction for HitScope scoring.
"""

from types import MappingProxyType
from typing import Callable, Mapping, Tuple

from hitscope.core.models import FEATURE_VECTOR_FIELDS, FeatureVector, TrackFeatures, clamp

# Field -> normalization into [0, 1]; order follows FEATURE_VECTOR_FIELDS
NORMALIZERS: Mapping[str, Callable[[float], float]] = MappingProxyType({
    "tempo": lambda bpm: bpm / 200.0,
    "spectral_centroid": lambda hz: hz / 8000.0,
    "spectral_rolloff": lambda hz: hz / 8000.0,
    "dynamic_range": lambda db: (db + 60.0) / 60.0,
    "crest_factor": lambda ratio: ratio / 10.0,
})


class FeatureVectorBuilder:
    """Normalizes a TrackFeatures record into the fixed-order vector."""

    fields: Tuple[str, ...] = FEATURE_VECTOR_FIELDS

    def build(self, features: TrackFeatures) -> FeatureVector:
        values = []
        for name in self.fields:
            value = float(getattr(features, name))
            normalize = NORMALIZERS.get(name)
            if normalize is not None:
                value = normalize(value)
            values.append(clamp(value))
        return FeatureVector(tuple(values))
