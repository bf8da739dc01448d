"""
Core data models for HitScope.

Immutable domain models for decoded audio, extracted features, reference
data and the scoring result. Every bounded numeric field is validated on
construction so out-of-range values fail fast instead of leaking into a
score.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

import numpy as np

PITCH_CLASSES: Tuple[str, ...] = (
    "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"
)
MODES: Tuple[str, ...] = ("major", "minor")

SILENCE_FLOOR_DB: float = -60.0


class FeatureSource(str, Enum):
    """Whether features were measured from PCM or estimated without it."""

    MEASURED = "measured"
    ESTIMATED = "estimated"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationCategory(str, Enum):
    PRODUCTION = "production"
    MARKETING = "marketing"
    DISTRIBUTION = "distribution"
    PERFORMANCE = "performance"
    ARRANGEMENT = "arrangement"
    AUDIENCE = "audience"
    GENRE = "genre"
    TIMING = "timing"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskCode(str, Enum):
    """Commercial risk flags raised by the risk assessor."""

    LOW_ENERGY = "low_energy"
    LOW_DANCEABILITY = "low_danceability"
    NICHE_GENRE = "niche_genre"
    DECLINING_GENRE = "declining_genre"
    SLOW_TEMPO = "slow_tempo"
    QUIET_MASTER = "quiet_master"
    HIGH_INSTRUMENTALNESS = "high_instrumentalness"


# ---------------------------------------------------------------------------
# Audio input
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class AudioBuffer:
    """
    Immutable decoded PCM audio.

    Samples are float64 in [-1, 1], shaped ``(n,)`` for mono or
    ``(channels, n)`` for multichannel audio. The array is copied and
    marked read-only so analyzers can share it across threads.
    """

    samples: np.ndarray
    sample_rate: int
    channels: int = 1
    source: Optional[str] = None
    content_hash: Optional[str] = None

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        if self.channels < 1:
            raise ValueError(f"Channel count must be >= 1, got {self.channels}")

        samples = np.array(self.samples, dtype=np.float64)
        if samples.ndim == 1:
            if self.channels != 1:
                raise ValueError(
                    f"1-D samples require channels=1, got {self.channels}"
                )
        elif samples.ndim == 2:
            if samples.shape[0] != self.channels:
                raise ValueError(
                    f"Samples shape {samples.shape} does not match "
                    f"{self.channels} channels"
                )
        else:
            raise ValueError(f"Samples must be 1-D or 2-D, got {samples.ndim}-D")

        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)

    @property
    def mono(self) -> np.ndarray:
        """Mono mixdown (channel mean)."""
        if self.samples.ndim == 1:
            return self.samples
        return np.mean(self.samples, axis=0)

    @property
    def num_samples(self) -> int:
        return int(self.samples.shape[-1])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.num_samples / self.sample_rate


# ---------------------------------------------------------------------------
# Analyzer outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpectralFeatures:
    """Frame-averaged spectral descriptors (all Hz except flatness)."""

    centroid: float
    rolloff: float
    flatness: float
    bandwidth: float
    frames_analyzed: int = 0

    def __post_init__(self) -> None:
        validate_unit("spectral_flatness", self.flatness)
        for name in ("centroid", "rolloff", "bandwidth"):
            validate_non_negative(f"spectral_{name}", getattr(self, name))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'centroid': self.centroid,
            'rolloff': self.rolloff,
            'flatness': self.flatness,
            'bandwidth': self.bandwidth,
            'frames_analyzed': self.frames_analyzed,
        }


@dataclass(frozen=True)
class TemporalFeatures:
    """Tempo and rhythm descriptors."""

    tempo: float  # BPM, [60, 200]
    rhythm_strength: float  # [0.0, 1.0]
    beat_confidence: float  # [0.0, 1.0]
    onset_count: int = 0

    def __post_init__(self) -> None:
        validate_tempo(self.tempo)
        validate_unit("rhythm_strength", self.rhythm_strength)
        validate_unit("beat_confidence", self.beat_confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tempo': self.tempo,
            'rhythm_strength': self.rhythm_strength,
            'beat_confidence': self.beat_confidence,
            'onset_count': self.onset_count,
        }


@dataclass(frozen=True)
class TonalFeatures:
    """Key, mode and harmonic descriptors."""

    key: str
    mode: str
    key_confidence: float  # [0.0, 1.0]
    harmonic_complexity: float  # [0.0, 1.0]
    chroma: Tuple[float, ...] = (0.0,) * 12
    key_uncertain: bool = False

    def __post_init__(self) -> None:
        validate_key(self.key)
        validate_mode(self.mode)
        validate_unit("key_confidence", self.key_confidence)
        validate_unit("harmonic_complexity", self.harmonic_complexity)
        if len(self.chroma) != 12:
            raise ValueError(f"Chroma must have 12 bins, got {len(self.chroma)}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'mode': self.mode,
            'key_confidence': self.key_confidence,
            'harmonic_complexity': self.harmonic_complexity,
            'chroma': list(self.chroma),
            'key_uncertain': self.key_uncertain,
        }


@dataclass(frozen=True)
class DynamicsFeatures:
    """Level descriptors."""

    rms: float
    dynamic_range: float  # dB
    crest_factor: float

    def __post_init__(self) -> None:
        validate_non_negative("rms", self.rms)
        validate_non_negative("crest_factor", self.crest_factor)
        validate_finite("dynamic_range", self.dynamic_range)

    @property
    def loudness(self) -> float:
        return rms_to_db(self.rms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rms': self.rms,
            'dynamic_range': self.dynamic_range,
            'crest_factor': self.crest_factor,
        }


@dataclass(frozen=True)
class RawFeatureSet:
    """
    Signal-derived features for one buffer.

    Computed once per buffer by the engine and never mutated.
    """

    duration: float
    sample_rate: int
    channels: int
    spectral_centroid: float
    spectral_rolloff: float
    spectral_flatness: float
    spectral_bandwidth: float
    tempo: float
    rhythm_strength: float
    beat_confidence: float
    key: str
    mode: str
    key_confidence: float
    harmonic_complexity: float
    rms: float
    dynamic_range: float
    crest_factor: float

    def __post_init__(self) -> None:
        validate_tempo(self.tempo)
        validate_key(self.key)
        validate_mode(self.mode)
        for name in (
            "spectral_flatness", "rhythm_strength", "beat_confidence",
            "key_confidence", "harmonic_complexity",
        ):
            validate_unit(name, getattr(self, name))
        for name in (
            "duration", "spectral_centroid", "spectral_rolloff",
            "spectral_bandwidth", "rms", "crest_factor",
        ):
            validate_non_negative(name, getattr(self, name))
        validate_finite("dynamic_range", self.dynamic_range)

    @classmethod
    def from_components(
        cls,
        buffer: AudioBuffer,
        spectral: SpectralFeatures,
        temporal: TemporalFeatures,
        tonal: TonalFeatures,
        dynamics: DynamicsFeatures,
    ) -> "RawFeatureSet":
        """Assemble the raw feature set from the four analyzer outputs."""
        return cls(
            duration=buffer.duration,
            sample_rate=buffer.sample_rate,
            channels=buffer.channels,
            spectral_centroid=spectral.centroid,
            spectral_rolloff=spectral.rolloff,
            spectral_flatness=spectral.flatness,
            spectral_bandwidth=spectral.bandwidth,
            tempo=temporal.tempo,
            rhythm_strength=temporal.rhythm_strength,
            beat_confidence=temporal.beat_confidence,
            key=tonal.key,
            mode=tonal.mode,
            key_confidence=tonal.key_confidence,
            harmonic_complexity=tonal.harmonic_complexity,
            rms=dynamics.rms,
            dynamic_range=dynamics.dynamic_range,
            crest_factor=dynamics.crest_factor,
        )

    @property
    def loudness(self) -> float:
        """RMS level in dBFS, floored at -60 dB."""
        return rms_to_db(self.rms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'duration': self.duration,
            'sample_rate': self.sample_rate,
            'channels': self.channels,
            'spectral_centroid': self.spectral_centroid,
            'spectral_rolloff': self.spectral_rolloff,
            'spectral_flatness': self.spectral_flatness,
            'spectral_bandwidth': self.spectral_bandwidth,
            'tempo': self.tempo,
            'rhythm_strength': self.rhythm_strength,
            'beat_confidence': self.beat_confidence,
            'key': self.key,
            'mode': self.mode,
            'key_confidence': self.key_confidence,
            'harmonic_complexity': self.harmonic_complexity,
            'rms': self.rms,
            'dynamic_range': self.dynamic_range,
            'crest_factor': self.crest_factor,
        }


@dataclass(frozen=True)
class PerceptualFeatureSet:
    """Bounded perceptual descriptors synthesized from raw features."""

    danceability: float
    energy: float
    valence: float
    acousticness: float
    instrumentalness: float
    liveness: float
    speechiness: float

    def __post_init__(self) -> None:
        for name in PERCEPTUAL_FIELDS:
            validate_unit(name, getattr(self, name))

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in PERCEPTUAL_FIELDS}


PERCEPTUAL_FIELDS: Tuple[str, ...] = (
    "danceability", "energy", "valence", "acousticness",
    "instrumentalness", "liveness", "speechiness",
)


# ---------------------------------------------------------------------------
# Scoring input
# ---------------------------------------------------------------------------

# Features that count towards scoring confidence
REQUIRED_FEATURES: Tuple[str, ...] = ("tempo", "danceability", "energy", "valence")

_UNIT_FIELDS: FrozenSet[str] = frozenset(PERCEPTUAL_FIELDS) | frozenset({
    "spectral_flatness", "rhythm_strength", "beat_confidence",
    "key_confidence", "harmonic_complexity",
})
_NON_NEGATIVE_FIELDS: FrozenSet[str] = frozenset({
    "spectral_centroid", "spectral_rolloff", "spectral_bandwidth",
    "rms", "crest_factor",
})
_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


@dataclass(frozen=True)
class TrackFeatures:
    """
    Complete feature record consumed by the scoring pipeline.

    Every field carries a default, so scoring code never deals with
    missing values. ``provided`` names the fields that were actually
    supplied; scoring uses it for confidence and to skip bonuses that
    would otherwise be earned by defaults alone.
    """

    tempo: float = 120.0
    danceability: float = 0.5
    energy: float = 0.5
    valence: float = 0.5
    acousticness: float = 0.5
    instrumentalness: float = 0.5
    liveness: float = 0.5
    speechiness: float = 0.5
    spectral_centroid: float = 2000.0
    spectral_rolloff: float = 4000.0
    spectral_flatness: float = 0.5
    spectral_bandwidth: float = 0.0
    rhythm_strength: float = 0.5
    beat_confidence: float = 0.5
    key: Optional[str] = None
    mode: Optional[str] = None
    key_confidence: float = 0.5
    harmonic_complexity: float = 0.5
    rms: float = 0.3
    loudness: float = -10.5  # dBFS
    dynamic_range: float = -30.0  # dB
    crest_factor: float = 5.0
    provided: FrozenSet[str] = field(default_factory=frozenset)
    source: FeatureSource = FeatureSource.MEASURED

    def __post_init__(self) -> None:
        validate_tempo(self.tempo)
        for name in _UNIT_FIELDS:
            validate_unit(name, getattr(self, name))
        for name in _NON_NEGATIVE_FIELDS:
            validate_non_negative(name, getattr(self, name))
        validate_finite("loudness", self.loudness)
        validate_finite("dynamic_range", self.dynamic_range)
        if self.key is not None:
            validate_key(self.key)
        if self.mode is not None:
            validate_mode(self.mode)
        unknown = set(self.provided) - set(TRACK_FEATURE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown provided fields: {sorted(unknown)}")

    @classmethod
    def from_analysis(
        cls,
        raw: RawFeatureSet,
        perceptual: PerceptualFeatureSet,
        source: FeatureSource = FeatureSource.MEASURED,
    ) -> "TrackFeatures":
        """Build a fully provided record from analyzer output."""
        values: Dict[str, Any] = perceptual.to_dict()
        for name in TRACK_FEATURE_FIELDS:
            if name not in values and hasattr(raw, name):
                values[name] = getattr(raw, name)
        values["loudness"] = raw.loudness
        return cls(
            provided=frozenset(TRACK_FEATURE_FIELDS),
            source=source,
            **values,
        )

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        source: FeatureSource = FeatureSource.MEASURED,
    ) -> "TrackFeatures":
        """
        Build a record from a partial mapping.

        Keys may be snake_case or camelCase. Unknown keys, ``None`` and
        non-finite numbers are ignored so the field keeps its default.
        Unit-interval values are clamped to [0, 1] and tempo to [60, 200].
        When ``loudness`` is absent but ``rms`` is present, loudness is
        derived from it.
        """
        values: Dict[str, Any] = {}
        for raw_key, value in data.items():
            name = _CAMEL_BOUNDARY.sub('_', str(raw_key)).lower()
            if name not in TRACK_FEATURE_FIELDS or value is None:
                continue
            if name == "key":
                key = str(value).strip().upper().replace("♯", "#")
                if key in PITCH_CLASSES:
                    values[name] = key
                continue
            if name == "mode":
                mode = str(value).strip().lower()
                if mode in MODES:
                    values[name] = mode
                continue
            if isinstance(value, bool):
                continue
            try:
                number = float(value)
            except (TypeError, ValueError):
                continue
            if not math.isfinite(number):
                continue
            if name == "tempo":
                number = clamp(number, TEMPO_MIN, TEMPO_MAX)
            elif name in _UNIT_FIELDS:
                number = clamp(number)
            elif name in _NON_NEGATIVE_FIELDS:
                number = max(0.0, number)
            values[name] = number

        if "loudness" not in values and "rms" in values:
            values["loudness"] = rms_to_db(values["rms"])

        return cls(provided=frozenset(values), source=source, **values)

    def is_provided(self, name: str) -> bool:
        return name in self.provided

    @property
    def required_provided(self) -> int:
        """Number of confidence-relevant features that were supplied."""
        return sum(1 for name in REQUIRED_FEATURES if name in self.provided)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            name: getattr(self, name) for name in TRACK_FEATURE_FIELDS
        }
        data['provided'] = sorted(self.provided)
        data['source'] = self.source.value
        return data


TRACK_FEATURE_FIELDS: Tuple[str, ...] = (
    "tempo", "danceability", "energy", "valence", "acousticness",
    "instrumentalness", "liveness", "speechiness", "spectral_centroid",
    "spectral_rolloff", "spectral_flatness", "spectral_bandwidth",
    "rhythm_strength", "beat_confidence", "key", "mode", "key_confidence",
    "harmonic_complexity", "rms", "loudness", "dynamic_range", "crest_factor",
)

# Fixed order of the scoring vector
FEATURE_VECTOR_FIELDS: Tuple[str, ...] = (
    "danceability", "energy", "valence", "acousticness", "instrumentalness",
    "liveness", "speechiness", "tempo", "spectral_centroid",
    "spectral_rolloff", "rhythm_strength", "beat_confidence",
    "key_confidence", "harmonic_complexity", "dynamic_range", "crest_factor",
)


@dataclass(frozen=True)
class FeatureVector:
    """Fixed-order, [0, 1]-normalized feature vector."""

    values: Tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.values) != len(FEATURE_VECTOR_FIELDS):
            raise ValueError(
                f"Feature vector needs {len(FEATURE_VECTOR_FIELDS)} values, "
                f"got {len(self.values)}"
            )
        for name, value in zip(FEATURE_VECTOR_FIELDS, self.values):
            validate_unit(name, value)

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def __len__(self) -> int:
        return len(self.values)

    def get(self, name: str) -> float:
        return self.values[FEATURE_VECTOR_FIELDS.index(name)]

    def as_array(self) -> np.ndarray:
        return np.asarray(self.values, dtype=np.float64)

    def to_dict(self) -> Dict[str, float]:
        return dict(zip(FEATURE_VECTOR_FIELDS, self.values))


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeatureRange:
    """Inclusive [min, max] range with a preferred peak value."""

    min: float
    max: float
    peak: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"Range min {self.min} exceeds max {self.max}")

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    @property
    def half_width(self) -> float:
        return (self.max - self.min) / 2

    def to_dict(self) -> Dict[str, float]:
        return {'min': self.min, 'max': self.max, 'peak': self.peak}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeatureRange":
        low, high = float(data["min"]), float(data["max"])
        peak = data.get("peak")
        return cls(low, high, float(peak) if peak is not None else (low + high) / 2)


TempoRange = FeatureRange


def _freeze(mapping: Optional[Mapping[Any, Any]]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class GenreProfile:
    """
    Static market and scoring reference data for one genre.

    Mapping fields are wrapped in read-only proxies so a shared profile
    cannot be mutated by a request.
    """

    key: str
    name: str
    market_share: float
    growth_rate: float
    peak_seasons: Tuple[str, ...]
    demographics: Tuple[str, ...]
    platform_performance: Mapping[str, float]
    feature_weights: Mapping[str, float]
    alignment_ranges: Mapping[str, FeatureRange]
    market_multiplier: float = 1.0
    social_multiplier: float = 1.0
    success_factors: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        validate_unit("market_share", self.market_share)
        for name in ("platform_performance", "feature_weights", "alignment_ranges"):
            object.__setattr__(self, name, _freeze(getattr(self, name)))
        for platform, score in self.platform_performance.items():
            validate_unit(f"platform_performance.{platform}", score)

    @property
    def best_platform(self) -> Optional[str]:
        """Platform with the highest performance score, if any."""
        if not self.platform_performance:
            return None
        return max(self.platform_performance.items(), key=lambda item: item[1])[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'name': self.name,
            'market_share': self.market_share,
            'growth_rate': self.growth_rate,
            'peak_seasons': list(self.peak_seasons),
            'demographics': list(self.demographics),
            'platform_performance': dict(self.platform_performance),
            'feature_weights': dict(self.feature_weights),
            'alignment_ranges': {
                name: rng.to_dict() for name, rng in self.alignment_ranges.items()
            },
            'market_multiplier': self.market_multiplier,
            'social_multiplier': self.social_multiplier,
            'success_factors': list(self.success_factors),
        }


ENERGY_TIERS: Tuple[str, ...] = ("low", "medium", "high")


@dataclass(frozen=True)
class MarketTrendsSnapshot:
    """Aggregated market trend signals at a point in time."""

    trending_genres: Mapping[str, float]
    optimal_tempo: FeatureRange
    popular_keys: Mapping[str, float]
    energy_tiers: Mapping[str, float]
    seasonal_factors: Mapping[int, float] = field(default_factory=dict)
    is_default: bool = False

    def __post_init__(self) -> None:
        for name in ("trending_genres", "popular_keys", "energy_tiers", "seasonal_factors"):
            object.__setattr__(self, name, _freeze(getattr(self, name)))
        for tier, share in self.energy_tiers.items():
            if tier not in ENERGY_TIERS:
                raise ValueError(f"Unknown energy tier: {tier}")
            validate_unit(f"energy_tiers.{tier}", share)
        for key, share in self.popular_keys.items():
            validate_key(key)
            validate_unit(f"popular_keys.{key}", share)
        for month in self.seasonal_factors:
            if not 1 <= month <= 12:
                raise ValueError(f"Seasonal factor month out of range: {month}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], is_default: bool = False) -> "MarketTrendsSnapshot":
        """
        Parse a snapshot from a loosely structured mapping.

        Accepts snake_case or camelCase section names, and the legacy
        ``energyTrends`` spelling for energy tiers.

        Raises:
            ValueError: If a section is malformed
        """
        def section(*names: str) -> Any:
            for name in names:
                if name in data and data[name] is not None:
                    return data[name]
            return None

        tempo = section("optimal_tempo", "optimalTempo")
        if not isinstance(tempo, Mapping):
            raise ValueError("Snapshot is missing optimal_tempo {min, max, peak}")

        try:
            seasonal = {
                int(month): float(factor)
                for month, factor in (section("seasonal_factors", "seasonalFactors") or {}).items()
            }
            return cls(
                trending_genres={
                    str(genre): float(share)
                    for genre, share in (section("trending_genres", "trendingGenres") or {}).items()
                },
                optimal_tempo=FeatureRange.from_dict(tempo),
                popular_keys={
                    str(key): float(share)
                    for key, share in (section("popular_keys", "popularKeys") or {}).items()
                },
                energy_tiers={
                    str(tier): float(share)
                    for tier, share in (
                        section("energy_tiers", "energyTiers", "energyTrends") or {}
                    ).items()
                },
                seasonal_factors=seasonal,
                is_default=is_default,
            )
        except (AttributeError, KeyError, TypeError) as e:
            raise ValueError(f"Malformed market snapshot: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trending_genres': dict(self.trending_genres),
            'optimal_tempo': self.optimal_tempo.to_dict(),
            'popular_keys': dict(self.popular_keys),
            'energy_tiers': dict(self.energy_tiers),
            'seasonal_factors': {str(m): f for m, f in sorted(self.seasonal_factors.items())},
            'is_default': self.is_default,
        }


# ---------------------------------------------------------------------------
# Scoring output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-criterion scores, each in [0, 100]."""

    audio_features: int
    market_trends: int
    genre_alignment: int
    seasonal_factors: int

    def __post_init__(self) -> None:
        for name in ("audio_features", "market_trends", "genre_alignment", "seasonal_factors"):
            validate_score(name, getattr(self, name))

    def to_dict(self) -> Dict[str, int]:
        return {
            'audio_features': self.audio_features,
            'market_trends': self.market_trends,
            'genre_alignment': self.genre_alignment,
            'seasonal_factors': self.seasonal_factors,
        }


@dataclass(frozen=True)
class Recommendation:
    """Single actionable (or, for released tracks, descriptive) suggestion."""

    category: RecommendationCategory
    priority: Priority
    title: str
    description: str
    impact: int  # [0, 100]
    implementation: str

    def __post_init__(self) -> None:
        validate_score("impact", self.impact)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category.value,
            'priority': self.priority.value,
            'title': self.title,
            'description': self.description,
            'impact': self.impact,
            'implementation': self.implementation,
        }


@dataclass(frozen=True)
class RiskAssessment:
    """Penalty-based commercial risk summary."""

    overall_risk: RiskLevel
    risk_score: int  # [0, 100]
    risk_codes: Tuple[RiskCode, ...]
    risk_factors: Tuple[str, ...]
    mitigation_strategies: Tuple[str, ...]

    def __post_init__(self) -> None:
        validate_score("risk_score", self.risk_score)
        if self.overall_risk is not risk_level_for(self.risk_score):
            raise ValueError(
                f"Risk level {self.overall_risk.value} inconsistent with "
                f"score {self.risk_score}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall_risk': self.overall_risk.value,
            'risk_score': self.risk_score,
            'risk_codes': [code.value for code in self.risk_codes],
            'risk_factors': list(self.risk_factors),
            'mitigation_strategies': list(self.mitigation_strategies),
        }


@dataclass(frozen=True)
class SuccessScoreResult:
    """
    Complete commercial success assessment for one track.

    A pure function of its inputs: no timestamps or timings are stored
    so identical inputs serialize to identical JSON.
    """

    overall_score: int
    confidence: float
    breakdown: ScoreBreakdown
    recommendations: Tuple[Recommendation, ...]
    risk_factors: Tuple[str, ...]
    risk_assessment: RiskAssessment
    market_potential: int
    social_score: int
    genre: str
    feature_fit: int = 50
    feature_source: FeatureSource = FeatureSource.MEASURED
    market_source: str = "none"  # live | default | none
    features: Mapping[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    def __post_init__(self) -> None:
        validate_score("overall_score", self.overall_score)
        validate_score("market_potential", self.market_potential)
        validate_score("social_score", self.social_score)
        validate_score("feature_fit", self.feature_fit)
        validate_unit("confidence", self.confidence)
        impacts = [rec.impact for rec in self.recommendations]
        if impacts != sorted(impacts, reverse=True):
            raise ValueError("Recommendations must be sorted by impact, descending")

    @property
    def is_estimated(self) -> bool:
        return self.feature_source is FeatureSource.ESTIMATED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'source': self.source,
            'overall_score': self.overall_score,
            'confidence': self.confidence,
            'breakdown': self.breakdown.to_dict(),
            'recommendations': [rec.to_dict() for rec in self.recommendations],
            'risk_factors': list(self.risk_factors),
            'risk_assessment': self.risk_assessment.to_dict(),
            'market_potential': self.market_potential,
            'social_score': self.social_score,
            'feature_fit': self.feature_fit,
            'genre': self.genre,
            'feature_source': self.feature_source.value,
            'market_source': self.market_source,
            'features': dict(self.features),
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def get_summary(self) -> str:
        """Get human-readable one-line summary."""
        parts = [
            f"Score: {self.overall_score}/100",
            f"Confidence: {self.confidence:.0%}",
            f"Genre: {self.genre}",
            f"Risk: {self.risk_assessment.overall_risk.value}",
        ]
        if self.is_estimated:
            parts.append("Features: estimated")
        return " | ".join(parts)


# Validation helpers

TEMPO_MIN: float = 60.0
TEMPO_MAX: float = 200.0


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp ``value`` into [low, high]."""
    return float(min(high, max(low, value)))


def rms_to_db(rms: float) -> float:
    """Convert an RMS amplitude to dBFS, floored for silence."""
    if rms <= 0:
        return SILENCE_FLOOR_DB
    return max(SILENCE_FLOOR_DB, 20.0 * math.log10(rms))


def risk_level_for(score: float) -> RiskLevel:
    """Bucket a risk score: >50 high, >25 medium, otherwise low."""
    if score > 50:
        return RiskLevel.HIGH
    if score > 25:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def validate_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")


def validate_unit(name: str, value: float) -> None:
    """Validate value is in [0.0, 1.0]."""
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be in [0.0, 1.0], got {value}")


def validate_non_negative(name: str, value: float) -> None:
    if not (math.isfinite(value) and value >= 0):
        raise ValueError(f"{name} must be a finite value >= 0, got {value}")


def validate_score(name: str, value: float) -> None:
    """Validate value is in [0, 100]."""
    if not (0 <= value <= 100):
        raise ValueError(f"{name} must be in [0, 100], got {value}")


def validate_tempo(tempo: float) -> None:
    if not (TEMPO_MIN <= tempo <= TEMPO_MAX):
        raise ValueError(f"Tempo must be in [{TEMPO_MIN}, {TEMPO_MAX}] BPM, got {tempo}")


def validate_key(key: str) -> None:
    if key not in PITCH_CLASSES:
        raise ValueError(f"Invalid key: {key}. Must be one of {PITCH_CLASSES}")


def validate_mode(mode: str) -> None:
    if mode not in MODES:
        raise ValueError(f"Invalid mode: {mode}. Must be one of {MODES}")
