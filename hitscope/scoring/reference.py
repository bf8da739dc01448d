"""
Reference data for HitScope scoring.

Optimal feature ranges, genre profiles, seasonal factors and the default
market snapshot. Everything here is built once at import and exposed
through read-only mappings, frozen dataclasses and tuples, so tables can
be shared across threads and requests without copying.
"""

import re
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from hitscope.core.models import FeatureRange, GenreProfile, MarketTrendsSnapshot

OPTIMAL_RANGES: Mapping[str, FeatureRange] = MappingProxyType({
    "danceability": FeatureRange(0.6, 0.9, 0.75),
    "energy": FeatureRange(0.5, 0.9, 0.7),
    "valence": FeatureRange(0.4, 0.8, 0.6),
    "acousticness": FeatureRange(0.0, 0.3, 0.1),
    "instrumentalness": FeatureRange(0.0, 0.2, 0.05),
    "liveness": FeatureRange(0.0, 0.3, 0.1),
    "speechiness": FeatureRange(0.0, 0.1, 0.05),
    "tempo": FeatureRange(100.0, 140.0, 120.0),
    "loudness": FeatureRange(-12.0, -6.0, -9.0),
})

# Release month (1-12) -> demand multiplier
SEASONAL_FACTORS: Mapping[int, float] = MappingProxyType({
    1: 0.9, 2: 0.95, 3: 1.0, 4: 1.05, 5: 1.1, 6: 1.15,
    7: 1.1, 8: 1.05, 9: 1.0, 10: 1.05, 11: 1.1, 12: 1.2,
})

# Feature-vector field -> weight of the linear ensemble term; sums to 1.08
LINEAR_FEATURE_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "danceability": 0.15,
    "energy": 0.12,
    "valence": 0.10,
    "acousticness": 0.08,
    "instrumentalness": 0.08,
    "liveness": 0.06,
    "speechiness": 0.05,
    "tempo": 0.08,
    "spectral_centroid": 0.08,
    "spectral_rolloff": 0.06,
    "rhythm_strength": 0.06,
    "beat_confidence": 0.04,
    "key_confidence": 0.04,
    "harmonic_complexity": 0.03,
    "dynamic_range": 0.03,
    "crest_factor": 0.02,
})


def _ranges(danceability, energy, valence, tempo) -> Mapping[str, FeatureRange]:
    def mid(low, high):
        return FeatureRange(low, high, (low + high) / 2)
    return {
        "danceability": mid(*danceability),
        "energy": mid(*energy),
        "valence": mid(*valence),
        "tempo": mid(*tempo),
    }


_POP_WEIGHTS = {
    "danceability": 0.25, "energy": 0.2, "valence": 0.2, "tempo": 0.15,
    "loudness": 0.1, "acousticness": 0.05, "instrumentalness": 0.05,
}
_POP_RANGES = _ranges((0.6, 0.9), (0.5, 0.8), (0.4, 0.8), (100, 130))

_PROFILES: Tuple[GenreProfile, ...] = (
    GenreProfile(
        key="pop",
        name="Pop",
        market_share=0.35,
        growth_rate=0.08,
        peak_seasons=("spring", "summer"),
        demographics=("16-24", "25-34"),
        platform_performance={"spotify": 0.9, "apple_music": 0.85, "youtube": 0.8, "tiktok": 0.95},
        feature_weights=_POP_WEIGHTS,
        alignment_ranges=_POP_RANGES,
        market_multiplier=1.2,
        social_multiplier=1.2,
        success_factors=("catchy melody", "high production quality", "strong hook"),
    ),
    GenreProfile(
        key="hip_hop",
        name="Hip-Hop",
        market_share=0.25,
        growth_rate=0.15,
        peak_seasons=("summer", "fall"),
        demographics=("16-24", "25-34"),
        platform_performance={"spotify": 0.9, "apple_music": 0.8, "youtube": 0.85, "tiktok": 0.9},
        feature_weights={
            "danceability": 0.2, "energy": 0.25, "valence": 0.15, "tempo": 0.2,
            "loudness": 0.15, "acousticness": 0.03, "instrumentalness": 0.02,
        },
        alignment_ranges=_ranges((0.7, 0.9), (0.6, 0.9), (0.3, 0.7), (80, 110)),
        market_multiplier=1.1,
        social_multiplier=1.3,
        success_factors=("strong beat", "lyrical content", "flow"),
    ),
    GenreProfile(
        key="rock",
        name="Rock",
        market_share=0.20,
        growth_rate=-0.02,
        peak_seasons=("summer",),
        demographics=("25-34", "35-44"),
        platform_performance={"spotify": 0.8, "apple_music": 0.75, "youtube": 0.85, "tiktok": 0.6},
        feature_weights={
            "danceability": 0.15, "energy": 0.3, "valence": 0.1, "tempo": 0.2,
            "loudness": 0.2, "acousticness": 0.03, "instrumentalness": 0.02,
        },
        alignment_ranges=_ranges((0.4, 0.7), (0.7, 0.95), (0.3, 0.7), (110, 150)),
        market_multiplier=0.9,
        social_multiplier=0.9,
        success_factors=("guitar riffs", "powerful vocals", "live energy"),
    ),
    GenreProfile(
        key="electronic",
        name="Electronic",
        market_share=0.15,
        growth_rate=0.12,
        peak_seasons=("summer", "winter"),
        demographics=("18-24", "25-34"),
        platform_performance={"spotify": 0.85, "apple_music": 0.7, "youtube": 0.75, "tiktok": 0.85},
        feature_weights={
            "danceability": 0.3, "energy": 0.25, "valence": 0.15, "tempo": 0.2,
            "loudness": 0.1,
        },
        alignment_ranges=_ranges((0.7, 0.95), (0.7, 0.95), (0.4, 0.8), (120, 140)),
        market_multiplier=1.0,
        social_multiplier=1.1,
        success_factors=("drop", "production quality", "danceability"),
    ),
    GenreProfile(
        key="rnb",
        name="R&B",
        market_share=0.10,
        growth_rate=0.04,
        peak_seasons=("winter", "spring"),
        demographics=("18-24", "25-34"),
        platform_performance={"spotify": 0.85, "apple_music": 0.85, "youtube": 0.75, "tiktok": 0.8},
        feature_weights={
            "danceability": 0.2, "energy": 0.15, "valence": 0.25, "tempo": 0.15,
            "loudness": 0.1, "acousticness": 0.1, "instrumentalness": 0.05,
        },
        alignment_ranges=_ranges((0.5, 0.8), (0.4, 0.7), (0.4, 0.8), (70, 110)),
        market_multiplier=0.8,
        social_multiplier=0.8,
        success_factors=("vocal performance", "groove", "emotional delivery"),
    ),
    GenreProfile(
        key="country",
        name="Country",
        market_share=0.08,
        growth_rate=0.02,
        peak_seasons=("summer", "fall"),
        demographics=("25-34", "35-44", "45-54"),
        platform_performance={"spotify": 0.75, "apple_music": 0.8, "youtube": 0.7, "tiktok": 0.6},
        feature_weights={
            "danceability": 0.15, "energy": 0.15, "valence": 0.25, "tempo": 0.15,
            "loudness": 0.1, "acousticness": 0.15, "instrumentalness": 0.05,
        },
        alignment_ranges=_ranges((0.5, 0.7), (0.4, 0.7), (0.5, 0.8), (90, 130)),
        market_multiplier=0.7,
        social_multiplier=0.7,
        success_factors=("storytelling", "authentic vocals", "relatable themes"),
    ),
    GenreProfile(
        key="folk",
        name="Folk",
        market_share=0.05,
        growth_rate=0.03,
        peak_seasons=("fall", "winter"),
        demographics=("25-34", "35-44"),
        platform_performance={"spotify": 0.7, "apple_music": 0.75, "youtube": 0.65, "tiktok": 0.5},
        feature_weights={
            "danceability": 0.1, "energy": 0.15, "valence": 0.3, "tempo": 0.2,
            "loudness": 0.1, "acousticness": 0.1, "instrumentalness": 0.05,
        },
        alignment_ranges=_ranges((0.3, 0.6), (0.2, 0.5), (0.3, 0.7), (80, 120)),
        market_multiplier=0.6,
        social_multiplier=0.7,
        success_factors=("authentic storytelling", "acoustic arrangement", "vocal intimacy"),
    ),
)

GENRE_PROFILES: Mapping[str, GenreProfile] = MappingProxyType(
    {profile.key: profile for profile in _PROFILES}
)

# Used for unknown or unspecified genres
DEFAULT_PROFILE = GenreProfile(
    key="default",
    name="Unspecified",
    market_share=0.10,
    growth_rate=0.0,
    peak_seasons=(),
    demographics=("18-34",),
    platform_performance={"spotify": 0.8, "apple_music": 0.75, "youtube": 0.75, "tiktok": 0.75},
    feature_weights=_POP_WEIGHTS,
    alignment_ranges=_POP_RANGES,
    market_multiplier=1.0,
    social_multiplier=1.0,
)

_GENRE_ALIASES: Mapping[str, str] = MappingProxyType({
    "r&b": "rnb",
    "r_and_b": "rnb",
    "rhythm_and_blues": "rnb",
    "hiphop": "hip_hop",
    "rap": "hip_hop",
    "edm": "electronic",
    "dance": "electronic",
})
_SEPARATORS = re.compile(r"[\s\-]+")

DEFAULT_MARKET_SNAPSHOT = MarketTrendsSnapshot(
    trending_genres={"pop": 0.4, "hip_hop": 0.3, "country": 0.2, "rnb": 0.1},
    optimal_tempo=OPTIMAL_RANGES["tempo"],
    popular_keys={"C": 0.2, "G": 0.2, "D": 0.15, "A": 0.15, "E": 0.1, "F": 0.1, "B": 0.1},
    energy_tiers={"low": 0.2, "medium": 0.5, "high": 0.3},
    seasonal_factors=SEASONAL_FACTORS,
    is_default=True,
)


def normalize_genre(genre: Optional[str]) -> Optional[str]:
    """
    Canonical genre key: lowercased, with spaces and hyphens as "_".

    Returns None for a missing or blank genre.
    """
    if genre is None:
        return None
    key = _SEPARATORS.sub("_", str(genre).strip().lower())
    if not key:
        return None
    return _GENRE_ALIASES.get(key, key)


def get_genre_profile(genre: Optional[str]) -> GenreProfile:
    """Profile for ``genre``; the default profile when unknown or unspecified."""
    key = normalize_genre(genre)
    if key is None:
        return DEFAULT_PROFILE
    return GENRE_PROFILES.get(key, DEFAULT_PROFILE)


def seasonal_factor(month: Optional[int]) -> Optional[float]:
    if month is None:
        return None
    return SEASONAL_FACTORS.get(month)
