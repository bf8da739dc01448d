"""
Success scorer for HitScope.

Combines a track's features with its genre profile, an optional market
trends snapshot and an optional release date into an overall score,
per-criterion breakdown, confidence, market potential and social score.

Scoring model
-------------
overall = 0.4 * audio_features + 0.3 * market_trends
        + 0.2 * genre_alignment + 0.1 * seasonal

audio_features is itself an ensemble:

    0.4 * linear   fixed-weight sum of the normalized feature vector
  + 0.3 * sigmoid  mean logistic transform of the feature vector
  + 0.3 * rules    genre-conditional bonus thresholds

The genre-weighted mean of per-feature range scores is reported
alongside as feature_fit; it does not enter the overall score.

All methods are pure; the scorer holds only immutable reference data.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional

from hitscope.core.models import (
    FeatureRange,
    FeatureSource,
    FeatureVector,
    GenreProfile,
    MarketTrendsSnapshot,
    ScoreBreakdown,
    TrackFeatures,
    clamp,
)
from hitscope.scoring.reference import (
    LINEAR_FEATURE_WEIGHTS,
    OPTIMAL_RANGES,
    SEASONAL_FACTORS,
    get_genre_profile,
)
from hitscope.scoring.vector import FeatureVectorBuilder

# Overall weighting
AUDIO_WEIGHT = 0.4
MARKET_WEIGHT = 0.3
GENRE_WEIGHT = 0.2
SEASONAL_WEIGHT = 0.1

# Audio ensemble weighting
LINEAR_WEIGHT = 0.4
SIGMOID_WEIGHT = 0.3
RULE_WEIGHT = 0.3

NEUTRAL_SCORE = 50.0
IN_RANGE_BONUS = 25.0
OUT_OF_RANGE_BONUS = 10.0
ALIGNMENT_FEATURES = ("danceability", "energy", "valence", "tempo")


def calculate_feature_score(value: float, optimal: FeatureRange) -> float:
    """
    Score how close ``value`` is to the optimal range, in [0, 1].

    Inside the range the score falls linearly from 1.0 at the peak to a
    floor of 0.7; outside it drops by 0.1 per unit of distance to the
    nearest bound, down to 0.
    """
    if optimal.contains(value):
        if optimal.half_width == 0:
            return 1.0 if value == optimal.peak else 0.7
        distance = abs(value - optimal.peak)
        return max(0.7, 1.0 - 0.3 * distance / optimal.half_width)
    distance = optimal.min - value if value < optimal.min else value - optimal.max
    return max(0.0, 0.7 - 0.1 * distance)


def sigmoid(x: float) -> float:
    return 1.0 / (1.0 + math.exp(-5.0 * (x - 0.5)))


def energy_tier(energy: float) -> str:
    if energy < 0.3:
        return "low"
    if energy < 0.7:
        return "medium"
    return "high"


@dataclass(frozen=True)
class ScoreCard:
    """Scorer output consumed by the recommendation and risk stages."""

    overall_score: int
    breakdown: ScoreBreakdown
    confidence: float
    market_potential: int
    social_score: int
    profile: GenreProfile
    vector: FeatureVector
    feature_fit: int = 50


class SuccessScorer:
    """Weighted, genre-conditional multi-criteria scorer."""

    def __init__(
        self,
        vector_builder: Optional[FeatureVectorBuilder] = None,
        optimal_ranges: Mapping[str, FeatureRange] = OPTIMAL_RANGES,
        seasonal_factors: Mapping[int, float] = SEASONAL_FACTORS,
        estimated_confidence_factor: float = 0.5,
    ):
        self.vector_builder = vector_builder or FeatureVectorBuilder()
        self.optimal_ranges = optimal_ranges
        self.seasonal_factors = seasonal_factors
        self.estimated_confidence_factor = estimated_confidence_factor
        self.logger = logging.getLogger("scoring")

    def score(
        self,
        features: TrackFeatures,
        genre: Optional[str] = None,
        release_date: Optional[date] = None,
        market_trends: Optional[MarketTrendsSnapshot] = None,
    ) -> ScoreCard:
        """
        Score a track.

        Args:
            features: Feature record (measured or estimated)
            genre: Declared genre; unknown values use the default profile
            release_date: Planned or actual release date
            market_trends: Snapshot to score against; None scores a flat 50

        Returns:
            ScoreCard with all scores bounded to their ranges
        """
        profile = get_genre_profile(genre)
        vector = self.vector_builder.build(features)

        audio = self.audio_features_score(vector, profile)
        market = self.market_trends_score(features, market_trends)
        alignment = self.genre_alignment_score(features, profile)
        seasonal = self.seasonal_score(release_date)

        overall = round(
            AUDIO_WEIGHT * audio
            + MARKET_WEIGHT * market
            + GENRE_WEIGHT * alignment
            + SEASONAL_WEIGHT * seasonal
        )

        breakdown = ScoreBreakdown(
            audio_features=_bounded_int(audio),
            market_trends=_bounded_int(market),
            genre_alignment=_bounded_int(alignment),
            seasonal_factors=_bounded_int(seasonal),
        )
        confidence = self.confidence(
            features,
            genre_given=bool(genre and str(genre).strip()),
            market_given=market_trends is not None and not market_trends.is_default,
        )

        self.logger.debug(
            f"Scored {profile.key}: overall={overall} audio={audio:.1f} "
            f"market={market:.1f} genre={alignment:.1f} seasonal={seasonal:.1f}"
        )

        return ScoreCard(
            overall_score=_bounded_int(overall),
            breakdown=breakdown,
            confidence=confidence,
            market_potential=self.market_potential(features, profile),
            social_score=self.social_score(features, profile),
            profile=profile,
            vector=vector,
            feature_fit=_bounded_int(self.feature_fit_score(features, profile)),
        )

    # -- audio features ------------------------------------------------

    def audio_features_score(self, vector: FeatureVector, profile: GenreProfile) -> float:
        linear = self.linear_score(vector)
        sigmoid_score = self.sigmoid_score(vector)
        rules = self.rule_score(vector, profile)
        return clamp(
            LINEAR_WEIGHT * linear + SIGMOID_WEIGHT * sigmoid_score + RULE_WEIGHT * rules,
            0.0, 100.0,
        )

    @staticmethod
    def linear_score(vector: FeatureVector) -> float:
        """Weighted sum of the normalized feature vector, x100, capped at 100."""
        total = sum(
            LINEAR_FEATURE_WEIGHTS[name] * value for name, value in vector.to_dict().items()
        )
        return clamp(100.0 * total, 0.0, 100.0)

    def feature_fit_score(self, features: TrackFeatures, profile: GenreProfile) -> float:
        """
        Genre-weighted mean of per-feature range scores, x100.

        Only provided features count; with none provided the fit is neutral.
        """
        weighted = 0.0
        total_weight = 0.0
        for name, weight in profile.feature_weights.items():
            optimal = self.optimal_ranges.get(name)
            if optimal is None or not features.is_provided(name):
                continue
            weighted += weight * calculate_feature_score(getattr(features, name), optimal)
            total_weight += weight

        if total_weight == 0:
            return NEUTRAL_SCORE
        return clamp(100.0 * weighted / total_weight, 0.0, 100.0)

    @staticmethod
    def sigmoid_score(vector: FeatureVector) -> float:
        return 100.0 * sum(sigmoid(v) for v in vector.values) / len(vector)

    @staticmethod
    def rule_score(vector: FeatureVector, profile: GenreProfile) -> float:
        """Genre-conditional bonuses over the feature vector, capped at 100."""
        v = vector
        score = NEUTRAL_SCORE
        if profile.key == "pop":
            score += 15 if v[0] > 0.7 else 0
            score += 12 if v[1] > 0.7 else 0
            score += 10 if v[2] > 0.6 else 0
            score += 8 if v[8] > 0.5 else 0
        elif profile.key == "rock":
            score += 18 if v[1] > 0.8 else 0
            score += 8 if v[0] > 0.5 else 0
            score += 10 if v[7] > 0.6 else 0
            score += 8 if v[3] < 0.4 else 0
        elif profile.key == "electronic":
            score += 20 if v[0] > 0.8 else 0
            score += 15 if v[1] > 0.7 else 0
            score += 10 if v[3] < 0.3 else 0
            score += 8 if v[8] > 0.6 else 0
        elif profile.key == "hip_hop":
            score += 15 if 0.4 < v[7] < 0.7 else 0
            score += 18 if v[10] > 0.7 else 0
            score += 12 if v[11] > 0.6 else 0
            score += 8 if v[2] > 0.5 else 0
        else:
            score += (v[0] + v[1] + v[2]) * 20
        return min(100.0, score)

    # -- context ------------------------------------------------------

    def market_trends_score(
        self,
        features: TrackFeatures,
        market_trends: Optional[MarketTrendsSnapshot],
    ) -> float:
        if market_trends is None:
            return NEUTRAL_SCORE

        score = NEUTRAL_SCORE

        tempo_range = market_trends.optimal_tempo
        if features.is_provided("tempo") and tempo_range.contains(features.tempo):
            if tempo_range.half_width > 0:
                alignment = 1.0 - abs(features.tempo - tempo_range.peak) / tempo_range.half_width
            else:
                alignment = 1.0
            score += 20.0 * clamp(alignment)

        if features.key is not None and market_trends.popular_keys:
            top_share = max(market_trends.popular_keys.values())
            if top_share > 0:
                share = market_trends.popular_keys.get(features.key, 0.0)
                score += 15.0 * clamp(share / top_share)

        if features.is_provided("energy"):
            tier = energy_tier(features.energy)
            score += 15.0 * clamp(market_trends.energy_tiers.get(tier, 0.0))

        return clamp(score, 0.0, 100.0)

    def genre_alignment_score(self, features: TrackFeatures, profile: GenreProfile) -> float:
        """Mean in-range bonus over the alignment features, scaled to [0, 100]."""
        bonuses = []
        for name in ALIGNMENT_FEATURES:
            target = profile.alignment_ranges.get(name)
            if target is None or not features.is_provided(name):
                continue
            in_range = target.contains(getattr(features, name))
            bonuses.append(IN_RANGE_BONUS if in_range else OUT_OF_RANGE_BONUS)

        if not bonuses:
            return NEUTRAL_SCORE
        return clamp(sum(bonuses) / len(bonuses) * 4.0, 0.0, 100.0)

    def seasonal_score(self, release_date: Optional[date]) -> float:
        if release_date is None:
            return NEUTRAL_SCORE
        factor = self.seasonal_factors.get(release_date.month, 1.0)
        return clamp(NEUTRAL_SCORE * factor, 0.0, 100.0)

    def confidence(
        self,
        features: TrackFeatures,
        genre_given: bool,
        market_given: bool,
    ) -> float:
        """Single canonical confidence in [0, 1]."""
        value = 0.5 + (features.required_provided / 4.0) * 0.3
        if genre_given:
            value += 0.1
        if market_given:
            value += 0.1
        if features.source is FeatureSource.ESTIMATED:
            value *= self.estimated_confidence_factor
        return round(clamp(value), 4)

    # -- secondary scores ----------------------------------------------

    @staticmethod
    def market_potential(features: TrackFeatures, profile: GenreProfile) -> int:
        score = NEUTRAL_SCORE
        if features.danceability > 0.7:
            score += 10
        if features.energy > 0.6:
            score += 10
        if features.valence > 0.5:
            score += 10
        return _bounded_int(score * profile.market_multiplier)

    @staticmethod
    def social_score(features: TrackFeatures, profile: GenreProfile) -> int:
        score = NEUTRAL_SCORE
        if features.energy > 0.7:
            score += 15
        if features.danceability > 0.7:
            score += 15
        if features.valence > 0.6:
            score += 10
        return _bounded_int(score * profile.social_multiplier)


def _bounded_int(value: float) -> int:
    return int(round(clamp(value, 0.0, 100.0)))
