"""
Scoring pipeline for HitScope.

Runs scorer, risk assessor and recommendation engine over one feature
record and assembles the SuccessScoreResult.
"""

from datetime import date
from typing import Any, Mapping, Optional, Union

from hitscope.core.models import (
    MarketTrendsSnapshot,
    SuccessScoreResult,
    TrackFeatures,
)
from hitscope.scoring.recommendations import RecommendationEngine
from hitscope.scoring.risk import RiskAssessor
from hitscope.scoring.scorer import SuccessScorer


def market_source_for(market_trends: Optional[MarketTrendsSnapshot]) -> str:
    """Label for the snapshot a score was computed against."""
    if market_trends is None:
        return "none"
    return "default" if market_trends.is_default else "live"


class TrackAssessor:
    """Composes the scoring stages; holds no per-track state."""

    def __init__(
        self,
        scorer: Optional[SuccessScorer] = None,
        risk_assessor: Optional[RiskAssessor] = None,
        recommender: Optional[RecommendationEngine] = None,
    ):
        self.scorer = scorer or SuccessScorer()
        self.risk_assessor = risk_assessor or RiskAssessor()
        self.recommender = recommender or RecommendationEngine()

    def assess(
        self,
        features: Union[TrackFeatures, Mapping[str, Any]],
        genre: Optional[str] = None,
        release_date: Optional[date] = None,
        market_trends: Optional[MarketTrendsSnapshot] = None,
        is_released: bool = False,
        as_of: Optional[date] = None,
        source: Optional[str] = None,
        market_source: Optional[str] = None,
    ) -> SuccessScoreResult:
        """
        Produce a complete success assessment.

        Args:
            features: TrackFeatures, or a partial mapping of feature values
            genre: Declared genre
            release_date: Planned or actual release date
            market_trends: Snapshot to score against
            is_released: Switches production advice to performance insights
            as_of: Date the timing advice refers to; no timing advice when None
            source: Label of the analyzed input, carried into the result
            market_source: Overrides the label derived from ``market_trends``

        Returns:
            SuccessScoreResult
        """
        if not isinstance(features, TrackFeatures):
            features = TrackFeatures.from_mapping(features)

        card = self.scorer.score(features, genre, release_date, market_trends)
        risk = self.risk_assessor.assess(features, card.profile)
        recommendations = self.recommender.recommend(
            features, card, risk, is_released=is_released, as_of=as_of
        )

        return SuccessScoreResult(
            overall_score=card.overall_score,
            confidence=card.confidence,
            breakdown=card.breakdown,
            recommendations=recommendations,
            risk_factors=risk.risk_factors,
            risk_assessment=risk,
            market_potential=card.market_potential,
            social_score=card.social_score,
            feature_fit=card.feature_fit,
            genre=card.profile.name,
            feature_source=features.source,
            market_source=market_source or market_source_for(market_trends),
            features=features.to_dict(),
            source=source,
        )


_default_assessor: Optional[TrackAssessor] = None


def calculate_success_score(
    features: Union[TrackFeatures, Mapping[str, Any]],
    genre: Optional[str] = None,
    release_date: Optional[date] = None,
    market_trends: Optional[MarketTrendsSnapshot] = None,
    is_released: bool = False,
    as_of: Optional[date] = None,
) -> SuccessScoreResult:
    """Score a track with the default scoring stages."""
    global _default_assessor
    if _default_assessor is None:
        _default_assessor = TrackAssessor()
    return _default_assessor.assess(
        features,
        genre=genre,
        release_date=release_date,
        market_trends=market_trends,
        is_released=is_released,
        as_of=as_of,
    )
