"""
Commercial success scoring: feature vectors, the weighted scorer, risk
assessment and recommendations.
"""

from hitscope.scoring.assessment import TrackAssessor, calculate_success_score
from hitscope.scoring.recommendations import RecommendationEngine
from hitscope.scoring.reference import (
    DEFAULT_MARKET_SNAPSHOT,
    DEFAULT_PROFILE,
    GENRE_PROFILES,
    OPTIMAL_RANGES,
    SEASONAL_FACTORS,
    get_genre_profile,
)
from hitscope.scoring.risk import RiskAssessor
from hitscope.scoring.scorer import ScoreCard, SuccessScorer
from hitscope.scoring.vector import FeatureVectorBuilder

__all__ = [
    "DEFAULT_MARKET_SNAPSHOT",
    "DEFAULT_PROFILE",
    "GENRE_PROFILES",
    "OPTIMAL_RANGES",
    "SEASONAL_FACTORS",
    "FeatureVectorBuilder",
    "RecommendationEngine",
    "RiskAssessor",
    "ScoreCard",
    "SuccessScorer",
    "TrackAssessor",
    "calculate_success_score",
    "get_genre_profile",
]
