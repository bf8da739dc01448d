"""
Recommendation engine for HitScope.

Turns scores and features into prioritized recommendations. For tracks
that are already released, prescriptive production advice is replaced
by descriptive performance insights using the same thresholds.
"""

import logging
from datetime import date
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from hitscope.core.models import (
    FeatureRange,
    Priority,
    Recommendation,
    RecommendationCategory,
    RiskAssessment,
    RiskLevel,
    TrackFeatures,
    clamp,
)
from hitscope.scoring.reference import OPTIMAL_RANGES, SEASONAL_FACTORS
from hitscope.scoring.scorer import ScoreCard

RANGE_RULE_FEATURES: Tuple[str, ...] = ("danceability", "energy", "valence", "tempo")

# Value scale used to turn a distance from the peak into an impact
FEATURE_SCALE: Mapping[str, float] = MappingProxyType({"tempo": 200.0})

LABELS: Mapping[str, str] = MappingProxyType({
    "danceability": "Danceability",
    "energy": "Energy",
    "valence": "Valence",
    "tempo": "Tempo",
})

# (how to raise, how to lower)
IMPLEMENTATION_HINTS: Mapping[str, Tuple[str, str]] = MappingProxyType({
    "danceability": (
        "Tighten drum programming, emphasize the downbeat and simplify the groove",
        "Loosen the rhythm section or add rubato passages",
    ),
    "energy": (
        "Brighten percussion, add saturation and build a fuller arrangement",
        "Strip back layers and soften transients in the mix",
    ),
    "valence": (
        "Shift harmony and melody towards brighter, major-key movement",
        "Introduce minor-key colour or darker timbres",
    ),
    "tempo": (
        "Re-time the arrangement towards {peak:.0f} BPM",
        "Re-time the arrangement towards {peak:.0f} BPM or use a half-time feel",
    ),
})

PLATFORM_NAMES: Mapping[str, str] = MappingProxyType({
    "spotify": "Spotify",
    "apple_music": "Apple Music",
    "youtube": "YouTube",
    "tiktok": "TikTok",
})

HIGH_PRIORITY_IMPACT = 60
MEDIUM_PRIORITY_IMPACT = 30


def priority_for(impact: int) -> Priority:
    if impact >= HIGH_PRIORITY_IMPACT:
        return Priority.HIGH
    if impact >= MEDIUM_PRIORITY_IMPACT:
        return Priority.MEDIUM
    return Priority.LOW


def _recommendation(
    category: RecommendationCategory,
    title: str,
    description: str,
    impact: float,
    implementation: str,
) -> Recommendation:
    bounded = int(round(clamp(impact, 0.0, 100.0)))
    return Recommendation(
        category=category,
        priority=priority_for(bounded),
        title=title,
        description=description,
        impact=bounded,
        implementation=implementation,
    )


def _format(name: str, value: float) -> str:
    return f"{value:.0f} BPM" if name == "tempo" else f"{value:.2f}"


class RecommendationEngine:
    """Rule-based recommendations spanning all RecommendationCategory values."""

    def __init__(self, optimal_ranges=OPTIMAL_RANGES, seasonal_factors=SEASONAL_FACTORS):
        self.optimal_ranges = optimal_ranges
        self.seasonal_factors = seasonal_factors
        self.logger = logging.getLogger("scoring.recommendations")

    def recommend(
        self,
        features: TrackFeatures,
        card: ScoreCard,
        risk: RiskAssessment,
        is_released: bool = False,
        as_of: Optional[date] = None,
    ) -> Tuple[Recommendation, ...]:
        """
        Build recommendations sorted by impact, highest first.

        Args:
            features: Scored feature record
            card: Scorer output
            risk: Risk assessment for the same track
            is_released: Whether the track is already out
            as_of: Current date for the timing advice; omitted when None

        Returns:
            Tuple of recommendations, impact-descending (stable for ties)
        """
        recommendations: List[Recommendation] = []
        recommendations.extend(self._feature_rules(features, is_released))
        if not is_released:
            recommendations.extend(self._arrangement_rules(features, card))
        recommendations.extend(self._genre_rules(features, card))
        recommendations.extend(self._marketing_rules(card))
        recommendations.extend(self._distribution_rules(card))
        recommendations.extend(self._audience_rules(card))
        recommendations.extend(self._risk_rules(risk, is_released))
        if as_of is not None:
            recommendations.extend(self._timing_rules(as_of, is_released))

        ordered = tuple(sorted(recommendations, key=lambda rec: rec.impact, reverse=True))
        self.logger.debug(f"Generated {len(ordered)} recommendations")
        return ordered

    def _feature_rules(self, features: TrackFeatures, is_released: bool) -> List[Recommendation]:
        results = []
        for name in RANGE_RULE_FEATURES:
            optimal: Optional[FeatureRange] = self.optimal_ranges.get(name)
            if optimal is None or not features.is_provided(name):
                continue
            value = getattr(features, name)
            if optimal.contains(value):
                continue

            below = value < optimal.min
            label = LABELS[name]
            distance = abs(value - optimal.peak) / FEATURE_SCALE.get(name, 1.0)
            current = _format(name, value)
            bounds = f"{_format(name, optimal.min)}-{_format(name, optimal.max)}"

            if is_released:
                if below:
                    description = (
                        f"{label} of {current} is below the optimal range ({bounds}). "
                        "Consider this insight for future releases."
                    )
                else:
                    description = (
                        f"{label} of {current} is above the optimal range ({bounds}). "
                        "This may explain certain market performance patterns."
                    )
                results.append(_recommendation(
                    RecommendationCategory.PERFORMANCE,
                    f"{label} Insight",
                    description,
                    distance * 50,
                    "Compare against listener retention and skip-rate data for this track",
                ))
            else:
                raise_hint, lower_hint = IMPLEMENTATION_HINTS[name]
                if below:
                    title = f"Increase {label}"
                    description = (
                        f"{label} of {current} is below the optimal range ({bounds}). "
                        f"Increase {name} to appeal to current market trends."
                    )
                    hint = raise_hint
                else:
                    title = f"Reduce {label}"
                    description = (
                        f"{label} of {current} is above the optimal range ({bounds}). "
                        f"Reduce {name} to match optimal ranges."
                    )
                    hint = lower_hint
                results.append(_recommendation(
                    RecommendationCategory.PRODUCTION,
                    title,
                    description,
                    distance * 100,
                    hint.format(peak=optimal.peak),
                ))
        return results

    @staticmethod
    def _arrangement_rules(features: TrackFeatures, card: ScoreCard) -> List[Recommendation]:
        results = []
        if features.is_provided("instrumentalness") and features.instrumentalness > 0.5:
            results.append(_recommendation(
                RecommendationCategory.ARRANGEMENT,
                "Add a Vocal Hook",
                "The track is largely instrumental, which narrows radio and playlist reach.",
                35,
                "Write a short, repeatable vocal hook for the chorus sections",
            ))
        if (
            features.is_provided("speechiness")
            and features.speechiness > 0.33
            and card.profile.key != "hip_hop"
        ):
            results.append(_recommendation(
                RecommendationCategory.ARRANGEMENT,
                "Balance Spoken Content",
                "Spoken-word content is high for the genre.",
                30,
                "Move spoken passages to the intro or bridge and let melody carry the chorus",
            ))
        return results

    @staticmethod
    def _genre_rules(features: TrackFeatures, card: ScoreCard) -> List[Recommendation]:
        results = []
        profile = card.profile
        alignment = card.breakdown.genre_alignment
        if profile.key != "default" and alignment < 60:
            results.append(_recommendation(
                RecommendationCategory.GENRE,
                f"Align With {profile.name} Conventions",
                f"Genre alignment is {alignment}/100; the track departs from typical "
                f"{profile.name} tempo and mood.",
                (100 - alignment) / 2,
                "Reference current chart tracks in the genre for tempo, energy and mood",
            ))
        if (
            profile.key == "pop"
            and features.is_provided("acousticness")
            and features.acousticness > 0.3
        ):
            results.append(_recommendation(
                RecommendationCategory.GENRE,
                "Reduce Acoustic Elements",
                "Mainstream pop favours produced, electronic textures.",
                25,
                "Layer synths or programmed drums under the acoustic parts",
            ))
        return results

    @staticmethod
    def _marketing_rules(card: ScoreCard) -> List[Recommendation]:
        score = card.overall_score
        if score >= 80:
            return [_recommendation(
                RecommendationCategory.MARKETING,
                "Aggressive Release Strategy",
                f"An overall score of {score} supports a wide, high-budget release push.",
                90,
                "Pitch to editorial playlists, book press and schedule paid placements",
            )]
        if score >= 60:
            return [_recommendation(
                RecommendationCategory.MARKETING,
                "Targeted Promotion Campaign",
                f"An overall score of {score} warrants focused promotion to core audiences.",
                70,
                "Target the genre's key demographics with playlist and social campaigns",
            )]
        return [_recommendation(
            RecommendationCategory.MARKETING,
            "Build Foundation",
            f"An overall score of {score} suggests building an engaged audience first.",
            50,
            "Grow a core fanbase through community engagement before a wide push",
        )]

    @staticmethod
    def _distribution_rules(card: ScoreCard) -> List[Recommendation]:
        results = []
        if card.overall_score >= 80:
            results.append(_recommendation(
                RecommendationCategory.DISTRIBUTION,
                "Multi-Platform Release",
                "Release simultaneously on every major platform to maximize reach.",
                85,
                "Coordinate release timing across streaming, video and social platforms",
            ))
        platform = card.profile.best_platform
        if platform is not None:
            name = PLATFORM_NAMES.get(platform, platform.replace("_", " ").title())
            performance = card.profile.platform_performance[platform]
            results.append(_recommendation(
                RecommendationCategory.DISTRIBUTION,
                f"Prioritize {name}",
                f"{card.profile.name} performs best on {name}.",
                70 * performance,
                f"Lead the release on {name} and tailor assets to its format",
            ))
        return results

    @staticmethod
    def _audience_rules(card: ScoreCard) -> List[Recommendation]:
        results = [_recommendation(
            RecommendationCategory.AUDIENCE,
            "Social Media Engagement",
            "Build anticipation and community around the track.",
            60,
            "Share behind-the-scenes content and engage directly with listeners",
        )]
        if card.social_score >= 70:
            results.append(_recommendation(
                RecommendationCategory.AUDIENCE,
                "Short-Form Video Push",
                f"A social score of {card.social_score} indicates strong clip potential.",
                75,
                "Seed a 15-30 second hook clip with creators ahead of release",
            ))
        return results

    @staticmethod
    def _risk_rules(risk: RiskAssessment, is_released: bool) -> List[Recommendation]:
        if risk.overall_risk is not RiskLevel.HIGH:
            return []
        if is_released:
            return [_recommendation(
                RecommendationCategory.PERFORMANCE,
                "Post-Release Performance Review",
                f"Risk score {risk.risk_score} flags: {'; '.join(risk.risk_factors)}.",
                80,
                "Review audience analytics with your team to plan the next release",
            )]
        return [_recommendation(
            RecommendationCategory.PRODUCTION,
            "Professional Consultation",
            f"Risk score {risk.risk_score} flags: {'; '.join(risk.risk_factors)}.",
            80,
            "Get feedback from an experienced producer or A&R before release",
        )]

    def _timing_rules(self, as_of: date, is_released: bool) -> List[Recommendation]:
        factor = self.seasonal_factors.get(as_of.month, 1.0)
        subject = "next release" if is_released else "release"
        if factor < 1.0:
            return [_recommendation(
                RecommendationCategory.TIMING,
                "Consider Delaying Release",
                f"Listener demand this month is below average (x{factor:.2f}).",
                (1.0 - factor) * 200,
                f"Schedule the {subject} for a higher-demand month",
            )]
        if factor > 1.1:
            return [_recommendation(
                RecommendationCategory.TIMING,
                "Accelerate Release",
                f"Listener demand this month is above average (x{factor:.2f}).",
                (factor - 1.0) * 200,
                f"Bring the {subject} forward to land in the current demand peak",
            )]
        return []
