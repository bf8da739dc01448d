"""
Commercial risk assessment for HitScope.

Each risk is a RiskCode. Codes map 1:1 to a penalty, a factor
description and a mitigation, so wording changes can never orphan a
mitigation.
"""

import logging
from types import MappingProxyType
from typing import List, Mapping

from hitscope.core.models import (
    GenreProfile,
    RiskAssessment,
    RiskCode,
    TrackFeatures,
    risk_level_for,
)

RISK_PENALTIES: Mapping[RiskCode, int] = MappingProxyType({
    RiskCode.LOW_ENERGY: 20,
    RiskCode.LOW_DANCEABILITY: 15,
    RiskCode.NICHE_GENRE: 25,
    RiskCode.DECLINING_GENRE: 30,
    # Advisory only
    RiskCode.SLOW_TEMPO: 0,
    RiskCode.QUIET_MASTER: 0,
    RiskCode.HIGH_INSTRUMENTALNESS: 0,
})

RISK_FACTORS: Mapping[RiskCode, str] = MappingProxyType({
    RiskCode.LOW_ENERGY: "Low energy may limit audience engagement",
    RiskCode.LOW_DANCEABILITY: "Low danceability reduces viral potential",
    RiskCode.NICHE_GENRE: "Niche genre with limited market reach",
    RiskCode.DECLINING_GENRE: "Declining genre market",
    RiskCode.SLOW_TEMPO: "Slow tempo may limit mainstream appeal",
    RiskCode.QUIET_MASTER: "Low loudness may affect streaming performance",
    RiskCode.HIGH_INSTRUMENTALNESS: "High instrumental content may limit radio play",
})

MITIGATIONS: Mapping[RiskCode, str] = MappingProxyType({
    RiskCode.LOW_ENERGY: "Increase energy levels through production or mixing",
    RiskCode.LOW_DANCEABILITY: "Work with a producer to refine rhythm and melody",
    RiskCode.NICHE_GENRE: "Focus on building dedicated fanbase through targeted marketing",
    RiskCode.DECLINING_GENRE: "Consider genre fusion or modern production techniques",
    RiskCode.SLOW_TEMPO: "Consider an up-tempo edit or remix for playlist placement",
    RiskCode.QUIET_MASTER: "Master to a competitive streaming loudness",
    RiskCode.HIGH_INSTRUMENTALNESS: "Add a vocal topline or feature to broaden radio appeal",
})

DEFAULT_MITIGATION = "Continue with current approach"

LOW_ENERGY_THRESHOLD = 0.3
LOW_DANCEABILITY_THRESHOLD = 0.4
NICHE_MARKET_SHARE = 0.05
DECLINING_GROWTH_RATE = -0.02
SLOW_TEMPO_BPM = 80.0
QUIET_LOUDNESS_DB = -20.0
HIGH_INSTRUMENTALNESS = 0.5


class RiskAssessor:
    """Accumulates fixed penalties for risky feature and market combinations."""

    def __init__(self):
        self.logger = logging.getLogger("scoring.risk")

    def detect(self, features: TrackFeatures, profile: GenreProfile) -> List[RiskCode]:
        """Risk codes raised for a track, in a stable order."""
        codes: List[RiskCode] = []
        if features.energy < LOW_ENERGY_THRESHOLD:
            codes.append(RiskCode.LOW_ENERGY)
        if features.danceability < LOW_DANCEABILITY_THRESHOLD:
            codes.append(RiskCode.LOW_DANCEABILITY)
        if profile.market_share < NICHE_MARKET_SHARE:
            codes.append(RiskCode.NICHE_GENRE)
        if profile.growth_rate < DECLINING_GROWTH_RATE:
            codes.append(RiskCode.DECLINING_GENRE)
        if features.is_provided("tempo") and features.tempo < SLOW_TEMPO_BPM:
            codes.append(RiskCode.SLOW_TEMPO)
        if features.is_provided("loudness") and features.loudness < QUIET_LOUDNESS_DB:
            codes.append(RiskCode.QUIET_MASTER)
        if features.is_provided("instrumentalness") and features.instrumentalness > HIGH_INSTRUMENTALNESS:
            codes.append(RiskCode.HIGH_INSTRUMENTALNESS)
        return codes

    def assess(self, features: TrackFeatures, profile: GenreProfile) -> RiskAssessment:
        codes = self.detect(features, profile)
        risk_score = min(100, sum(RISK_PENALTIES[code] for code in codes))
        mitigations = [MITIGATIONS[code] for code in codes] or [DEFAULT_MITIGATION]

        if codes:
            self.logger.debug(
                f"Risk score {risk_score}: {', '.join(code.value for code in codes)}"
            )

        return RiskAssessment(
            overall_risk=risk_level_for(risk_score),
            risk_score=risk_score,
            risk_codes=tuple(codes),
            risk_factors=tuple(RISK_FACTORS[code] for code in codes),
            mitigation_strategies=tuple(mitigations),
        )
