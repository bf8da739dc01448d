"""Tests for commercial risk assessment."""

from dataclasses import replace

import pytest

from hitscope.core.models import RiskCode, RiskLevel, TrackFeatures
from hitscope.scoring import RiskAssessor, get_genre_profile
from hitscope.scoring.risk import DEFAULT_MITIGATION, MITIGATIONS, RISK_FACTORS, RISK_PENALTIES


@pytest.fixture
def assessor():
    return RiskAssessor()


@pytest.fixture
def pop():
    return get_genre_profile("pop")


class TestRiskTables:
    def test_every_code_has_penalty_factor_and_mitigation(self):
        for code in RiskCode:
            assert code in RISK_PENALTIES
            assert code in RISK_FACTORS
            assert code in MITIGATIONS

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            RISK_PENALTIES[RiskCode.LOW_ENERGY] = 0


class TestRiskAssessor:
    def test_no_risk(self, assessor, pop, pop_features):
        risk = assessor.assess(pop_features, pop)
        assert risk.risk_score == 0
        assert risk.overall_risk is RiskLevel.LOW
        assert risk.risk_factors == ()
        assert risk.mitigation_strategies == (DEFAULT_MITIGATION,)

    def test_low_energy_and_danceability(self, assessor, pop):
        features = TrackFeatures.from_mapping({"energy": 0.2, "danceability": 0.3})
        risk = assessor.assess(features, pop)
        assert risk.risk_codes == (RiskCode.LOW_ENERGY, RiskCode.LOW_DANCEABILITY)
        assert risk.risk_score == 35
        assert risk.overall_risk is RiskLevel.MEDIUM
        assert risk.mitigation_strategies == (
            MITIGATIONS[RiskCode.LOW_ENERGY],
            MITIGATIONS[RiskCode.LOW_DANCEABILITY],
        )

    def test_thresholds_are_strict(self, assessor, pop):
        features = TrackFeatures.from_mapping({"energy": 0.3, "danceability": 0.4})
        assert assessor.detect(features, pop) == []

    def test_niche_declining_genre_is_high_risk(self, assessor):
        profile = replace(get_genre_profile("folk"), key="niche", market_share=0.01, growth_rate=-0.1)
        risk = assessor.assess(TrackFeatures(), profile)
        assert risk.risk_codes == (RiskCode.NICHE_GENRE, RiskCode.DECLINING_GENRE)
        assert risk.risk_score == 55
        assert risk.overall_risk is RiskLevel.HIGH

    def test_penalties_accumulate(self, assessor):
        profile = replace(get_genre_profile("folk"), key="niche", market_share=0.01, growth_rate=-0.1)
        features = TrackFeatures.from_mapping({"energy": 0.0, "danceability": 0.0})
        risk = assessor.assess(features, profile)
        assert risk.risk_score == 90

    def test_advisory_codes_carry_no_penalty(self, assessor, pop):
        features = TrackFeatures.from_mapping({
            "tempo": 70, "loudness": -25, "instrumentalness": 0.8,
            "energy": 0.6, "danceability": 0.6,
        })
        risk = assessor.assess(features, pop)
        assert set(risk.risk_codes) == {
            RiskCode.SLOW_TEMPO, RiskCode.QUIET_MASTER, RiskCode.HIGH_INSTRUMENTALNESS,
        }
        assert risk.risk_score == 0
        assert len(risk.mitigation_strategies) == 3

    def test_advisory_codes_need_provided_values(self, assessor, pop):
        # defaults alone never raise advisory risks
        assert assessor.detect(TrackFeatures(), pop) == []
