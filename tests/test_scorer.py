"""Tests for the success scorer and the scoring pipeline."""

from datetime import date

import pytest

from hitscope.core.models import (
    FEATURE_VECTOR_FIELDS,
    FeatureRange,
    FeatureSource,
    FeatureVector,
    TrackFeatures,
)
from hitscope.scoring import (
    DEFAULT_MARKET_SNAPSHOT,
    DEFAULT_PROFILE,
    FeatureVectorBuilder,
    SuccessScorer,
    TrackAssessor,
    calculate_success_score,
    get_genre_profile,
)
from hitscope.scoring.reference import LINEAR_FEATURE_WEIGHTS, normalize_genre
from hitscope.scoring.scorer import calculate_feature_score, energy_tier


@pytest.fixture
def scorer():
    return SuccessScorer()


class TestCalculateFeatureScore:
    def test_peak_scores_one(self):
        assert calculate_feature_score(120, FeatureRange(100, 140, 120)) == 1.0

    def test_in_range_floor(self):
        assert calculate_feature_score(100, FeatureRange(100, 140, 120)) == pytest.approx(0.7)

    def test_out_of_range_falls_off(self):
        optimal = FeatureRange(0.5, 0.9, 0.7)
        assert calculate_feature_score(0.4, optimal) == pytest.approx(0.69)
        assert calculate_feature_score(-10.0, optimal) == 0.0

    def test_monotonic_away_from_range(self):
        optimal = FeatureRange(100, 140, 120)
        scores = [calculate_feature_score(v, optimal) for v in (140, 141, 143, 146, 150)]
        assert scores == sorted(scores, reverse=True)

    def test_monotonic_inside_range(self):
        optimal = FeatureRange(100, 140, 120)
        scores = [calculate_feature_score(v, optimal) for v in (120, 125, 130, 135, 140)]
        assert scores == sorted(scores, reverse=True)

    def test_degenerate_range(self):
        assert calculate_feature_score(1.0, FeatureRange(1.0, 1.0, 1.0)) == 1.0


class TestAudioEnsemble:
    def test_linear_score_for_known_vector(self, scorer, pop_features):
        vector = FeatureVectorBuilder().build(pop_features)
        assert scorer.linear_score(vector) == pytest.approx(62.3)

    def test_linear_score_bounds(self, scorer):
        assert scorer.linear_score(FeatureVector((0.0,) * 16)) == 0.0
        assert scorer.linear_score(FeatureVector((1.0,) * 16)) == 100.0

    def test_linear_weights_cover_vector(self):
        assert tuple(LINEAR_FEATURE_WEIGHTS) == FEATURE_VECTOR_FIELDS
        assert sum(LINEAR_FEATURE_WEIGHTS.values()) == pytest.approx(1.08)

    def test_feature_fit_uses_genre_weights(self, scorer, pop_features):
        pop = get_genre_profile("pop")
        assert scorer.feature_fit_score(pop_features, pop) == pytest.approx(91.25)
        assert scorer.score(pop_features, genre="pop").feature_fit == 91
        assert scorer.feature_fit_score(TrackFeatures(), pop) == 50.0

    def test_feature_fit_does_not_move_overall(self, scorer, pop_features):
        card = scorer.score(pop_features, genre="pop")
        audio = scorer.audio_features_score(card.vector, card.profile)
        expected = round(0.4 * audio + 0.3 * 50 + 0.2 * 100 + 0.1 * 50)
        assert card.overall_score == expected


class TestGenreLookup:
    @pytest.mark.parametrize("raw,key", [
        ("Pop", "pop"), ("hip-hop", "hip_hop"), ("Hip Hop", "hip_hop"),
        ("R&B", "rnb"), ("EDM", "electronic"), ("  ", None), (None, None),
    ])
    def test_normalize_genre(self, raw, key):
        assert normalize_genre(raw) == key

    def test_unknown_genre_uses_default_profile(self):
        assert get_genre_profile("polka") is DEFAULT_PROFILE
        assert get_genre_profile(None) is DEFAULT_PROFILE


class TestSuccessScorer:
    def test_pop_track_without_market(self, scorer, pop_features):
        card = scorer.score(pop_features, genre="pop")
        assert 65 <= card.overall_score <= 90
        assert card.breakdown.market_trends == 50
        assert card.breakdown.genre_alignment == 100
        assert card.breakdown.seasonal_factors == 50
        assert card.profile.key == "pop"

    def test_scores_are_bounded(self, scorer, quiet_features):
        for genre in ("pop", "rock", "electronic", "hip-hop", "folk", None):
            card = scorer.score(quiet_features, genre=genre, market_trends=DEFAULT_MARKET_SNAPSHOT)
            assert 0 <= card.overall_score <= 100
            for value in card.breakdown.to_dict().values():
                assert 0 <= value <= 100
            assert 0 <= card.market_potential <= 100
            assert 0 <= card.social_score <= 100

    def test_deterministic(self, scorer, pop_features):
        first = scorer.score(pop_features, genre="pop", release_date=date(2025, 12, 1))
        second = scorer.score(pop_features, genre="pop", release_date=date(2025, 12, 1))
        assert first == second

    def test_market_alignment_raises_market_score(self, scorer, pop_features):
        card = scorer.score(pop_features, genre="pop", market_trends=DEFAULT_MARKET_SNAPSHOT)
        assert card.breakdown.market_trends > 80

    def test_energy_tiers(self):
        assert energy_tier(0.1) == "low"
        assert energy_tier(0.5) == "medium"
        assert energy_tier(0.9) == "high"

    def test_seasonal_score(self, scorer):
        assert scorer.seasonal_score(None) == 50.0
        assert scorer.seasonal_score(date(2025, 12, 24)) == pytest.approx(60.0)
        assert scorer.seasonal_score(date(2025, 1, 10)) == pytest.approx(45.0)

    def test_alignment_penalizes_off_genre_features(self, scorer, pop_features):
        folk = scorer.score(pop_features, genre="folk")
        assert folk.breakdown.genre_alignment < 100

    def test_unprovided_features_do_not_earn_alignment(self, scorer):
        card = scorer.score(TrackFeatures(), genre="pop")
        assert card.breakdown.genre_alignment == 50

    def test_secondary_scores(self, scorer, pop_features):
        card = scorer.score(pop_features, genre="pop")
        assert card.market_potential == 96
        assert card.social_score == 100


class TestConfidence:
    def test_full_features_with_genre(self, scorer, pop_features):
        assert scorer.score(pop_features, genre="pop").confidence == pytest.approx(0.9)

    def test_default_market_adds_nothing(self, scorer, pop_features):
        card = scorer.score(pop_features, genre="pop", market_trends=DEFAULT_MARKET_SNAPSHOT)
        assert card.confidence == pytest.approx(0.9)

    def test_live_market_adds_confidence(self, scorer, pop_features):
        live = DEFAULT_MARKET_SNAPSHOT.from_dict(DEFAULT_MARKET_SNAPSHOT.to_dict())
        assert scorer.score(pop_features, genre="pop", market_trends=live).confidence == pytest.approx(1.0)

    def test_no_features(self, scorer):
        assert scorer.score(TrackFeatures()).confidence == pytest.approx(0.5)

    def test_estimated_features_halved(self, scorer, pop_features):
        estimated = TrackFeatures.from_mapping(
            {"tempo": 120, "danceability": 0.8, "energy": 0.75, "valence": 0.7},
            source=FeatureSource.ESTIMATED,
        )
        assert scorer.score(estimated, genre="pop").confidence == pytest.approx(0.45)


class TestTrackAssessor:
    def test_end_to_end_pop(self, pop_features):
        result = calculate_success_score(pop_features, genre="pop")
        assert 65 <= result.overall_score <= 90
        assert result.breakdown.market_trends == 50
        assert result.genre == "Pop"
        assert result.market_source == "none"
        assert result.risk_assessment.risk_score == 0
        assert result.risk_assessment.mitigation_strategies == ("Continue with current approach",)

    def test_accepts_plain_mapping(self):
        result = TrackAssessor().assess({"tempo": 95, "energy": 0.6}, genre="hip hop")
        assert result.genre == "Hip-Hop"
        assert result.features["tempo"] == 95.0

    def test_unknown_genre_scores_with_default_profile(self, pop_features):
        result = calculate_success_score(pop_features, genre="sea shanty")
        assert result.genre == DEFAULT_PROFILE.name

    def test_market_source_labels(self, pop_features):
        assessor = TrackAssessor()
        assert assessor.assess(pop_features, market_trends=DEFAULT_MARKET_SNAPSHOT).market_source == "default"
        live = DEFAULT_MARKET_SNAPSHOT.from_dict(DEFAULT_MARKET_SNAPSHOT.to_dict())
        assert assessor.assess(pop_features, market_trends=live).market_source == "live"

    def test_risky_track(self, quiet_features):
        result = calculate_success_score(quiet_features, genre="pop")
        assert result.risk_assessment.risk_score == 35
        assert result.risk_assessment.overall_risk.value == "medium"
        assert len(result.risk_factors) == 5
