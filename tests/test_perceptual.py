"""Tests for perceptual feature synthesis."""

import pytest

from hitscope.analyzers.perceptual import (
    PerceptualSynthesizer,
    danceability,
    energy,
    liveness,
    speechiness,
)
from hitscope.core.models import (
    PERCEPTUAL_FIELDS,
    DynamicsFeatures,
    SpectralFeatures,
    TemporalFeatures,
    TonalFeatures,
)


class TestFormulas:
    def test_danceability(self):
        assert danceability(1.0, 140.0) == pytest.approx(1.0)
        assert danceability(0.0, 70.0) == pytest.approx(0.2)

    def test_energy_saturates(self):
        assert energy(6000.0, 0.9, 200.0) == pytest.approx(1.0)
        assert energy(0.0, 0.0, 0.0) == pytest.approx(0.0)

    def test_liveness_from_dynamic_range(self):
        assert liveness(-60.0) == 0.0
        assert liveness(-30.0) == pytest.approx(0.5)
        assert liveness(10.0) == 1.0

    def test_speechiness(self):
        assert speechiness(8000.0, 1.0) == pytest.approx(1.0)


class TestPerceptualSynthesizer:
    def test_all_defaults(self):
        result = PerceptualSynthesizer().synthesize()
        assert result.danceability == pytest.approx(0.3 + 0.4 * 120 / 140)
        assert result.energy == pytest.approx(0.4 * 2000 / 3000 + 0.4 * 0.5 + 0.2 * 0.75)
        assert result.valence == pytest.approx(0.5)
        assert result.acousticness == pytest.approx(0.5)
        assert result.instrumentalness == pytest.approx(0.5)
        assert result.liveness == pytest.approx(0.5)
        assert result.speechiness == pytest.approx(0.5)

    def test_full_inputs_stay_in_unit_interval(self):
        result = PerceptualSynthesizer().synthesize(
            spectral=SpectralFeatures(centroid=12000.0, rolloff=20000.0, flatness=0.0, bandwidth=500.0),
            temporal=TemporalFeatures(tempo=200.0, rhythm_strength=1.0, beat_confidence=1.0),
            tonal=TonalFeatures(key="E", mode="minor", key_confidence=0.8, harmonic_complexity=1.0),
            dynamics=DynamicsFeatures(rms=1.0, dynamic_range=20.0, crest_factor=1.0),
        )
        for name in PERCEPTUAL_FIELDS:
            assert 0.0 <= getattr(result, name) <= 1.0

    def test_missing_component_logs_warning(self, caplog):
        with caplog.at_level("WARNING", logger="analyzer.perceptual"):
            PerceptualSynthesizer().synthesize(
                temporal=TemporalFeatures(tempo=100.0, rhythm_strength=0.5, beat_confidence=0.5)
            )
        assert "defaults for: spectral, tonal, dynamics" in caplog.text
