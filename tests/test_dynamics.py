"""Tests for level descriptors."""

import math

import numpy as np
import pytest

from hitscope.analyzers.dynamics import DynamicsAnalyzer, crest_factor, dynamic_range_db, rms


class TestLevelFunctions:
    def test_rms_of_square_wave(self):
        assert rms(np.array([0.5, -0.5, 0.5, -0.5])) == pytest.approx(0.5)

    def test_rms_empty(self):
        assert rms(np.array([])) == 0.0

    def test_dynamic_range_ratio(self):
        samples = np.array([0.5, -0.05])
        assert dynamic_range_db(samples) == pytest.approx(20.0)

    @pytest.mark.parametrize("samples", [
        np.zeros(10),
        np.array([0.1, 0.2, 0.3]),
        np.array([-0.1, -0.2]),
    ])
    def test_dynamic_range_guarded(self, samples):
        assert dynamic_range_db(samples) == 0.0

    def test_crest_factor_of_sine(self):
        t = np.arange(44100) / 44100
        assert crest_factor(np.sin(2 * np.pi * 100 * t)) == pytest.approx(math.sqrt(2), rel=1e-3)

    def test_crest_factor_of_silence(self):
        assert crest_factor(np.zeros(8)) == 0.0


class TestDynamicsAnalyzer:
    def test_sine(self, sine_buffer):
        features = DynamicsAnalyzer().analyze(sine_buffer)
        assert features.rms == pytest.approx(0.5 / math.sqrt(2), rel=1e-3)
        assert abs(features.dynamic_range) < 0.1
        assert features.loudness == pytest.approx(20 * math.log10(0.5 / math.sqrt(2)), abs=0.05)

    def test_silence(self, silence_buffer):
        features = DynamicsAnalyzer().analyze(silence_buffer)
        assert features.rms == 0.0
        assert features.dynamic_range == 0.0
        assert features.crest_factor == 0.0
        assert features.loudness == -60.0
