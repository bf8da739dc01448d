"""Tests for onset detection, tempo and TemporalAnalyzer."""

import numpy as np
import pytest

from hitscope.analyzers.temporal import (
    DEFAULT_TEMPO,
    TemporalAnalyzer,
    beat_confidence,
    create_temporal_analyzer,
    detect_onsets,
    estimate_tempo,
    rhythm_strength,
)


class TestDetectOnsets:
    def test_rising_crossings_only(self):
        x = np.array([0.0, 0.5, 0.6, 0.0, 0.0, 0.8, 0.05, 0.2])
        assert list(detect_onsets(x, threshold=0.1)) == [1, 5, 7]

    def test_first_sample_is_never_an_onset(self):
        assert list(detect_onsets(np.array([0.9, 0.9]), threshold=0.1)) == []

    def test_short_input(self):
        assert len(detect_onsets(np.array([0.5]))) == 0


class TestEstimateTempo:
    def test_default_with_fewer_than_two_onsets(self):
        assert estimate_tempo(np.array([], dtype=int), 44100) == DEFAULT_TEMPO
        assert estimate_tempo(np.array([100]), 44100) == DEFAULT_TEMPO

    def test_mean_interval(self):
        # 0.5 s between onsets
        assert estimate_tempo(np.array([0, 22050, 44100]), 44100) == pytest.approx(120.0)

    def test_clamped_to_supported_range(self):
        assert estimate_tempo(np.array([0, 10]), 44100) == 200.0
        assert estimate_tempo(np.array([0, 441000]), 44100) == 60.0


class TestRhythmAndBeat:
    def test_rhythm_strength_bounds(self):
        assert rhythm_strength(np.zeros(100)) == 0.0
        assert rhythm_strength(np.array([])) == 0.0
        assert rhythm_strength(np.array([1.0, -1.0] * 50)) == 1.0

    def test_beat_confidence_without_onsets(self):
        assert beat_confidence(np.array([], dtype=int), 120.0, 44100) == 0.0

    def test_beat_confidence_counts_hits_near_beat_interval(self):
        onsets = np.array([22050, 22100, 44100, 66150])
        # only indices within 20% of 22050 count
        assert beat_confidence(onsets, 120.0, 44100) == pytest.approx(0.5)


class TestTemporalAnalyzer:
    def test_click_track_tempo(self, click_buffer):
        features = TemporalAnalyzer().analyze(click_buffer)
        assert features.tempo == pytest.approx(120.0)
        assert features.onset_count == 3
        assert 0.0 <= features.beat_confidence <= 1.0

    def test_silence_uses_default_tempo(self, silence_buffer):
        features = TemporalAnalyzer().analyze(silence_buffer)
        assert features.tempo == DEFAULT_TEMPO
        assert features.rhythm_strength == 0.0
        assert features.beat_confidence == 0.0
        assert features.onset_count == 0

    def test_factory(self):
        analyzer = create_temporal_analyzer(
            {"analysis": {"onset_threshold": 0.3, "beat_tolerance": 0.1}}
        )
        assert analyzer.onset_threshold == 0.3
        assert analyzer.beat_tolerance == 0.1
