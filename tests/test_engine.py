"""Tests for SuccessAnalysisEngine orchestration."""

import asyncio
import copy
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from hitscope.analyzers import DynamicsAnalyzer, SpectralAnalyzer, TemporalAnalyzer, TonalAnalyzer
from hitscope.core.cache import CacheManager
from hitscope.core.decoder import WaveformDecoder
from hitscope.core.engine import SuccessAnalysisEngine, create_analysis_engine, market_fingerprint
from hitscope.core.models import FeatureSource
from hitscope.market import StaticMarketSignalProvider
from hitscope.scoring import DEFAULT_MARKET_SNAPSHOT
from hitscope.utils.config import get_default_config
from hitscope.utils.errors import AnalysisError, UnsupportedFormatError


AS_OF = date(2025, 3, 10)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_engine(**overrides):
    """Create an engine with real analyzers; keywords replace constructor args."""
    defaults = dict(
        decoder=WaveformDecoder(),
        spectral_analyzer=SpectralAnalyzer(),
        temporal_analyzer=TemporalAnalyzer(),
        tonal_analyzer=TonalAnalyzer(),
        dynamics_analyzer=DynamicsAnalyzer(),
        max_workers=2,
    )
    defaults.update(overrides)
    return SuccessAnalysisEngine(**defaults)


def _failing_analyzer(name):
    analyzer = MagicMock()
    analyzer.analyze.side_effect = AnalysisError(f"{name} exploded", analyzer_name=name)
    return analyzer


@pytest.fixture
def engine():
    engine = _make_engine()
    yield engine
    engine.shutdown()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestExtractFeatures:
    def test_all_features_measured(self, engine, sine_buffer):
        features = engine.extract_features(sine_buffer)
        assert features.source is FeatureSource.MEASURED
        assert features.key == "A"
        assert features.required_provided == 4

    def test_failed_analyzer_degrades_to_estimated(self, sine_buffer):
        engine = _make_engine(tonal_analyzer=_failing_analyzer("tonal"))
        try:
            features = engine.extract_features(sine_buffer)
        finally:
            engine.shutdown()
        assert features.source is FeatureSource.ESTIMATED
        assert features.key is None
        assert features.is_provided("tempo")
        assert not features.is_provided("harmonic_complexity")


class TestAnalyzeBuffer:
    def test_sine(self, engine, sine_buffer):
        result = engine.analyze_buffer(sine_buffer, as_of=AS_OF)
        assert 0 <= result.overall_score <= 100
        assert result.feature_source is FeatureSource.MEASURED
        assert result.market_source == "none"
        assert result.confidence == pytest.approx(0.8)

    def test_silence_never_raises(self, engine, silence_buffer):
        result = engine.analyze_buffer(silence_buffer, genre="pop", as_of=AS_OF)
        assert 0 <= result.overall_score <= 100
        assert result.features["tempo"] == 120.0

    def test_explicit_market_trends_win(self, sine_buffer):
        engine = _make_engine(market_provider=StaticMarketSignalProvider())
        live = DEFAULT_MARKET_SNAPSHOT.from_dict(DEFAULT_MARKET_SNAPSHOT.to_dict())
        try:
            assert engine.analyze_buffer(sine_buffer, as_of=AS_OF).market_source == "default"
            assert engine.analyze_buffer(
                sine_buffer, market_trends=live, as_of=AS_OF
            ).market_source == "live"
        finally:
            engine.shutdown()

    def test_failing_market_provider_falls_back_to_default(self, sine_buffer):
        provider = MagicMock()
        provider.get_current_trends = AsyncMock(side_effect=ConnectionError("chart API down"))
        engine = _make_engine(market_provider=provider)
        try:
            result = engine.analyze_buffer(sine_buffer, genre="pop", as_of=AS_OF)
        finally:
            engine.shutdown()
        assert result.market_source == "default"
        provider.get_current_trends.assert_awaited_once()

    def test_analyzer_failure_halves_confidence(self, sine_buffer):
        engine = _make_engine(spectral_analyzer=_failing_analyzer("spectral"))
        try:
            result = engine.analyze_buffer(sine_buffer, genre="pop", as_of=AS_OF)
        finally:
            engine.shutdown()
        assert result.is_estimated
        assert result.confidence == pytest.approx(0.45)


class TestAnalyzeBytes:
    def test_wav_bytes(self, engine, wav_bytes):
        result = engine.analyze_bytes(wav_bytes, genre="pop", as_of=AS_OF, source="upload")
        assert result.source == "upload"
        assert result.feature_source is FeatureSource.MEASURED

    def test_undecodable_bytes_are_estimated(self, engine):
        result = engine.analyze_bytes(b"not audio at all", genre="pop", as_of=AS_OF)
        assert result.is_estimated
        assert result.confidence == pytest.approx(0.45)
        assert "estimated" in result.get_summary()

    def test_empty_bytes_are_estimated(self, engine):
        assert engine.analyze_bytes(b"", as_of=AS_OF).is_estimated

    def test_async_variant(self, engine, wav_bytes):
        result = asyncio.run(engine.analyze_bytes_async(wav_bytes, as_of=AS_OF))
        assert result.feature_source is FeatureSource.MEASURED


class TestCaching:
    def test_second_call_is_served_from_cache(self, sine_buffer):
        engine = _make_engine(cache=CacheManager(max_size=8))
        try:
            with patch.object(engine, "extract_features", wraps=engine.extract_features) as spy:
                first = engine.analyze_buffer(sine_buffer, genre="pop", as_of=AS_OF)
                second = engine.analyze_buffer(sine_buffer, genre="pop", as_of=AS_OF)
            assert second.to_dict() == first.to_dict()
            assert spy.call_count == 1
        finally:
            engine.shutdown()

    def test_context_changes_miss_the_cache(self, sine_buffer):
        cache = CacheManager(max_size=8)
        engine = _make_engine(cache=cache)
        try:
            engine.analyze_buffer(sine_buffer, genre="pop", as_of=AS_OF)
            engine.analyze_buffer(sine_buffer, genre="rock", as_of=AS_OF)
            engine.analyze_buffer(sine_buffer, genre="pop", is_released=True, as_of=AS_OF)
            engine.analyze_buffer(
                sine_buffer, genre="pop", market_trends=DEFAULT_MARKET_SNAPSHOT, as_of=AS_OF
            )
        finally:
            engine.shutdown()
        assert len(cache) == 4

    def test_estimated_results_are_cached_by_bytes(self):
        cache = CacheManager(max_size=8)
        engine = _make_engine(cache=cache)
        try:
            first = engine.analyze_bytes(b"garbage" * 5, as_of=AS_OF)
            second = engine.analyze_bytes(b"garbage" * 5, as_of=AS_OF)
        finally:
            engine.shutdown()
        assert second.to_dict() == first.to_dict()
        assert cache.get_stats()["hits"] == 1

    def test_cache_hit_reports_its_own_source(self, wav_bytes, tmp_path):
        first_path = tmp_path / "a.wav"
        second_path = tmp_path / "b.wav"
        first_path.write_bytes(wav_bytes)
        second_path.write_bytes(wav_bytes)
        cache = CacheManager(max_size=8)
        engine = _make_engine(cache=cache)
        try:
            results, errors = engine.analyze_batch([first_path, second_path], as_of=AS_OF)
        finally:
            engine.shutdown()
        assert errors == {}
        assert cache.get_stats()["hits"] == 1
        assert results[first_path].source == str(first_path)
        assert results[second_path].source == str(second_path)
        assert results[second_path].overall_score == results[first_path].overall_score

    def test_estimated_cache_hit_reports_its_own_source(self):
        engine = _make_engine(cache=CacheManager(max_size=8))
        try:
            engine.analyze_bytes(b"garbage" * 5, as_of=AS_OF, source="first")
            second = engine.analyze_bytes(b"garbage" * 5, as_of=AS_OF, source="second")
        finally:
            engine.shutdown()
        assert second.source == "second"

    def test_market_fingerprint(self):
        assert market_fingerprint(None) == "none"
        assert market_fingerprint(DEFAULT_MARKET_SNAPSHOT) == market_fingerprint(DEFAULT_MARKET_SNAPSHOT)
        assert len(market_fingerprint(DEFAULT_MARKET_SNAPSHOT)) == 16


class TestAnalyzeFiles:
    def test_analyze_file(self, engine, wav_file):
        result = engine.analyze_file(wav_file, genre="pop", as_of=AS_OF)
        assert result.source == str(wav_file)

    def test_async_file(self, engine, wav_file):
        result = asyncio.run(engine.analyze_file_async(wav_file, as_of=AS_OF))
        assert result.source == str(wav_file)

    def test_corrupt_file_is_estimated(self, engine, tmp_path):
        broken = tmp_path / "broken.wav"
        broken.write_bytes(b"RIFF\x00\x00\x00\x00WAVEjunk" * 4)
        result = engine.analyze_file(broken, genre="pop", as_of=AS_OF)
        assert result.is_estimated
        assert result.source == str(broken)
        assert result.confidence == pytest.approx(0.45)

    def test_corrupt_file_async(self, engine, tmp_path):
        broken = tmp_path / "broken.wav"
        broken.write_bytes(b"RIFF....WAVEjunk")
        result = asyncio.run(engine.analyze_file_async(broken, as_of=AS_OF))
        assert result.is_estimated

    def test_unsupported_format_still_raises(self, engine, tmp_path):
        text = tmp_path / "readme.txt"
        text.write_text("not audio")
        with pytest.raises(UnsupportedFormatError):
            engine.analyze_file(text, as_of=AS_OF)

    def test_batch_collects_errors(self, engine, wav_file, tmp_path):
        text = tmp_path / "readme.txt"
        text.write_text("not audio")
        broken = tmp_path / "broken.wav"
        broken.write_bytes(b"RIFF....WAVEjunk")
        missing = tmp_path / "missing.wav"

        results, errors = engine.analyze_batch([wav_file, text, broken, missing], as_of=AS_OF)
        assert list(results) == [wav_file, broken]
        assert results[broken].is_estimated
        assert results[wav_file].feature_source is FeatureSource.MEASURED
        assert set(errors) == {text, missing}


class TestLifecycle:
    def test_context_manager_shuts_down_executor(self):
        with _make_engine() as engine:
            pass
        with pytest.raises(RuntimeError):
            engine.executor.submit(lambda: None)

    def test_factory_builds_from_config(self):
        config = copy.deepcopy(get_default_config())
        config["market"]["provider"] = "static"
        config["cache"]["enabled"] = False
        config["scoring"]["estimated_confidence_factor"] = 0.25
        engine = create_analysis_engine(config)
        try:
            assert engine.cache is None
            assert isinstance(engine.market_provider, StaticMarketSignalProvider)
            assert engine.assessor.scorer.estimated_confidence_factor == 0.25
        finally:
            engine.shutdown()
