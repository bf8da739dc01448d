"""
Core module containing data models, decoding, caching and the analysis engine.

Uses lazy imports for modules with heavy dependencies (librosa, soundfile).
"""

# Models are lightweight - import directly
from hitscope.core.models import (
    AudioBuffer,
    FeatureSource,
    FeatureVector,
    MarketTrendsSnapshot,
    Recommendation,
    RiskAssessment,
    ScoreBreakdown,
    SuccessScoreResult,
    TrackFeatures,
)

__all__ = [
    # Models (always available)
    "AudioBuffer",
    "FeatureSource",
    "FeatureVector",
    "MarketTrendsSnapshot",
    "Recommendation",
    "RiskAssessment",
    "ScoreBreakdown",
    "SuccessScoreResult",
    "TrackFeatures",
    # Heavy modules (lazy loaded)
    "WaveformDecoder",
    "create_waveform_decoder",
    "Analyzer",
    "BaseAnalyzer",
    "SuccessAnalysisEngine",
    "create_analysis_engine",
    "CacheManager",
    "create_cache_manager",
    "ResultWriter",
    "TextResultWriter",
    "JSONResultWriter",
    "create_result_writer",
]


def __getattr__(name: str):
    """Lazy load modules with heavy dependencies."""
    if name in ("WaveformDecoder", "create_waveform_decoder"):
        from hitscope.core.decoder import WaveformDecoder, create_waveform_decoder
        return WaveformDecoder if name == "WaveformDecoder" else create_waveform_decoder
    elif name in ("Analyzer", "BaseAnalyzer"):
        from hitscope.core.analyzer_base import Analyzer, BaseAnalyzer
        return Analyzer if name == "Analyzer" else BaseAnalyzer
    elif name in ("SuccessAnalysisEngine", "create_analysis_engine"):
        from hitscope.core.engine import SuccessAnalysisEngine, create_analysis_engine
        return SuccessAnalysisEngine if name == "SuccessAnalysisEngine" else create_analysis_engine
    elif name in ("CacheManager", "create_cache_manager"):
        from hitscope.core.cache import CacheManager, create_cache_manager
        return CacheManager if name == "CacheManager" else create_cache_manager
    elif name in ("ResultWriter", "TextResultWriter", "JSONResultWriter", "create_result_writer"):
        from hitscope.core import result_writer
        return getattr(result_writer, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
