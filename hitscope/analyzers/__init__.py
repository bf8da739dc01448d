"""
Feature analyzers: spectral, temporal, tonal and dynamics analysis of PCM
buffers, plus perceptual feature synthesis.
"""

from hitscope.analyzers.dynamics import DynamicsAnalyzer
from hitscope.analyzers.perceptual import PerceptualSynthesizer
from hitscope.analyzers.spectral import SpectralAnalyzer, create_spectral_analyzer
from hitscope.analyzers.temporal import TemporalAnalyzer, create_temporal_analyzer
from hitscope.analyzers.tonal import TonalAnalyzer, create_tonal_analyzer

__all__ = [
    "DynamicsAnalyzer",
    "PerceptualSynthesizer",
    "SpectralAnalyzer",
    "TemporalAnalyzer",
    "TonalAnalyzer",
    "create_spectral_analyzer",
    "create_temporal_analyzer",
    "create_tonal_analyzer",
]
