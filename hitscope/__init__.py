"""
HitScope: commercial success assessment for music tracks.

Extracts spectral, temporal and tonal descriptors from decoded audio,
synthesizes perceptual features and scores them against genre profiles,
market trends and release timing.
"""

__version__ = "1.0.0"
__author__ = "HitScope Team"
