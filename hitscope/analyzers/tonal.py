"""
Tonal analyzer for HitScope.

Folds spectral magnitude into a 12-bin chromagram, picks the key and
mode from it, and measures harmonic complexity by peak counting.
"""

from functools import lru_cache
from typing import Optional, Tuple

import librosa
import numpy as np

from hitscope.analyzers.fft import (
    DEFAULT_FRAME_SIZE,
    bin_frequencies,
    is_power_of_two,
    iter_windowed_frames,
    magnitude_spectrum,
)
from hitscope.core.analyzer_base import BaseAnalyzer
from hitscope.core.models import PITCH_CLASSES, AudioBuffer, TonalFeatures, clamp

MAJOR_TEMPLATE = np.array([1, 0, 0.5, 0, 1, 0.5, 0, 1, 0, 0.5, 0, 0], dtype=np.float64)
MINOR_TEMPLATE = np.array([1, 0, 0.5, 1, 0, 0.5, 0, 1, 0, 0.5, 1, 0], dtype=np.float64)
MAJOR_TEMPLATE.flags.writeable = False
MINOR_TEMPLATE.flags.writeable = False

HARMONIC_PEAK_CAP: int = 100


@lru_cache(maxsize=32)
def chroma_bin_map(frame_size: int, sample_rate: int) -> np.ndarray:
    """
    Pitch class (0-11) of every magnitude bin, or -1 for the DC bin.

    MIDI numbers are rounded half up before folding to a pitch class.
    """
    freqs = bin_frequencies(frame_size, sample_rate)
    pitch_classes = np.full(freqs.shape[0], -1, dtype=np.intp)
    audible = freqs > 0
    midi = librosa.hz_to_midi(freqs[audible])
    pitch_classes[audible] = np.floor(midi + 0.5).astype(np.intp) % 12
    pitch_classes.flags.writeable = False
    return pitch_classes


def chromagram(spectrum: np.ndarray, pitch_classes: np.ndarray) -> np.ndarray:
    """Accumulate a magnitude spectrum into 12 bins, normalized by the max bin."""
    mask = pitch_classes >= 0
    chroma = np.bincount(pitch_classes[mask], weights=spectrum[mask], minlength=12)
    peak = chroma.max()
    if peak <= 0:
        return np.zeros(12)
    return chroma / peak


def detect_key(chroma: np.ndarray) -> Tuple[str, float, bool]:
    """
    Key, key confidence and an uncertain-key flag from a chromagram.

    Confidence is (key strength - mean) / mean clamped to [0, 1]; a flat
    or empty chromagram gives confidence 0 and is flagged uncertain.
    """
    index = int(np.argmax(chroma))
    mean = float(np.mean(chroma))
    if mean <= 0:
        return PITCH_CLASSES[index], 0.0, True
    raw_confidence = (float(chroma[index]) - mean) / mean
    return PITCH_CLASSES[index], clamp(raw_confidence), raw_confidence <= 0


def detect_mode(chroma: np.ndarray) -> str:
    """'major' only when the major template correlates strictly better."""
    major = float(np.dot(chroma, MAJOR_TEMPLATE))
    minor = float(np.dot(chroma, MINOR_TEMPLATE))
    return "major" if major > minor else "minor"


def count_spectral_peaks(magnitudes: np.ndarray) -> np.ndarray:
    """Strict local maxima per spectrum along the last axis."""
    m = np.asarray(magnitudes)
    if m.shape[-1] < 3:
        return np.zeros(m.shape[:-1], dtype=np.intp)
    centre = m[..., 1:-1]
    peaks = (centre > m[..., :-2]) & (centre > m[..., 2:])
    return peaks.sum(axis=-1)


class TonalAnalyzer(BaseAnalyzer[TonalFeatures]):
    """Chromagram key/mode detection and harmonic complexity."""

    def __init__(
        self,
        frame_size: int = DEFAULT_FRAME_SIZE,
        max_frames: Optional[int] = None,
        peak_cap: int = HARMONIC_PEAK_CAP,
    ):
        super().__init__("tonal", "1.0.0")
        if not is_power_of_two(frame_size):
            raise ValueError(f"Frame size must be a power of two, got {frame_size}")
        self.frame_size = frame_size
        self.max_frames = max_frames
        self.peak_cap = peak_cap

    def _analyze_impl(self, buffer: AudioBuffer) -> TonalFeatures:
        spectrum_sum = np.zeros(self.frame_size // 2)
        peak_total = 0
        active_frames = 0

        for batch in iter_windowed_frames(buffer.mono, self.frame_size, self.max_frames):
            magnitudes = magnitude_spectrum(batch)
            spectrum_sum += magnitudes.sum(axis=0)
            active = magnitudes.sum(axis=-1) > 0
            peak_total += int(count_spectral_peaks(magnitudes[active]).sum())
            active_frames += int(active.sum())

        chroma = chromagram(spectrum_sum, chroma_bin_map(self.frame_size, buffer.sample_rate))
        key, key_confidence, uncertain = detect_key(chroma)
        mode = detect_mode(chroma)

        if uncertain:
            self.logger.debug("Chromagram is flat; key is uncertain")

        mean_peaks = peak_total / active_frames if active_frames else 0.0

        return TonalFeatures(
            key=key,
            mode=mode,
            key_confidence=key_confidence,
            harmonic_complexity=clamp(mean_peaks / self.peak_cap),
            chroma=tuple(float(v) for v in chroma),
            key_uncertain=uncertain,
        )


def create_tonal_analyzer(config: dict) -> TonalAnalyzer:
    """Factory function to create a TonalAnalyzer from configuration."""
    analysis = config.get("analysis", {})
    return TonalAnalyzer(
        frame_size=analysis.get("frame_size", DEFAULT_FRAME_SIZE),
        max_frames=analysis.get("max_frames"),
        peak_cap=analysis.get("harmonic_peak_cap", HARMONIC_PEAK_CAP),
    )
