"""Shared fixtures for HitScope tests."""

import io
from datetime import date

import numpy as np
import pytest
import soundfile as sf

from hitscope.core.models import AudioBuffer, TrackFeatures


SAMPLE_RATE = 44100


# ---------------------------------------------------------------------------
# PCM buffers
# ---------------------------------------------------------------------------


def make_sine(freq: float = 440.0, seconds: float = 1.0, amplitude: float = 0.5,
              sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    t = np.arange(int(seconds * sample_rate)) / sample_rate
    return amplitude * np.sin(2 * np.pi * freq * t)


def make_wav_bytes(samples: np.ndarray, sample_rate: int = SAMPLE_RATE) -> bytes:
    out = io.BytesIO()
    sf.write(out, samples, sample_rate, format="WAV", subtype="PCM_16")
    return out.getvalue()


@pytest.fixture
def sine_buffer():
    """One second of a 440 Hz sine at half scale."""
    return AudioBuffer(samples=make_sine(), sample_rate=SAMPLE_RATE, content_hash="sine440")


@pytest.fixture
def silence_buffer():
    return AudioBuffer(samples=np.zeros(SAMPLE_RATE), sample_rate=SAMPLE_RATE,
                       content_hash="silence")


@pytest.fixture
def click_buffer():
    """Two seconds of clicks every 0.5 s (120 BPM) over a quiet sine."""
    samples = make_sine(seconds=2.0, amplitude=0.05)
    for start in range(0, samples.shape[0], SAMPLE_RATE // 2):
        samples[start:start + 200] = 0.9
    return AudioBuffer(samples=samples, sample_rate=SAMPLE_RATE, content_hash="clicks")


@pytest.fixture
def wav_bytes():
    return make_wav_bytes(make_sine(seconds=0.5))


@pytest.fixture
def wav_file(tmp_path, wav_bytes):
    path = tmp_path / "track.wav"
    path.write_bytes(wav_bytes)
    return path


# ---------------------------------------------------------------------------
# Scoring inputs
# ---------------------------------------------------------------------------


@pytest.fixture
def pop_features():
    """A radio-ready pop track."""
    return TrackFeatures.from_mapping({
        "tempo": 120,
        "danceability": 0.8,
        "energy": 0.75,
        "valence": 0.7,
        "key": "C",
        "mode": "major",
    })


@pytest.fixture
def quiet_features():
    """A slow, low-energy instrumental."""
    return TrackFeatures.from_mapping({
        "tempo": 70,
        "danceability": 0.2,
        "energy": 0.1,
        "valence": 0.3,
        "instrumentalness": 0.9,
        "loudness": -30,
    })


@pytest.fixture
def summer_date():
    return date(2025, 6, 1)


SNAPSHOT_YAML = """
trending_genres:
  pop: 0.5
  rock: 0.5
optimal_tempo:
  min: 110
  max: 130
  peak: 120
popular_keys:
  C: 0.4
  G: 0.2
energy_tiers:
  low: 0.1
  medium: 0.3
  high: 0.6
seasonal_factors:
  6: 1.2
"""


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "market.yaml"
    path.write_text(SNAPSHOT_YAML)
    return path
