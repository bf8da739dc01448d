"""Tests for WaveformDecoder and the estimated-feature fallback."""

import io

import numpy as np
import pytest
import soundfile as sf

from hitscope.core.decoder import (
    WaveformDecoder,
    content_hash,
    create_waveform_decoder,
    estimate_features,
)
from hitscope.core.models import FeatureSource
from hitscope.utils.errors import DecodeError, FileTooLargeError, UnsupportedFormatError


class TestDecode:
    def test_decodes_wav_bytes(self, wav_bytes):
        buffer = WaveformDecoder().decode(wav_bytes, source="memory")
        assert buffer.sample_rate == 44100
        assert buffer.channels == 1
        assert buffer.samples.ndim == 1
        assert buffer.duration == pytest.approx(0.5)
        assert buffer.source == "memory"
        assert buffer.content_hash == content_hash(wav_bytes)

    def test_decodes_stereo(self):
        out = io.BytesIO()
        sf.write(out, np.zeros((800, 2)) + 0.25, 8000, format="WAV")
        buffer = WaveformDecoder().decode(out.getvalue())
        assert buffer.channels == 2
        assert buffer.samples.shape == (2, 800)

    def test_empty_bytes(self):
        with pytest.raises(DecodeError):
            WaveformDecoder().decode(b"")

    def test_garbage_bytes(self):
        with pytest.raises(DecodeError) as exc_info:
            WaveformDecoder().decode(b"definitely not audio" * 10, source="junk")
        assert exc_info.value.source == "junk"

    def test_clipped_float_audio_is_normalized(self):
        out = io.BytesIO()
        sf.write(out, np.array([0.0, 2.0, -1.0, 0.5]), 8000, format="WAV", subtype="FLOAT")
        buffer = WaveformDecoder().decode(out.getvalue())
        assert float(np.max(np.abs(buffer.samples))) == pytest.approx(1.0)

    def test_resamples_to_target_rate(self, wav_bytes):
        buffer = WaveformDecoder(target_sample_rate=22050).decode(wav_bytes)
        assert buffer.sample_rate == 22050
        assert buffer.duration == pytest.approx(0.5, abs=0.01)


class TestDecodeFile:
    def test_reads_wav_file(self, wav_file):
        buffer = WaveformDecoder().decode_file(wav_file)
        assert buffer.source == str(wav_file)
        assert buffer.content_hash == content_hash(wav_file.read_bytes())

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WaveformDecoder().decode_file(tmp_path / "missing.wav")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(UnsupportedFormatError) as exc_info:
            WaveformDecoder().decode_file(path)
        assert exc_info.value.format == ".txt"

    def test_file_too_large(self, wav_file):
        with pytest.raises(FileTooLargeError) as exc_info:
            WaveformDecoder(max_file_size=100).decode_file(wav_file)
        assert exc_info.value.max_size == 100

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.wav"
        path.write_bytes(b"RIFF0000WAVEjunk")
        with pytest.raises(DecodeError):
            WaveformDecoder().decode_file(path)


class TestEstimateFeatures:
    def test_deterministic(self):
        assert estimate_features(b"abc" * 100) == estimate_features(b"abc" * 100)

    def test_marked_estimated_with_core_features(self):
        features = estimate_features(b"x" * 10)
        assert features.source is FeatureSource.ESTIMATED
        assert features.provided == frozenset({"tempo", "danceability", "energy", "valence"})

    def test_values_stay_near_midpoints(self):
        for size in range(0, 42):
            features = estimate_features(b"\0" * size)
            assert 100.0 <= features.tempo <= 140.0
            assert 0.4 <= features.danceability <= 0.6
            assert 0.4 <= features.valence <= 0.6

    def test_length_offset(self):
        # 10 % 21 - 10 == 0
        features = estimate_features(b"\0" * 10)
        assert features.tempo == pytest.approx(120.0)
        assert features.energy == pytest.approx(0.5)


class TestFactory:
    def test_reads_audio_section(self):
        decoder = create_waveform_decoder({
            "audio": {"max_file_size": 1000, "supported_formats": [".WAV"], "target_sample_rate": 16000}
        })
        assert decoder.max_file_size == 1000
        assert decoder.supported_suffixes == {".wav"}
        assert decoder.target_sample_rate == 16000

    def test_defaults(self):
        decoder = create_waveform_decoder()
        assert ".flac" in decoder.supported_suffixes
