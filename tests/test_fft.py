"""Tests for the radix-2 FFT and framing helpers."""

import numpy as np
import pytest

from hitscope.analyzers.fft import (
    bin_frequencies,
    bit_reversal_permutation,
    count_frames,
    fft,
    hann_window,
    is_power_of_two,
    iter_windowed_frames,
    magnitude_spectrum,
)


class TestIsPowerOfTwo:
    def test_powers(self):
        assert all(is_power_of_two(2 ** k) for k in range(12))

    def test_non_powers(self):
        assert not is_power_of_two(0)
        assert not is_power_of_two(3)
        assert not is_power_of_two(1000)


class TestFFT:
    def test_matches_numpy(self):
        rng = np.random.default_rng(7)
        x = rng.standard_normal(256)
        np.testing.assert_allclose(fft(x), np.fft.fft(x), atol=1e-9)

    def test_batched_frames(self):
        rng = np.random.default_rng(3)
        frames = rng.standard_normal((4, 64))
        np.testing.assert_allclose(fft(frames), np.fft.fft(frames, axis=-1), atol=1e-9)

    def test_input_not_modified(self):
        x = np.arange(8, dtype=np.float64)
        original = x.copy()
        fft(x)
        np.testing.assert_array_equal(x, original)

    def test_non_power_of_two_raises(self):
        with pytest.raises(ValueError):
            fft(np.zeros(100))

    def test_two_sinusoids_peak_at_their_bins(self):
        n, sr = 1024, 8000
        t = np.arange(n) / sr
        x = np.sin(2 * np.pi * 1000 * t) + 0.5 * np.sin(2 * np.pi * 2500 * t)
        mags = magnitude_spectrum(x * hann_window(n))
        freqs = bin_frequencies(n, sr)
        peaks = sorted(np.argsort(mags)[-2:])
        # one bin is 7.8 Hz wide
        assert abs(freqs[peaks[0]] - 1000) <= sr / n
        assert abs(freqs[peaks[1]] - 2500) <= sr / n


class TestTables:
    def test_bit_reversal_for_eight(self):
        assert list(bit_reversal_permutation(8)) == [0, 4, 2, 6, 1, 5, 3, 7]

    def test_tables_are_read_only(self):
        with pytest.raises(ValueError):
            bit_reversal_permutation(16)[0] = 1
        with pytest.raises(ValueError):
            hann_window(16)[0] = 1.0

    def test_hann_window_endpoints(self):
        w = hann_window(9)
        assert w[0] == pytest.approx(0.0)
        assert w[-1] == pytest.approx(0.0)
        assert w[4] == pytest.approx(1.0)

    def test_single_sample_window(self):
        assert list(hann_window(1)) == [1.0]

    def test_bin_frequencies(self):
        freqs = bin_frequencies(8, 800)
        assert list(freqs) == [0, 100, 200, 300]


class TestFraming:
    def test_count_frames_rounds_up(self):
        assert count_frames(2049, 2048) == 2
        assert count_frames(2048, 2048) == 1
        assert count_frames(0, 2048) == 0

    def test_count_frames_cap(self):
        assert count_frames(100000, 1024, max_frames=3) == 3

    def test_partial_tail_is_zero_padded(self):
        signal = np.ones(20)
        batches = list(iter_windowed_frames(signal, frame_size=16))
        frames = np.concatenate(batches)
        assert frames.shape == (2, 16)
        assert np.all(frames[1, 4:] == 0)

    def test_rejects_bad_frame_size(self):
        with pytest.raises(ValueError):
            list(iter_windowed_frames(np.ones(10), frame_size=10))
