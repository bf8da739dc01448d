"""
Radix-2 FFT and framing helpers.

Everything here is a pure function of its arguments. Cached tables
(window, bit-reversal permutation, bin frequencies) are returned as
read-only arrays so concurrent analyzers can share them without locks.
"""

from functools import lru_cache
from typing import Iterator, Optional

import numpy as np

DEFAULT_FRAME_SIZE: int = 2048
FRAME_BATCH: int = 256


def is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


@lru_cache(maxsize=16)
def bit_reversal_permutation(n: int) -> np.ndarray:
    """Index array that reorders ``n`` inputs into bit-reversed order."""
    if not is_power_of_two(n):
        raise ValueError(f"FFT size must be a power of two, got {n}")

    bits = n.bit_length() - 1
    indices = np.arange(n)
    reversed_indices = np.zeros(n, dtype=np.intp)
    for bit in range(bits):
        reversed_indices |= ((indices >> bit) & 1) << (bits - 1 - bit)

    reversed_indices.flags.writeable = False
    return reversed_indices


@lru_cache(maxsize=16)
def hann_window(length: int) -> np.ndarray:
    """Hann window ``0.5 * (1 - cos(2*pi*i / (N-1)))``."""
    if length < 1:
        raise ValueError(f"Window length must be >= 1, got {length}")
    if length == 1:
        window = np.ones(1)
    else:
        i = np.arange(length)
        window = 0.5 * (1.0 - np.cos(2.0 * np.pi * i / (length - 1)))

    window.flags.writeable = False
    return window


def fft(samples: np.ndarray) -> np.ndarray:
    """
    Iterative radix-2 decimation-in-time FFT.

    Transforms along the last axis, so a ``(frames, N)`` batch is
    handled in one pass. The input is never modified.

    Args:
        samples: Real or complex array whose last dimension is a power of two

    Returns:
        Complex spectrum with the same shape as ``samples``

    Raises:
        ValueError: If the transform length is not a power of two
    """
    x = np.asarray(samples, dtype=np.complex128)
    n = x.shape[-1] if x.ndim else 0
    perm = bit_reversal_permutation(n)

    batch_shape = x.shape[:-1]
    x = x[..., perm]

    size = 2
    while size <= n:
        half = size // 2
        twiddle = np.exp(-2j * np.pi * np.arange(half) / size)
        blocks = x.reshape(batch_shape + (n // size, size))
        even = blocks[..., :half]
        odd = blocks[..., half:] * twiddle
        x = np.concatenate((even + odd, even - odd), axis=-1).reshape(batch_shape + (n,))
        size *= 2

    return x


def magnitude_spectrum(frames: np.ndarray) -> np.ndarray:
    """Magnitudes of the first N/2 FFT bins of each (already windowed) frame."""
    spectrum = fft(frames)
    n = spectrum.shape[-1]
    return np.abs(spectrum[..., : n // 2])


@lru_cache(maxsize=32)
def bin_frequencies(frame_size: int, sample_rate: int) -> np.ndarray:
    """Center frequency in Hz of each of the N/2 magnitude bins."""
    freqs = np.arange(frame_size // 2) * sample_rate / frame_size
    freqs.flags.writeable = False
    return freqs


def count_frames(num_samples: int, frame_size: int, max_frames: Optional[int] = None) -> int:
    total = -(-num_samples // frame_size) if num_samples > 0 else 0
    if max_frames is not None:
        total = min(total, max_frames)
    return total


def iter_windowed_frames(
    signal: np.ndarray,
    frame_size: int = DEFAULT_FRAME_SIZE,
    max_frames: Optional[int] = None,
    batch_size: int = FRAME_BATCH,
) -> Iterator[np.ndarray]:
    """
    Yield batches of Hann-windowed, non-overlapping frames.

    Each batch has shape ``(frames, frame_size)``. A trailing partial
    segment is windowed over its own length and then zero-padded.

    Raises:
        ValueError: If ``frame_size`` is not a power of two
    """
    if not is_power_of_two(frame_size):
        raise ValueError(f"Frame size must be a power of two, got {frame_size}")

    signal = np.asarray(signal, dtype=np.float64)
    total = count_frames(signal.shape[0], frame_size, max_frames)
    full = min(total, signal.shape[0] // frame_size)
    window = hann_window(frame_size)

    for start in range(0, full, batch_size):
        stop = min(start + batch_size, full)
        segment = signal[start * frame_size: stop * frame_size]
        yield segment.reshape(stop - start, frame_size) * window

    if total > full:
        tail = signal[full * frame_size:]
        frame = np.zeros((1, frame_size))
        frame[0, : tail.shape[0]] = tail * hann_window(tail.shape[0])
        yield frame
