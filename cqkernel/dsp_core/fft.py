"""
Radix-2 FFT using Numba JIT

The constant-Q kernel only ever transforms complex buffers whose length is a
power of two, so this module implements exactly that: an iterative
Cooley-Tukey decimation-in-time FFT with no output scaling.

Optimizations:
1. Numba JIT compilation (nopython mode)
2. Iterative (non-recursive) butterflies with in-place bit reversal
3. Row-parallel batch transform (prange) for building many atoms at once
"""

import math

import numpy as np
from numba import jit, prange


def is_power_of_two(n: int) -> bool:
    """True for 1, 2, 4, 8, ..."""
    return n > 0 and (n & (n - 1)) == 0


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


@jit(nopython=True, cache=True)
def _bit_reverse(x: int, n_bits: int) -> int:
    """Reverse the bits of x with n_bits."""
    result = 0
    for _ in range(n_bits):
        result = (result << 1) | (x & 1)
        x >>= 1
    return result


@jit(nopython=True, cache=True)
def _fft_radix2(x: np.ndarray) -> np.ndarray:
    """
    Iterative Cooley-Tukey radix-2 DIT FFT (Numba JIT).

    len(x) must be a power of two; callers check this.
    """
    N = len(x)
    n_bits = int(math.log2(N))

    X = np.empty(N, dtype=np.complex128)
    for i in range(N):
        X[_bit_reverse(i, n_bits)] = x[i]

    # Stages of size 2, 4, 8, ..., N
    stage_size = 2
    while stage_size <= N:
        half_size = stage_size // 2
        w_mult = np.exp(-2j * np.pi / stage_size)

        for k in range(0, N, stage_size):
            w = 1.0 + 0j
            for j in range(half_size):
                even = X[k + j]
                odd = X[k + j + half_size] * w
                X[k + j] = even + odd
                X[k + j + half_size] = even - odd
                w = w * w_mult

        stage_size *= 2

    return X


@jit(nopython=True, cache=True, parallel=True)
def _fft_rows(frames: np.ndarray) -> np.ndarray:
    n_rows, n = frames.shape
    result = np.empty((n_rows, n), dtype=np.complex128)
    for i in prange(n_rows):
        result[i] = _fft_radix2(frames[i])
    return result


def fft(x: np.ndarray) -> np.ndarray:
    """
    Compute the N-point discrete Fourier transform of a complex sequence.

    Parameters
    ----------
    x : np.ndarray
        1-D input; cast to complex128. len(x) must be a power of two.

    Returns
    -------
    np.ndarray
        Unscaled spectrum X[k] = sum_n x[n] exp(-2j pi k n / N).

    Examples
    --------
    >>> x = np.array([1.0, 2.0, 1.0, -1.0, 1.5, 1.0, 0.5, -0.5])
    >>> X = fft(x)
    >>> # Should match scipy.fft.fft(x)
    """
    x = np.ascontiguousarray(x, dtype=np.complex128)
    if x.ndim != 1:
        raise ValueError(f"Input must be 1D, got shape {x.shape}")
    if not is_power_of_two(len(x)):
        raise ValueError(f"FFT length must be a power of two, got {len(x)}")
    return _fft_radix2(x)


def fft_batch(frames: np.ndarray) -> np.ndarray:
    """
    Batch FFT over the rows of a 2-D array.

    Rows are transformed in parallel and each result is written back to the
    row it came from, so the output order never depends on scheduling.

    Parameters
    ----------
    frames : np.ndarray
        Complex buffers, shape (n_rows, n) with n a power of two

    Returns
    -------
    np.ndarray
        Spectra, shape (n_rows, n)
    """
    frames = np.ascontiguousarray(frames, dtype=np.complex128)
    if frames.ndim != 2:
        raise ValueError(f"Input must be 2D, got shape {frames.shape}")
    if not is_power_of_two(frames.shape[1]):
        raise ValueError(f"FFT length must be a power of two, got {frames.shape[1]}")
    return _fft_rows(frames)
