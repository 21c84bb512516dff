"""
Self-checks for a built kernel.

impulse_round_trip() places a unit impulse at the FFT bin nearest to a kernel
bin's centre frequency, runs forward then inverse, and reports where the
reconstructed spectrum's energy ends up.
"""

from typing import Dict, List

import numpy as np

from .kernel import CQKernel
from .params import atom_length


def expected_column(kernel: CQKernel, k: int) -> int:
    """FFT bin nearest to the centre frequency of kernel bin k (1-based)."""
    fk = kernel.bin_frequencies[k - 1]
    return int(round(fk * kernel.fft_size / kernel.params.sample_rate))


def concentration_width(kernel: CQKernel, k: int) -> int:
    """Half-width in FFT bins used to judge concentration around bin k."""
    nk = atom_length(kernel.params, kernel.Q, k)
    return 8 * int(np.ceil(kernel.fft_size / nk)) + 4


def impulse_round_trip(kernel: CQKernel, k: int) -> Dict:
    """
    Forward/inverse an impulse at the centre frequency of bin k.

    Returns:
        Dict with expected_column, peak_column, half_width and concentration
        (fraction of reconstructed energy within half_width of the expected
        column)
    """
    column = expected_column(kernel, k)
    spectrum = np.zeros(kernel.fft_size, dtype=np.complex128)
    spectrum[column] = 1.0

    recon = kernel.inverse(kernel.forward(spectrum))
    energy = np.abs(recon) ** 2
    total = energy.sum()

    half_width = concentration_width(kernel, k)
    lo = max(column - half_width, 0)
    hi = min(column + half_width + 1, kernel.fft_size)

    return {
        'bin': k,
        'expected_column': column,
        'peak_column': int(np.argmax(energy)),
        'half_width': half_width,
        'concentration': float(energy[lo:hi].sum() / total) if total > 0 else 0.0,
    }


def check_all_bins(kernel: CQKernel) -> List[Dict]:
    return [impulse_round_trip(kernel, k)
            for k in range(1, kernel.params.bins_per_octave + 1)]
