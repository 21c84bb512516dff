"""
Normalization weight for the constant-Q kernel.

The weight compensates for atom window energy so that forward and inverse
projections keep a consistent amplitude scale across bins. It is estimated
from the diagonal of the Gram matrix of a column window of the dense kernel:
the columns between the strongest FFT bin of the first row (lowest bin, first
atom) and that of the last row (highest bin, last atom).
"""

import numpy as np
from numba import jit, prange

from ..utils.logging import get_logger
from .builder import DenseKernel
from .params import DerivedGeometry

logger = get_logger(__name__)


@jit(nopython=True, cache=True, parallel=True)
def gram_matrix(subset: np.ndarray) -> np.ndarray:
    """
    Conjugate Gram matrix of the columns of subset (Numba JIT).

    G[i, j] = sum_r subset[r, i] * conj(subset[r, j])

    Parameters
    ----------
    subset : np.ndarray
        complex128, shape (n_rows, n_cols)

    Returns
    -------
    np.ndarray
        complex128, shape (n_cols, n_cols)
    """
    n_rows, n_cols = subset.shape
    G = np.zeros((n_cols, n_cols), dtype=np.complex128)
    # Each j owns column j of G
    for j in prange(n_cols):
        for i in range(n_cols):
            v = 0j
            for r in range(n_rows):
                v += subset[r, i] * np.conj(subset[r, j])
            G[i, j] = v
    return G


def column_window(matrix: np.ndarray):
    """(wx1, wx2): argmax |.| of the first and of the last row."""
    wx1 = int(np.argmax(np.abs(matrix[0])))
    wx2 = int(np.argmax(np.abs(matrix[-1])))
    return wx1, wx2


def diagonal_energies(G: np.ndarray, q: float) -> np.ndarray:
    """
    |G[i, i]| for i in [edge, ncols - edge - 2), edge = int(1/q + 0.5).

    May be empty.
    """
    ncols = G.shape[0]
    edge = int(1.0 / q + 0.5)
    idx = np.arange(edge, max(ncols - edge - 2, edge))
    return np.abs(G[idx, idx])


def normalization_weight(dense: DenseKernel, q: float, geometry: DerivedGeometry) -> float:
    """
    Scalar weight applied to every kernel coefficient.

    weight = sqrt((fft_hop / fft_size) / mean(wK)), or sqrt(fft_hop / fft_size)
    when the working set wK is empty (including wx2 < wx1).
    """
    matrix = dense.matrix
    wx1, wx2 = column_window(matrix)

    subset = np.ascontiguousarray(matrix[:, wx1:wx2 + 1])
    G = gram_matrix(subset)
    wK = diagonal_energies(G, q)

    weight = geometry.fft_hop / geometry.fft_size
    if len(wK) > 0:
        weight /= np.mean(wK)
    weight = float(np.sqrt(weight))

    logger.debug(
        f"weight = {weight} (from {len(wK)} elements in wK, ncols = {subset.shape[1]}, q = {q})"
    )
    return weight
