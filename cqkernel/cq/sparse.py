"""
Sparse kernel storage and the forward/inverse projections.

Each kernel row is kept as one contiguous run: an origin column and the
coefficients from the first to the last nonzero entry of the dense row.
Interior zeros inside the run are kept; leading and trailing zeros are not.
All runs live in a single coefficient arena addressed by per-row offsets.

The stored coefficients are conj(dense) * weight, i.e. the conjugate
transpose of the kernel, so the forward projection (the common case) is a
plain sparse dot product and the inverse conjugates back.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numba import jit, prange

from ..exceptions import EmptyKernelError
from .builder import DenseKernel


@dataclass(frozen=True)
class SparseKernel:
    """
    Arena of sparse kernel rows.

    Attributes:
        origins: int64 (n_rows,), first stored column of each row
        offsets: int64 (n_rows,), start of each row in data
        lengths: int64 (n_rows,), number of stored coefficients per row
        data: complex128, all rows' coefficients concatenated
        fft_size: width of the conceptual dense row
    """
    origins: np.ndarray
    offsets: np.ndarray
    lengths: np.ndarray
    data: np.ndarray
    fft_size: int

    @property
    def n_rows(self) -> int:
        return len(self.origins)

    @property
    def nnz(self) -> int:
        return len(self.data)

    def row(self, i: int) -> Tuple[int, np.ndarray]:
        """(origin, coefficients) of row i; coefficients is a read-only view."""
        start = int(self.offsets[i])
        return int(self.origins[i]), self.data[start:start + int(self.lengths[i])]

    def to_dense(self) -> np.ndarray:
        """Stored (conjugated, weighted) coefficients as a (n_rows, fft_size) matrix."""
        dense = np.zeros((self.n_rows, self.fft_size), dtype=np.complex128)
        for i in range(self.n_rows):
            origin, coeffs = self.row(i)
            dense[i, origin:origin + len(coeffs)] = coeffs
        return dense


def sparsify(dense: DenseKernel, weight: float) -> SparseKernel:
    """
    Compact every dense row into (origin, conj(row[origin:last+1]) * weight).

    A row without nonzero entries becomes empty with origin 0.
    """
    matrix = dense.matrix
    n_rows = matrix.shape[0]

    origins = np.zeros(n_rows, dtype=np.int64)
    lengths = np.zeros(n_rows, dtype=np.int64)
    for i in range(n_rows):
        nz = np.flatnonzero(matrix[i])
        if len(nz) == 0:
            continue
        origins[i] = nz[0]
        lengths[i] = nz[-1] - nz[0] + 1

    offsets = np.zeros(n_rows, dtype=np.int64)
    if n_rows > 1:
        offsets[1:] = np.cumsum(lengths)[:-1]

    data = np.empty(int(lengths.sum()), dtype=np.complex128)
    for i in range(n_rows):
        start, n, origin = offsets[i], lengths[i], origins[i]
        data[start:start + n] = np.conj(matrix[i, origin:origin + n]) * weight

    for arr in (origins, offsets, lengths, data):
        arr.setflags(write=False)

    return SparseKernel(
        origins=origins,
        offsets=offsets,
        lengths=lengths,
        data=data,
        fft_size=matrix.shape[1],
    )


@jit(nopython=True, cache=True)
def _forward(cv, origins, offsets, lengths, data):
    n_rows = len(origins)
    rv = np.zeros(n_rows, dtype=np.complex128)
    for i in range(n_rows):
        o = origins[i]
        start = offsets[i]
        acc = 0j
        for j in range(lengths[i]):
            acc += cv[j + o] * data[start + j]
        rv[i] = acc
    return rv


@jit(nopython=True, cache=True, parallel=True)
def _forward_frames(frames, origins, offsets, lengths, data):
    n_frames = frames.shape[0]
    rv = np.zeros((n_frames, len(origins)), dtype=np.complex128)
    for f in prange(n_frames):
        for i in range(len(origins)):
            o = origins[i]
            start = offsets[i]
            acc = 0j
            for j in range(lengths[i]):
                acc += frames[f, j + o] * data[start + j]
            rv[f, i] = acc
    return rv


@jit(nopython=True, cache=True)
def _inverse(cv, origins, offsets, lengths, data, fft_size):
    rv = np.zeros(fft_size, dtype=np.complex128)
    for j in range(len(origins)):
        o = origins[j]
        start = offsets[j]
        for i in range(lengths[j]):
            rv[o + i] += cv[j] * np.conj(data[start + i])
    return rv


def _check_rows(kernel: SparseKernel):
    if kernel.n_rows == 0:
        raise EmptyKernelError("Cannot project with a kernel that has no rows")


def project_forward(kernel: SparseKernel, spectrum: np.ndarray) -> np.ndarray:
    """
    Spectrum -> constant-Q coefficients.

    rv[i] = sum_j spectrum[j + origin[i]] * coefficients[i][j]

    Parameters
    ----------
    kernel : SparseKernel
    spectrum : np.ndarray
        1-D complex spectrum of length >= fft_size (one FFT frame)

    Returns
    -------
    np.ndarray
        complex128, shape (n_rows,)
    """
    _check_rows(kernel)
    cv = np.ascontiguousarray(spectrum, dtype=np.complex128)
    if cv.ndim != 1:
        raise ValueError(f"Spectrum must be 1D, got shape {cv.shape}")
    if len(cv) < kernel.fft_size:
        raise ValueError(f"Spectrum length {len(cv)} < fft_size {kernel.fft_size}")
    return _forward(cv, kernel.origins, kernel.offsets, kernel.lengths, kernel.data)


def project_forward_frames(kernel: SparseKernel, spectra: np.ndarray) -> np.ndarray:
    """
    Forward projection of many frames.

    Parameters
    ----------
    spectra : np.ndarray
        Shape (n_frames, >= fft_size)

    Returns
    -------
    np.ndarray
        Shape (n_frames, n_rows)
    """
    _check_rows(kernel)
    frames = np.ascontiguousarray(spectra, dtype=np.complex128)
    if frames.ndim != 2:
        raise ValueError(f"Spectra must be 2D (n_frames, n_fft), got shape {frames.shape}")
    if frames.shape[1] < kernel.fft_size:
        raise ValueError(f"Spectrum length {frames.shape[1]} < fft_size {kernel.fft_size}")
    return _forward_frames(frames, kernel.origins, kernel.offsets, kernel.lengths, kernel.data)


def project_inverse(kernel: SparseKernel, coefficients: np.ndarray) -> np.ndarray:
    """
    Constant-Q coefficients -> spectrum of length fft_size.

    rv[i] += cv[j] * conj(coefficients[j][i - origin[j]]), scatter-accumulated
    over every stored entry.
    """
    _check_rows(kernel)
    cv = np.ascontiguousarray(coefficients, dtype=np.complex128)
    if cv.shape != (kernel.n_rows,):
        raise ValueError(f"Expected {kernel.n_rows} coefficients, got shape {cv.shape}")
    return _inverse(cv, kernel.origins, kernel.offsets, kernel.lengths, kernel.data,
                    kernel.fft_size)
