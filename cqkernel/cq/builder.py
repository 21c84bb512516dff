"""
Atom construction and the dense kernel matrix.

Every kernel bin k contributes atoms_per_frame rows: its windowed complex
exponential shifted by multiples of the atom spacing, zero-padded to the FFT
size and transformed. Rows are ordered bin-major, so row index is
(k - 1) * atoms_per_frame + i.

The matrix stays dense here: the normalization weight needs a contiguous
column window across all rows before the rows can be made sparse.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from ..dsp_core.fft import fft_batch
from ..dsp_core.window import make_window
from ..exceptions import EmptyKernelError, InvalidGeometryError
from ..utils.logging import get_logger
from .params import DerivedGeometry, KernelParams, atom_length

logger = get_logger(__name__)

FFTFunction = Callable[[np.ndarray], np.ndarray]


@dataclass
class DenseKernel:
    """Thresholded, 1/fft_size scaled atom spectra, shape (rows, fft_size)."""
    matrix: np.ndarray
    bins_per_octave: int
    atoms_per_frame: int

    @property
    def n_rows(self) -> int:
        return self.matrix.shape[0]

    @property
    def fft_size(self) -> int:
        return self.matrix.shape[1]


def make_atom(params: KernelParams, Q: float, k: int) -> np.ndarray:
    """
    Windowed complex exponential for bin k (1-based).

    atom[i] = win[i] * exp(j 2 pi f_k i / sr), f_k = fmin * 2^((k-1)/bpo)
    """
    bpo = params.bins_per_octave
    nk = atom_length(params, Q, k)
    win = make_window(params.window, nk)
    fk = params.min_frequency * 2.0 ** ((k - 1.0) / bpo)

    arg = 2.0 * np.pi * fk * np.arange(nk) / params.sample_rate
    return win * np.exp(1j * arg)


def _transform(buffers: np.ndarray, fft: Optional[FFTFunction]) -> np.ndarray:
    if fft is None:
        return fft_batch(buffers)
    out = np.empty_like(buffers)
    for i in range(buffers.shape[0]):
        out[i] = fft(buffers[i])
    return out


def atom_spectra(
    params: KernelParams,
    geometry: DerivedGeometry,
    k: int,
    fft: Optional[FFTFunction] = None
) -> np.ndarray:
    """
    Raw (unscaled, unthresholded) spectra of every atom of bin k.

    Parameters
    ----------
    params, geometry : kernel description
    k : int
        Bin index, 1-based
    fft : callable, optional
        Complex FFT of one power-of-two buffer. Defaults to the batched
        numba FFT from dsp_core.

    Returns
    -------
    np.ndarray
        Shape (atoms_per_frame, fft_size)
    """
    atom = make_atom(params, geometry.Q, k)
    nk = len(atom)
    atom_offset = geometry.first_centre - (nk + 1) // 2

    buffers = np.zeros((geometry.atoms_per_frame, geometry.fft_size), dtype=np.complex128)
    for i in range(geometry.atoms_per_frame):
        shift = atom_offset + i * geometry.atom_spacing
        if shift < 0 or shift + nk > geometry.fft_size:
            raise InvalidGeometryError(
                f"Atom {i} of bin {k} (length {nk}, shift {shift}) "
                f"does not fit in fft_size {geometry.fft_size}"
            )
        buffers[i, shift:shift + nk] = atom

    return _transform(buffers, fft)


def build_dense_kernel(
    params: KernelParams,
    geometry: DerivedGeometry,
    fft: Optional[FFTFunction] = None
) -> DenseKernel:
    """
    Build the dense kernel matrix.

    Entries with magnitude below params.threshold become exactly zero; the
    rest are scaled by 1/fft_size.

    Raises:
        EmptyKernelError: if no rows were produced
    """
    bpo = params.bins_per_octave
    n_atoms = geometry.atoms_per_frame
    scale = 1.0 / geometry.fft_size

    matrix = np.zeros((bpo * n_atoms, geometry.fft_size), dtype=np.complex128)
    for k in range(1, bpo + 1):
        spectra = atom_spectra(params, geometry, k, fft=fft)
        keep = np.abs(spectra) >= params.threshold
        row0 = (k - 1) * n_atoms
        matrix[row0:row0 + n_atoms] = np.where(keep, spectra * scale, 0.0)

    if matrix.shape[0] == 0:
        raise EmptyKernelError("Kernel construction produced no rows")

    logger.debug(f"size = {matrix.shape[0]} * {matrix.shape[1]} (fft size = {geometry.fft_size})")

    return DenseKernel(matrix=matrix, bins_per_octave=bpo, atoms_per_frame=n_atoms)
