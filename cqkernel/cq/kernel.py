"""
CQKernel - one-octave constant-Q kernel with forward and inverse projection.

Construction runs the whole pipeline once:

    KernelParams -> DerivedGeometry -> DenseKernel -> weight -> SparseKernel

and either succeeds completely or raises a CQKernelError. The finished object
has no mutating methods and its arrays are read-only, so one instance can be
shared by any number of threads calling forward()/inverse().

Examples
--------
>>> params = KernelParams(sample_rate=44100, min_frequency=55.0, bins_per_octave=12)
>>> kernel = CQKernel(params)
>>> coeffs = kernel.forward(np.fft.fft(frame, kernel.fft_size))
>>> spectrum = kernel.inverse(coeffs)
"""

from typing import Dict, Optional

import numpy as np

from ..utils.logging import get_logger
from .builder import FFTFunction, build_dense_kernel
from .normalization import normalization_weight
from .params import DerivedGeometry, KernelParams, bin_frequencies, derive_geometry
from .sparse import (
    SparseKernel,
    project_forward,
    project_forward_frames,
    project_inverse,
    sparsify,
)

logger = get_logger(__name__)


class CQKernel:
    """
    Sparse constant-Q kernel for one octave.

    Args:
        params: Physical kernel parameters
        fft: Optional complex FFT for a single power-of-two buffer (e.g.
            scipy.fft.fft). Defaults to the numba FFT in cqkernel.dsp_core.
    """

    def __init__(self, params: KernelParams, fft: Optional[FFTFunction] = None):
        geometry = derive_geometry(params)
        dense = build_dense_kernel(params, geometry, fft=fft)
        weight = normalization_weight(dense, params.q, geometry)
        sparse = sparsify(dense, weight)

        self._params = params
        self._geometry = geometry
        self._weight = weight
        self._sparse = sparse

        logger.info(
            f"Built CQ kernel: {params.bins_per_octave} bins x {geometry.atoms_per_frame} atoms, "
            f"fft_size={geometry.fft_size}, fft_hop={geometry.fft_hop}, "
            f"nnz={sparse.nnz}, weight={weight:.6g}"
        )

    @classmethod
    def from_config(cls, config, fft: Optional[FFTFunction] = None) -> 'CQKernel':
        """Build from a YAML path or an already-loaded config mapping."""
        from ..config import load_config, kernel_params_from_config
        if not isinstance(config, dict):
            config = load_config(config)
        return cls(kernel_params_from_config(config), fft=fft)

    # ---- read-only state ----

    @property
    def params(self) -> KernelParams:
        return self._params

    @property
    def geometry(self) -> DerivedGeometry:
        return self._geometry

    @property
    def sparse(self) -> SparseKernel:
        return self._sparse

    @property
    def weight(self) -> float:
        return self._weight

    @property
    def Q(self) -> float:
        return self._geometry.Q

    @property
    def fft_size(self) -> int:
        return self._geometry.fft_size

    @property
    def fft_hop(self) -> int:
        return self._geometry.fft_hop

    @property
    def atoms_per_frame(self) -> int:
        return self._geometry.atoms_per_frame

    @property
    def atom_spacing(self) -> int:
        return self._geometry.atom_spacing

    @property
    def first_centre(self) -> int:
        return self._geometry.first_centre

    @property
    def last_centre(self) -> int:
        return self._geometry.last_centre

    @property
    def row_count(self) -> int:
        return self._sparse.n_rows

    @property
    def bin_frequencies(self) -> np.ndarray:
        return bin_frequencies(self._params)

    def bin_count(self) -> int:
        """Total bins over all octaves the driver stacks this kernel across."""
        return self._params.octaves * self._params.bins_per_octave

    # ---- projections ----

    def forward(self, spectrum: np.ndarray) -> np.ndarray:
        """
        Project one FFT frame onto the kernel.

        Args:
            spectrum: complex spectrum, length >= fft_size

        Returns:
            bins_per_octave * atoms_per_frame coefficients, bin-major
        """
        return project_forward(self._sparse, spectrum)

    def forward_frames(self, spectra: np.ndarray) -> np.ndarray:
        """forward() over the rows of a (n_frames, >= fft_size) array."""
        return project_forward_frames(self._sparse, spectra)

    def inverse(self, coefficients: np.ndarray) -> np.ndarray:
        """
        Map coefficients back to a spectrum of length fft_size.

        Args:
            coefficients: bins_per_octave * atoms_per_frame values
        """
        return project_inverse(self._sparse, coefficients)

    # ---- inspection ----

    def to_dense(self) -> np.ndarray:
        return self._sparse.to_dense()

    def summary(self) -> Dict:
        g = self._geometry
        n_cells = self._sparse.n_rows * g.fft_size
        return {
            'sample_rate': self._params.sample_rate,
            'min_frequency': self._params.min_frequency,
            'octaves': self._params.octaves,
            'bins_per_octave': self._params.bins_per_octave,
            'window': self._params.window.value,
            'Q': g.Q,
            'fft_size': g.fft_size,
            'fft_hop': g.fft_hop,
            'atom_spacing': g.atom_spacing,
            'atoms_per_frame': g.atoms_per_frame,
            'first_centre': g.first_centre,
            'last_centre': g.last_centre,
            'max_atom_length': g.max_atom_length,
            'min_atom_length': g.min_atom_length,
            'rows': self._sparse.n_rows,
            'nnz': self._sparse.nnz,
            'density': self._sparse.nnz / n_cells if n_cells else 0.0,
            'weight': self._weight,
        }

    def __repr__(self) -> str:
        return (f"CQKernel(bins_per_octave={self._params.bins_per_octave}, "
                f"atoms_per_frame={self.atoms_per_frame}, fft_size={self.fft_size})")
