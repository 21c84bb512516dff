"""
Constant-Q kernel pipeline.

Modules:
    - params: KernelParams and derived geometry
    - builder: atoms and the dense kernel matrix
    - normalization: Gram-matrix normalization weight
    - sparse: sparse row arena and projections
    - kernel: CQKernel
    - diagnostics: impulse round-trip self-checks
"""

from .params import (
    KernelParams,
    DerivedGeometry,
    MIN_ATOM_LENGTH,
    derive_geometry,
    bin_frequencies,
    effective_q,
    round_half_up,
)
from .builder import DenseKernel, build_dense_kernel, atom_spectra, make_atom
from .normalization import normalization_weight, gram_matrix
from .sparse import (
    SparseKernel,
    sparsify,
    project_forward,
    project_forward_frames,
    project_inverse,
)
from .kernel import CQKernel
from .diagnostics import impulse_round_trip, check_all_bins

__all__ = [
    'KernelParams',
    'DerivedGeometry',
    'MIN_ATOM_LENGTH',
    'derive_geometry',
    'bin_frequencies',
    'effective_q',
    'round_half_up',
    'DenseKernel',
    'build_dense_kernel',
    'atom_spectra',
    'make_atom',
    'normalization_weight',
    'gram_matrix',
    'SparseKernel',
    'sparsify',
    'project_forward',
    'project_forward_frames',
    'project_inverse',
    'CQKernel',
    'impulse_round_trip',
    'check_all_bins',
]
