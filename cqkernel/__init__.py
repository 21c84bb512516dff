"""
cqkernel - Sparse constant-Q transform kernel

Precomputes the sparse complex kernel that maps one FFT frame onto the
constant-Q bins of one octave, and projects spectra through it in both
directions.

Subpackages:
    - dsp_core: radix-2 FFT and atom windows
    - cq: kernel parameters, construction and projections
    - utils: logging and plotting helpers
"""

from .exceptions import (
    CQKernelError,
    ConfigurationError,
    InvalidParameterError,
    InvalidGeometryError,
    UnsupportedWindowError,
    InvalidWindowLengthError,
    EmptyKernelError,
)
from .dsp_core import WindowKind, make_window, fft
from .cq import CQKernel, KernelParams, DerivedGeometry, SparseKernel, derive_geometry
from .config import load_config, kernel_params_from_config

__all__ = [
    'CQKernel',
    'KernelParams',
    'DerivedGeometry',
    'SparseKernel',
    'WindowKind',
    'derive_geometry',
    'make_window',
    'fft',
    'load_config',
    'kernel_params_from_config',
    'CQKernelError',
    'ConfigurationError',
    'InvalidParameterError',
    'InvalidGeometryError',
    'UnsupportedWindowError',
    'InvalidWindowLengthError',
    'EmptyKernelError',
]

__version__ = '1.0.0'
