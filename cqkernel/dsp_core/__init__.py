"""
DSP Core Module - FFT and window functions for the constant-Q kernel

Modules:
    - fft: Radix-2 Fast Fourier Transform (Cooley-Tukey, Numba JIT)
    - window: Atom window functions (square-root Blackman-Harris)
"""

from .fft import fft, fft_batch, is_power_of_two, next_power_of_two
from .window import WindowKind, SUPPORTED_WINDOWS, make_window, window_kind_from_name

__all__ = [
    # FFT functions
    'fft',
    'fft_batch',
    'is_power_of_two',
    'next_power_of_two',
    # Window functions
    'WindowKind',
    'SUPPORTED_WINDOWS',
    'make_window',
    'window_kind_from_name',
]
